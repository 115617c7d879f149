import io
import os
import sys
import unittest

# Add src to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(project_root, "src"))

from templogger.acquisition import console
from templogger.acquisition.console import ConsoleDisplay, EventCancel, KeyPressCancel


class TestEventCancel(unittest.TestCase):
    def test_set(self):
        cancel = EventCancel()
        self.assertFalse(cancel.is_set())
        cancel.set()
        self.assertTrue(cancel.is_set())


@unittest.skipIf(os.name == "nt", "pipe-based key input is POSIX only")
class TestKeyPressCancel(unittest.TestCase):
    def setUp(self):
        r, self.w = os.pipe()
        self.reader = os.fdopen(r, "r")

    def tearDown(self):
        self.reader.close()
        try:
            os.close(self.w)
        except OSError:
            pass

    def test_not_set_without_input(self):
        with KeyPressCancel("e", stream=self.reader) as cancel:
            self.assertFalse(cancel.is_set())
            self.assertFalse(cancel.is_set())

    def test_other_keys_ignored(self):
        os.write(self.w, b"xyz")
        with KeyPressCancel("e", stream=self.reader) as cancel:
            self.assertFalse(cancel.is_set())

    def test_exit_key_sets_and_latches(self):
        os.write(self.w, b"abE")
        with KeyPressCancel("e", stream=self.reader) as cancel:
            self.assertTrue(cancel.is_set())
            self.assertTrue(cancel.is_set())

    def test_eof_is_not_a_cancel(self):
        os.close(self.w)
        with KeyPressCancel("e", stream=self.reader) as cancel:
            self.assertFalse(cancel.is_set())
            self.assertFalse(cancel.is_set())

    def test_stream_without_fileno(self):
        cancel = KeyPressCancel("e", stream=io.StringIO("e"))
        self.assertFalse(cancel.is_set())


class TestConsoleDisplay(unittest.TestCase):
    def test_echo(self):
        out = io.StringIO()
        display = ConsoleDisplay(out)
        for chunk in (b"12", b":3", b"4\xff"):
            display(chunk)
        self.assertEqual(out.getvalue(), "12:34�")


class TestWaitForKey(unittest.TestCase):
    @unittest.skipIf(os.name == "nt", "reads a console key on Windows")
    def test_non_tty_waits_for_line(self):
        stream = io.StringIO("\n")
        lines = []
        console.wait_for_key("Press any key to exit.", out=lines.append, stream=stream)
        self.assertEqual(lines, ["Press any key to exit."])
        self.assertEqual(stream.read(), "")

    def test_banner(self):
        lines = []
        console.print_banner(out=lines.append)
        self.assertTrue(lines[0].startswith("DS18B20 Temperature Data Logger"))


if __name__ == "__main__":
    unittest.main()
