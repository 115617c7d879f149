import os
import sys
import unittest
from unittest.mock import MagicMock

import serial

# Add src to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(project_root, "src"))

from templogger.acquisition.errors import TransportWriteFailure
from templogger.acquisition.transport import SerialTransport, default_port_names, parse_mode
from templogger.utils.config import LoggerConfig


class TestParseMode(unittest.TestCase):
    def test_8n1(self):
        self.assertEqual(parse_mode("8N1"), {
            "bytesize": serial.EIGHTBITS,
            "parity": serial.PARITY_NONE,
            "stopbits": serial.STOPBITS_ONE,
        })

    def test_7e2(self):
        kw = parse_mode("7e2")
        self.assertEqual(kw["bytesize"], serial.SEVENBITS)
        self.assertEqual(kw["parity"], serial.PARITY_EVEN)
        self.assertEqual(kw["stopbits"], serial.STOPBITS_TWO)

    def test_invalid(self):
        for bad in ("", "8N", "9N1", "8X1", "8N3"):
            with self.subTest(mode=bad):
                with self.assertRaises(ValueError):
                    parse_mode(bad)


class TestPortNames(unittest.TestCase):
    def test_windows_table(self):
        names = default_port_names("Windows")
        self.assertEqual(names[0], "COM1")
        self.assertEqual(names[19], "COM20")

    def test_posix_table(self):
        names = default_port_names("Linux")
        self.assertEqual(names[0], "/dev/ttyACM0")
        self.assertEqual(names[4], "/dev/ttyUSB0")
        self.assertIn("/dev/ttyS0", names)
        self.assertEqual(len(names), len(set(names)))

    def test_default_scan_reaches_usb_adapters(self):
        scanned = default_port_names("Linux")[:LoggerConfig().max_channels]
        self.assertIn("/dev/ttyACM0", scanned)
        self.assertIn("/dev/ttyUSB0", scanned)
        self.assertIn("/dev/ttyS0", scanned)


class TestSerialTransport(unittest.TestCase):
    def setUp(self):
        self.ser = MagicMock()
        self.factory = MagicMock(return_value=self.ser)
        self.transport = SerialTransport(["COM3", "COM4"], serial_factory=self.factory)

    def test_open_uses_non_blocking_port(self):
        self.assertTrue(self.transport.open(1, 19200, "8N1"))
        self.factory.assert_called_once_with(
            port="COM4",
            baudrate=19200,
            timeout=0,
            write_timeout=1,
            bytesize=serial.EIGHTBITS,
            parity=serial.PARITY_NONE,
            stopbits=serial.STOPBITS_ONE,
        )
        self.assertTrue(self.transport.is_open(1))

    def test_open_failure_returns_false(self):
        self.factory.side_effect = serial.SerialException("Access is denied")
        self.assertFalse(self.transport.open(0, 19200))
        self.assertFalse(self.transport.is_open(0))

    def test_channel_outside_table(self):
        self.assertFalse(self.transport.open(2, 19200))
        self.factory.assert_not_called()
        self.assertIsNone(self.transport.port_name(-1))

    def test_poll_returns_bytes(self):
        self.ser.read.return_value = b"W\r\n"
        self.transport.open(0, 19200)
        self.assertEqual(self.transport.poll(0, 16), b"W\r\n")
        self.ser.read.assert_called_once_with(16)

    def test_poll_closed_channel_is_empty(self):
        self.assertEqual(self.transport.poll(0, 16), b"")

    def test_poll_error_is_wrapped(self):
        self.ser.read.side_effect = serial.SerialException("device reports readiness to read but returned no data")
        self.transport.open(0, 19200)
        with self.assertRaises(TransportWriteFailure):
            self.transport.poll(0, 2)

    def test_send_single_byte(self):
        self.transport.open(0, 19200)
        self.transport.send(0, 60)
        self.ser.write.assert_called_once_with(b"<")
        self.ser.flush.assert_called_once()

    def test_send_without_open_fails(self):
        with self.assertRaises(TransportWriteFailure):
            self.transport.send(0, 5)

    def test_send_error_is_wrapped(self):
        self.ser.write.side_effect = serial.SerialTimeoutException("Write timeout")
        self.transport.open(0, 19200)
        with self.assertRaises(TransportWriteFailure):
            self.transport.send(0, 5)

    def test_close_and_close_all(self):
        self.transport.open(0, 19200)
        self.transport.open(1, 19200)
        self.transport.close(0)
        self.assertFalse(self.transport.is_open(0))
        self.transport.close(0)  # already closed
        self.transport.close_all()
        self.assertFalse(self.transport.is_open(1))
        self.assertEqual(self.ser.close.call_count, 2)


if __name__ == "__main__":
    unittest.main()
