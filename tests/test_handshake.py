import os
import sys
import unittest

# Add src and tests to path
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, os.path.join(project_root, "src"))
sys.path.insert(0, os.path.dirname(__file__))

from mock_transport import FakeTransport

from templogger.acquisition.errors import (
    ChannelUnavailable,
    DiscoveryExhausted,
    HandshakeTimeout,
    TransportWriteFailure,
)
from templogger.acquisition.handshake import HandshakeScanner, discover


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)

    @property
    def total(self):
        return sum(self.calls)


def make_scanner(transport, sleep=None, **kwargs):
    return HandshakeScanner(transport, sleep=sleep or SleepRecorder(), **kwargs)


class TestDiscovery(unittest.TestCase):
    def test_no_device_reports_not_found_in_bounded_time(self):
        transport = FakeTransport(busy={1, 4, 7})
        sleep = SleepRecorder()
        scanner = make_scanner(transport, sleep=sleep)

        with self.assertRaises(DiscoveryExhausted) as ctx:
            scanner.discover()

        self.assertEqual(ctx.exception.channels_scanned, 20)
        # 17 openable channels, each: boot delay + 100 polls at 5ms
        self.assertAlmostEqual(sleep.total, 17 * (1.7 + 100 * 0.005), places=6)
        self.assertEqual(len(sleep.calls), 17 * 101)
        self.assertEqual(transport.opened, set())
        for ch in range(20):
            expected = 0 if ch in {1, 4, 7} else 100
            self.assertEqual(len(transport.polls(ch)), expected, f"channel {ch}")

    def test_busy_channel_is_closed_and_skipped_without_retry(self):
        transport = FakeTransport(busy={0}, scripts={1: [b"W"]})
        result = make_scanner(transport).discover()

        self.assertEqual(result.channel, 1)
        ch0 = [c for c in transport.calls if c[1] == 0]
        self.assertEqual(ch0, [("open", 0, 19200, "8N1"), ("close", 0)])

    def test_first_responder_wins_and_higher_channels_untouched(self):
        k = 5
        transport = FakeTransport(
            busy={2},
            scripts={k: [b"", b"", b"WWWW"], k + 1: [b"W"], k + 3: [b"W"]},
        )
        result = make_scanner(transport).discover()

        self.assertEqual(result.channel, k)
        self.assertEqual(result.port_name, f"FAKE{k}")
        self.assertEqual(result.attempts_used, 3)
        self.assertEqual(transport.channels_touched(), list(range(k + 1)))
        self.assertIn(k, transport.opened)
        self.assertNotIn(("close", k), transport.calls)

    def test_stops_polling_as_soon_as_sentinel_seen(self):
        transport = FakeTransport(scripts={0: [b"", b"W", b"W", b"W"]})
        make_scanner(transport).discover()
        self.assertEqual(len(transport.polls(0)), 2)
        self.assertEqual(transport.remaining(0), [b"W", b"W"])

    def test_sentinel_must_be_first_byte(self):
        transport = FakeTransport(scripts={0: [b"xW", b"12W"], 1: [b"W9"]})
        result = make_scanner(transport).discover()
        self.assertEqual(result.channel, 1)
        self.assertIn(("close", 0), transport.calls)

    def test_sentinel_after_budget_is_ignored(self):
        transport = FakeTransport(scripts={0: [b""] * 10 + [b"W"]})
        with self.assertRaises(DiscoveryExhausted):
            make_scanner(transport, attempts=10, max_channels=1).discover()
        self.assertEqual(len(transport.polls(0)), 10)

    def test_custom_range_and_sentinel(self):
        transport = FakeTransport(scripts={2: [b"Z"]})
        result = discover(transport, max_channels=3, sentinel=b"Z", sleep=lambda s: None)
        self.assertEqual(result.channel, 2)

    def test_settle_delay_precedes_first_poll(self):
        transport = FakeTransport(scripts={0: [b"W"]})
        sleep = SleepRecorder()
        make_scanner(transport, sleep=sleep, boot_delay_s=1.7, poll_interval_s=0.005).discover()
        self.assertEqual(sleep.calls, [1.7, 0.005])

    def test_sentinel_must_be_single_byte(self):
        with self.assertRaises(ValueError):
            HandshakeScanner(FakeTransport(), sentinel=b"WW")


class TestProbe(unittest.TestCase):
    def test_probe_unavailable(self):
        transport = FakeTransport(busy={3})
        with self.assertRaises(ChannelUnavailable):
            make_scanner(transport).probe(3)

    def test_probe_timeout_closes_channel(self):
        transport = FakeTransport()
        with self.assertRaises(HandshakeTimeout) as ctx:
            make_scanner(transport, attempts=7).probe(0)
        self.assertEqual(ctx.exception.attempts, 7)
        self.assertEqual(transport.calls[-1], ("close", 0))

    def test_read_error_during_probe_skips_channel(self):
        transport = FakeTransport(scripts={1: [b"W"]})
        original_poll = transport.poll

        def poll(channel, max_bytes):
            if channel == 0:
                raise TransportWriteFailure("device unplugged")
            return original_poll(channel, max_bytes)

        transport.poll = poll
        result = make_scanner(transport).discover()
        self.assertEqual(result.channel, 1)
        self.assertIn(("close", 0), transport.calls)


if __name__ == "__main__":
    unittest.main()
