"""
cli.py
------
Command-line entry point for the temperature data logger.

Run:
    python -m templogger
    python -m templogger --interval 5 --output-dir data
    python -m templogger --list-ports
"""

import argparse
import sys

from serial.tools import list_ports

from .acquisition.console import (
    ConsoleDisplay,
    KeyPressCancel,
    print_banner,
    prompt_interval,
    wait_for_key,
)
from .acquisition.errors import (
    DiscoveryExhausted,
    FileWriteFailure,
    InvalidConfiguration,
    TransportWriteFailure,
)
from .acquisition.negotiator import validate_interval
from .acquisition.session import SessionRunner
from .acquisition.transport import SerialTransport
from .utils.config import load_config, save_config
from .utils.logging_cfg import get_logger, setup_logging

log = get_logger(__name__)

EXIT_OK = 0
EXIT_NO_DEVICE = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="templogger",
        description="Find a DS18B20 temperature logger on a serial port and record its data to CSV.",
    )
    ap.add_argument("--config", default=None, help="Path to logger_config.json")
    ap.add_argument("--interval", default=None,
                    help="Seconds per sample (1-127). Prompted for when omitted")
    ap.add_argument("--output-dir", default=None, help="Directory for the record files")
    ap.add_argument("--ports", nargs="+", default=None, metavar="PORT",
                    help="Explicit port names to scan, in order (e.g. COM3 /dev/ttyACM0)")
    ap.add_argument("--list-ports", action="store_true", help="List serial ports and exit")
    ap.add_argument("--write-config", action="store_true",
                    help="Write the effective configuration to --config and exit")
    ap.add_argument("--no-wait", action="store_true",
                    help="Do not wait for a keypress before exiting")
    ap.add_argument("-v", "--verbose", action="store_true",
                    help="Show troubleshooting output (busy/silent ports, raw handshake polls)")
    ap.add_argument("--log-file", default=None, help="Rotating debug log (default: logs/templogger.log)")
    return ap


def print_ports(out=print) -> int:
    """List all available serial ports"""
    ports = list(list_ports.comports())
    if not ports:
        out("No serial ports found!")
        return 0
    for i, (port, desc, hwid) in enumerate(ports):
        out(f"{i}: {port}")
        out(f"   Description: {desc}")
        out(f"   Hardware ID: {hwid}")
    return len(ports)


def main(argv=None, transport=None, sleep=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, log_file=args.log_file)

    if args.list_ports:
        print_ports()
        return EXIT_OK

    config = load_config(args.config)
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.ports:
        config.port_names = list(args.ports)
        config.max_channels = len(args.ports)

    try:
        config.validate()
    except InvalidConfiguration as e:
        log.error("Invalid configuration: %s", e)
        return EXIT_ERROR

    if args.write_config:
        return EXIT_OK if save_config(config, args.config) else EXIT_ERROR

    preset_interval = None
    if args.interval is not None:
        try:
            preset_interval = validate_interval(args.interval)
        except InvalidConfiguration as e:
            log.error("%s", e)
            return EXIT_ERROR

    if transport is None:
        transport = SerialTransport(config.port_names)
    runner_kwargs = {"sleep": sleep} if sleep is not None else {}
    runner = SessionRunner(config, transport, **runner_kwargs)

    def interval_provider():
        if preset_interval is not None:
            return preset_interval
        return prompt_interval()

    def acknowledge(message=""):
        if not args.no_wait:
            wait_for_key(message)
        elif message:
            print(message)

    print_banner()
    try:
        with KeyPressCancel(config.exit_key) as keys:
            session = runner.run(interval_provider, keys, ConsoleDisplay())
    except DiscoveryExhausted as e:
        log.debug("Scanned %d channels", e.channels_scanned)
        acknowledge(f"{e}\n\nPress any key to exit.")
        return EXIT_NO_DEVICE
    except (TransportWriteFailure, FileWriteFailure) as e:
        print(f"\nLogging stopped: {e}", file=sys.stderr)
        return EXIT_ERROR
    except (EOFError, KeyboardInterrupt):
        print("\nAborted.")
        return EXIT_ERROR
    finally:
        transport.close_all()

    print("\n\nProgram has finished executing.")
    if session.record_path is not None:
        log.info("Data saved to %s", session.record_path)
    acknowledge()
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
