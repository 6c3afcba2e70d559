#__main__.py
"""
Example entry point for a WiFi bridge service, run as "python -m wifi_bridge SSID PASSWORD".
Opens the bridge, joins a network, then keeps the link up with a periodic health check.
"""

import argparse            # Imports argparse to read the port and credentials
import logging             # Imports logging to handle application logging
import sys                 # Imports the sys module to handle Python runtime settings and exceptions

from wifi_bridge.client import WiFiBridgeClient
from wifi_bridge.config import BridgeConfig, DEFAULT_PORT, setup_logging
from wifi_bridge.exceptions import BridgeError, TransportError
from wifi_bridge.service import ConnectionMonitor, DEFAULT_MONITOR_INTERVAL


def setup_exception_handling(logger):
    """
    Configures a global exception handler that logs uncaught errors.
    logger: The Logger instance to record errors.
    """

    def handle_exception(exc_type, exc_value, exc_traceback):
        # Lets Ctrl+C end the service quietly
        if issubclass(exc_type, KeyboardInterrupt):
            logger.info("Stopping WiFi service")
            return
        logger.error("Uncaught exception:", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="ESP32 WiFi bridge service")
    parser.add_argument("ssid", help="Network to join")
    parser.add_argument("password", help="Network password")
    parser.add_argument("--port", default=DEFAULT_PORT, help="Bridge serial device")
    parser.add_argument("--baudrate", type=int, default=115200)
    parser.add_argument("--interval", type=float, default=DEFAULT_MONITOR_INTERVAL,
                        help="Seconds between health checks")
    parser.add_argument("--verbose", action="store_true", help="Log commands and responses")
    return parser.parse_args(argv)


def main(argv=None):
    """
    Starts the WiFi service: connect once, then monitor forever.
    """
    args = parse_args(argv)
    logger = setup_logging("WiFiBridge", logging.DEBUG if args.verbose else logging.INFO)
    setup_exception_handling(logger)
    logger.info(f"Using port: {args.port}")

    try:
        client = WiFiBridgeClient(BridgeConfig(port=args.port, baudrate=args.baudrate), logger=logger)
    except TransportError as e:
        logger.error(f"Failed to connect: {e}")
        return 1

    with client:
        try:
            client.connect(args.ssid, args.password)
        except BridgeError as e:
            logger.error(f"Failed to connect: {e}")
            return 1

        logger.info("WiFi service started. Monitoring connection...")
        ConnectionMonitor(client, args.ssid, args.password, interval=args.interval, logger=logger).run()
    return 0


if __name__ == "__main__":
    # Entry point to run the main function
    sys.exit(main())
