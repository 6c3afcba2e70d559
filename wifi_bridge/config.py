"""
config.py

Holds the serial defaults, protocol timing and logging setup for the ESP32 WiFi bridge.
"""

import logging
from dataclasses import dataclass

import serial

# Serial defaults for the bridge UART.
DEFAULT_PORT = "/dev/ttyS0"
DEFAULT_BAUDRATE = 115200
DEFAULT_TIMEOUT = 1.0

# The ESP32 resets when the port is opened and reprints its banner.
SETTLE_DELAY = 2.0
# Pause after every write so the firmware can start processing.
COMMAND_DELAY = 0.1

# Read windows (seconds) per command.
SLOW_WINDOW = 5.0
FAST_WINDOW = 1.0

LINE_TERMINATOR = b"\n"
FIELD_SEPARATOR = ":"
ENCODING = "utf-8"

# Firmware-side constants.
FIRMWARE_BANNER = ["READY", "ESP32 WiFi Bridge v1.0", "Waiting for commands..."]
CONNECT_ATTEMPTS = 20
CONNECT_ATTEMPT_INTERVAL = 0.5
FIRMWARE_IDLE_DELAY = 0.01


@dataclass
class BridgeConfig:
    """
    Serial connection settings for a bridge client.

    Attributes:
        port: Serial device path (e.g., "/dev/ttyS0" or "COM3").
        baudrate: Line rate, 115200 for the stock firmware.
        timeout: Timeout of a single underlying read call, in seconds.
        write_timeout: Timeout of a single write call, in seconds.
        settle_delay: Wait after opening the port before the first command.
        command_delay: Wait after each command write.
    """
    port: str = DEFAULT_PORT
    baudrate: int = DEFAULT_BAUDRATE
    timeout: float = DEFAULT_TIMEOUT
    write_timeout: float = DEFAULT_TIMEOUT
    settle_delay: float = SETTLE_DELAY
    command_delay: float = COMMAND_DELAY

    def serial_settings(self) -> dict:
        """Returns keyword arguments for serial.Serial."""
        return {
            'baudrate': self.baudrate,
            'bytesize': serial.EIGHTBITS,
            'parity': serial.PARITY_NONE,
            'stopbits': serial.STOPBITS_ONE,
            'timeout': self.timeout,
            'write_timeout': self.write_timeout,
        }


def setup_logging(name: str, level: int = logging.DEBUG) -> logging.Logger:
    """
    Configures a console logger for the application.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)

    # Removes old handlers if any
    if logger.hasHandlers():
        logger.handlers.clear()
    logger.addHandler(console_handler)

    return logger
