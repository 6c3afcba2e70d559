"""
transport.py

Implements the SerialTransport class that owns the UART to the bridge.
Handles opening the port, writing command lines, and polling for response
lines during a fixed wall-clock window.

The window polling in read_lines() is the only place that knows how responses
are framed (newline terminated, no correlation). Callers work on the list of
lines it returns.
"""

import logging
import time
from typing import Callable, List, Optional

import serial
from serial.tools import list_ports

from wifi_bridge.config import BridgeConfig, ENCODING, LINE_TERMINATOR
from wifi_bridge.exceptions import TransportError

# Pause after a failed read so a dead port does not spin the loop.
READ_ERROR_BACKOFF = 0.01


class SerialTransport:
    """
    Line-oriented serial channel to the bridge firmware.
    """

    def __init__(self, config: Optional[BridgeConfig] = None,
                 logger: Optional[logging.Logger] = None,
                 serial_factory: Optional[Callable[..., serial.Serial]] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the transport. The port is not opened until open() is called.

        Args:
            config: Serial settings, defaults to BridgeConfig().
            logger: Optional logger instance.
            serial_factory: Callable building the port, defaults to serial.Serial.
            clock: Monotonic time source used for read windows.
            sleep: Sleep function used for settle and command delays.
        """
        self.config = config or BridgeConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._serial_factory = serial_factory or serial.Serial
        self._clock = clock
        self._sleep = sleep
        self.ser: Optional[serial.Serial] = None
        self._pending = bytearray()

    @property
    def is_open(self) -> bool:
        return bool(self.ser is not None and self.ser.is_open)

    def open(self) -> None:
        """
        Opens the serial port and waits for the firmware to finish its reset.

        Raises:
            TransportError: If the device cannot be opened.
        """
        if self.is_open:
            return
        try:
            self.ser = self._serial_factory(port=self.config.port, **self.config.serial_settings())
        except (serial.SerialException, OSError, ValueError) as e:
            self.logger.error(f"Connection failed: {str(e)}")
            raise TransportError(f"failed to open port {self.config.port}: {e}") from e
        self._pending.clear()
        self.logger.info(f"Opened bridge port {self.config.port} at {self.config.baudrate} baud")
        self._sleep(self.config.settle_delay)

    def close(self) -> None:
        """
        Closes the serial port. Safe to call more than once.
        """
        if self.ser is None:
            return
        try:
            if self.ser.is_open:
                self.ser.close()
                self.logger.info(f"Closed bridge port {self.config.port}")
        except (serial.SerialException, OSError) as e:
            self.logger.error(f"Error disconnecting: {str(e)}")
        finally:
            self.ser = None
            self._pending.clear()

    def write_line(self, text: str) -> None:
        """
        Writes one command line, then waits the command delay.

        Args:
            text: The command without its terminator.

        Raises:
            TransportError: If the port is closed or the write fails.
        """
        if not self.is_open:
            raise TransportError("Not connected")
        payload = text.encode(ENCODING, errors="replace") + LINE_TERMINATOR
        try:
            self.logger.debug(f"Sending command: {text}")
            self.ser.write(payload)
            self.ser.flush()
        except (serial.SerialException, OSError) as e:
            self.logger.error(f"Command failed: {str(e)}")
            raise TransportError(f"failed to send command: {e}") from e
        self._sleep(self.config.command_delay)

    def read_line(self) -> Optional[str]:
        """
        Reads one complete line.

        Returns:
            The line trimmed of whitespace, or None if no complete line arrived
            before the underlying read timeout. Partial data is kept for the
            next call.
        """
        if not self.is_open:
            return None
        try:
            chunk = self.ser.readline()
        except (serial.SerialException, OSError) as e:
            self.logger.debug(f"Read failed: {str(e)}")
            self._sleep(READ_ERROR_BACKOFF)
            return None
        if chunk:
            self._pending.extend(chunk)
        if not self._pending.endswith(LINE_TERMINATOR):
            return None
        raw = bytes(self._pending)
        self._pending.clear()
        return raw.decode(ENCODING, errors="replace").strip()

    def read_lines(self, duration: float) -> List[str]:
        """
        Collects every complete, non-empty line received within a window.

        Args:
            duration: Window length in seconds.

        Returns:
            The lines in arrival order.

        Raises:
            TransportError: If the port is closed.
        """
        if not self.is_open:
            raise TransportError("Not connected")
        lines: List[str] = []
        deadline = self._clock() + duration
        while self._clock() < deadline:
            line = self.read_line()
            if line is None:
                continue
            if line:
                self.logger.debug(f"Received response: {line}")
                lines.append(line)
        return lines

    @staticmethod
    def list_ports() -> List[str]:
        """
        Lists available serial ports.

        Returns:
            A list of available port names.
        """
        return [p.device for p in list_ports.comports()]
