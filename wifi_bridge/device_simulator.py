#!/usr/bin/env python3
"""
device_simulator.py

This module implements SimulatedSerialPort, a pyserial-shaped port whose far
end is a BridgeFirmware instance running in-process. It lets the client run
against the real command dispatcher without an ESP32 attached.

Opening the port resets the firmware, like the ESP32 auto-reset on a real UART,
so the banner is the first thing read.

Usage Example:
    firmware = BridgeFirmware(SimulatedRadio([SimulatedNetwork("Home", -45, "secret")]))
    transport = SerialTransport(BridgeConfig(port="sim://bridge"),
                                serial_factory=simulated_serial_factory(firmware))
    client = WiFiBridgeClient(transport=transport)
    client.scan()
"""

import logging
import time
from typing import Callable, Optional

import serial

from wifi_bridge.config import DEFAULT_TIMEOUT, LINE_TERMINATOR
from wifi_bridge.firmware import BridgeFirmware


class SimulatedSerialPort:
    """
    Minimal stand-in for serial.Serial connected to a BridgeFirmware.
    Implements write(), flush(), readline() and close(), matching what
    SerialTransport uses.
    """

    def __init__(self, firmware: BridgeFirmware, port: str = "sim://bridge",
                 timeout: Optional[float] = DEFAULT_TIMEOUT,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.Logger] = None,
                 **settings):
        self.firmware = firmware
        self.port = port
        self.timeout = timeout
        self.settings = settings
        self.logger = logger or logging.getLogger("SimulatedSerialPort")
        self._sleep = sleep
        self._rx = bytearray()
        self.is_open = True
        # Set to True to make every write fail like an unplugged adapter.
        self.fail_writes = False
        self.written = bytearray()
        self.firmware.reset()
        self.logger.debug(f"Simulated port {port} opened")

    def _collect(self) -> None:
        self._rx.extend(self.firmware.read_output())

    def write(self, data: bytes) -> int:
        if not self.is_open:
            raise serial.PortNotOpenError()
        if self.fail_writes:
            raise serial.SerialException("write failed: device disconnected")
        self.written.extend(data)
        self.firmware.feed(data)
        return len(data)

    def flush(self) -> None:
        pass

    def readline(self) -> bytes:
        """
        Returns one line including its terminator. If no complete line is
        available after one firmware iteration, waits the read timeout and
        returns whatever partial data there is, as pyserial does.
        """
        if not self.is_open:
            raise serial.PortNotOpenError()
        self._collect()
        if LINE_TERMINATOR not in self._rx:
            self.firmware.poll()
            self._collect()
        index = self._rx.find(LINE_TERMINATOR)
        if index < 0:
            self._sleep(self.timeout or 0)
            data = bytes(self._rx)
            self._rx.clear()
            return data
        data = bytes(self._rx[:index + 1])
        del self._rx[:index + 1]
        return data

    def close(self) -> None:
        self.is_open = False


def simulated_serial_factory(firmware: BridgeFirmware,
                             sleep: Callable[[float], None] = time.sleep,
                             logger: Optional[logging.Logger] = None):
    """
    Builds a serial_factory for SerialTransport that opens SimulatedSerialPort
    instances on the given firmware.
    """
    def factory(port: str, **settings) -> SimulatedSerialPort:
        return SimulatedSerialPort(firmware, port=port, sleep=sleep, logger=logger, **settings)
    return factory
