#!/usr/bin/env python3
"""
client.py

Implements the WiFiBridgeClient class, the host-side API for an ESP32 running
the WiFi bridge firmware. Each call writes one command line and, where the
command has a response, polls for lines during a fixed window and classifies
them by prefix or substring.

The client keeps no radio state of its own: every status is re-derived from
the firmware's answer. Calls must be serialized by the caller; there is no
internal locking, retry or reconnection.

Usage Example:
    with WiFiBridgeClient(BridgeConfig(port="/dev/ttyS0")) as client:
        client.connect("HomeWiFi", "secret")
        print(client.get_ip())
"""

import logging
from typing import List, Optional

from wifi_bridge.command_types import BridgeCommands, CommandDefinition
from wifi_bridge.config import BridgeConfig
from wifi_bridge.exceptions import NoAddressError, ProtocolError, ProtocolTimeout
from wifi_bridge.models import BridgeCommand, BridgeResponse, NetworkRecord, WiFiStatus
from wifi_bridge.response_parser import OUTCOME_ERROR, OUTCOME_OK, ResponseParser
from wifi_bridge.transport import SerialTransport


class WiFiBridgeClient:
    """
    Synchronous client for the ESP32 WiFi bridge line protocol.
    """

    def __init__(self, config: Optional[BridgeConfig] = None,
                 logger: Optional[logging.Logger] = None,
                 transport: Optional[SerialTransport] = None):
        """
        Opens the serial channel to the bridge.

        Args:
            config: Serial settings, defaults to BridgeConfig().
            logger: Optional logger instance.
            transport: Prebuilt transport; one is created from config if omitted.

        Raises:
            TransportError: If the serial device cannot be opened.
        """
        self.logger = logger or logging.getLogger(__name__)
        self.transport = transport or SerialTransport(config, logger=self.logger)
        self.config = self.transport.config
        self.parser = ResponseParser(self.logger)
        self._tcp_inbox: List[str] = []
        self.transport.open()
        self.logger.info(f"Connected to ESP32 WiFi bridge on {self.config.port}")

    def __enter__(self) -> "WiFiBridgeClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self.transport.is_open

    def close(self) -> None:
        """Releases the serial channel. A no-op if already closed."""
        self.transport.close()

    def send_command(self, text: str) -> None:
        """
        Writes one raw command line.

        Raises:
            TransportError: If the write fails.
        """
        self.transport.write_line(text)

    def read_lines(self, duration: float) -> List[str]:
        """
        Collects every line received within the given window. TCPDATA payloads
        are also copied to the inbound TCP buffer.
        """
        lines = self.transport.read_lines(duration)
        self._tcp_inbox.extend(self.parser.split_tcp_data(lines))
        return lines

    def _query(self, definition: CommandDefinition, *args) -> BridgeResponse:
        command = BridgeCommand(verb=definition.verb, args=list(args))
        line = command.to_line()
        self.send_command(line)
        if definition.window is None:
            return BridgeResponse(command=line)
        lines = self.read_lines(definition.window)
        return BridgeResponse(command=line, lines=lines,
                              tcp_data=self.parser.split_tcp_data(lines))

    def _expect_success(self, response: BridgeResponse, success_marker: str, action: str) -> None:
        outcome, line = self.parser.find_outcome(response.lines, success_marker)
        if outcome == OUTCOME_OK:
            return
        if outcome == OUTCOME_ERROR:
            self.logger.error(f"{action} failed: {line}")
            raise ProtocolError(f"{action} failed: {line}", line=line)
        self.logger.error(f"{action} timeout")
        raise ProtocolTimeout(f"{action} timeout")

    def connect(self, ssid: str, password: str) -> None:
        """
        Joins a WiFi network.

        Raises:
            ProtocolError: If the firmware reports an error first.
            ProtocolTimeout: If neither outcome is seen within the window.
        """
        definition = BridgeCommands.CONNECT
        response = self._query(definition, ssid, password)
        self._expect_success(response, definition.success_marker, "connection")
        self.logger.info(f"Connected to WiFi network {ssid}")

    def disconnect(self) -> None:
        """Leaves the current network. Best effort, the answer is not read."""
        self._query(BridgeCommands.DISCONNECT)

    def get_status(self) -> WiFiStatus:
        """Queries the radio state."""
        response = self._query(BridgeCommands.STATUS)
        return self.parser.parse_status(response.lines)

    def scan(self) -> List[NetworkRecord]:
        """
        Scans for networks.

        Returns:
            The records in the order the firmware reported them.
        """
        response = self._query(BridgeCommands.SCAN)
        networks = self.parser.parse_networks(response.lines)
        self.logger.debug(f"Scan found {len(networks)} networks")
        return networks

    def get_ip(self) -> str:
        """
        Returns the station IP address.

        Raises:
            NoAddressError: If no IP line arrives within the window.
        """
        response = self._query(BridgeCommands.IP)
        ip = self.parser.first_ip(response.lines)
        if ip is None:
            raise NoAddressError("no IP address received")
        return ip

    def tcp_connect(self, host: str, port: int) -> None:
        """
        Opens the firmware's TCP session.

        Raises:
            ProtocolError: If the firmware reports an error first.
            ProtocolTimeout: If neither outcome is seen within the window.
        """
        definition = BridgeCommands.TCPCONNECT
        response = self._query(definition, host, int(port))
        self._expect_success(response, definition.success_marker, "TCP connection")
        self.logger.info(f"TCP session open to {host}:{port}")

    def tcp_send(self, data: str) -> None:
        """Writes data to the TCP session. No confirmation is awaited."""
        self._query(BridgeCommands.TCPSEND, data)

    def tcp_close(self) -> None:
        """Closes the TCP session. No confirmation is awaited."""
        self._query(BridgeCommands.TCPCLOSE)

    def read_tcp_data(self, duration: float = 0.0) -> List[str]:
        """
        Drains TCPDATA payloads seen so far.

        Args:
            duration: If positive, poll for this long before draining.

        Returns:
            The payloads in arrival order.
        """
        if duration > 0 and self.is_open:
            self.read_lines(duration)
        data, self._tcp_inbox = self._tcp_inbox, []
        return data

    @staticmethod
    def list_ports() -> List[str]:
        """Lists available serial ports."""
        return SerialTransport.list_ports()
