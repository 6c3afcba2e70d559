#!/usr/bin/env python3
"""
firmware.py

This module implements the BridgeFirmware class, the peer side of the bridge
protocol: it owns the radio and one TCP session, accepts one command line at a
time from the UART and answers with one or more newline-terminated lines.

Features:
  - Input bytes accumulate until "\\n" or "\\r"; each non-empty line is trimmed
    and dispatched synchronously.
  - WiFi state machine: IDLE -> CONNECTING -> CONNECTED | IDLE, with the join
    polled up to 20 times, 500 ms apart.
  - At most one TCP session, held in an optional field. A new TCPCONNECT
    replaces the open session; TCPCLOSE and a peer-initiated close both clear it.
  - Inbound TCP bytes are forwarded unsolicited as "TCPDATA:<bytes>".

Interface:
  feed() pushes UART input, poll() runs one loop iteration, read_output()
  drains what the firmware has written to the UART, reset() simulates a reboot.

Usage Example:
    firmware = BridgeFirmware(SimulatedRadio([...]))
    firmware.feed(b"SCAN\\n")
    firmware.poll()
    print(firmware.read_output().decode())
"""

import logging
import socket
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from wifi_bridge.command_types import OPEN_TOKEN, SECURED_TOKEN
from wifi_bridge.config import (
    CONNECT_ATTEMPTS,
    CONNECT_ATTEMPT_INTERVAL,
    ENCODING,
    FIRMWARE_BANNER,
    FIRMWARE_IDLE_DELAY,
)
from wifi_bridge.radio import WiFiRadio

TCP_CONNECT_TIMEOUT = 5.0
TCP_READ_SIZE = 4096


class WiFiState(Enum):
    """
    Station states of the firmware.
    """
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class TCPSession:
    """The firmware's single application TCP socket."""
    host: str
    port: int
    sock: socket.socket


def to_int(text: str) -> int:
    """
    Parses a leading integer the lenient way the firmware does: leading
    whitespace and sign allowed, trailing garbage ignored, 0 if none.
    """
    text = text.strip()
    digits = ""
    for index, char in enumerate(text):
        if char.isdigit() or (index == 0 and char in "+-"):
            digits += char
        else:
            break
    try:
        return int(digits)
    except ValueError:
        return 0


class BridgeFirmware:
    """
    Command dispatcher and state machine of the ESP32 WiFi bridge.
    """

    def __init__(self, radio: WiFiRadio,
                 logger: Optional[logging.Logger] = None,
                 tcp_connector: Optional[Callable[[str, int], socket.socket]] = None,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Initializes the firmware and prints its banner.

        Args:
            radio: The radio the firmware drives.
            logger: Optional logger instance.
            tcp_connector: Callable (host, port) -> connected socket.
            sleep: Sleep function for join polling and the loop idle delay.
        """
        self.radio = radio
        self.logger = logger or logging.getLogger("BridgeFirmware")
        self._tcp_connector = tcp_connector or self._default_connector
        self._sleep = sleep
        self._input = bytearray()
        self._output = bytearray()
        self.wifi_state = WiFiState.IDLE
        self.tcp_session: Optional[TCPSession] = None
        self.reset()

    @staticmethod
    def _default_connector(host: str, port: int) -> socket.socket:
        return socket.create_connection((host, port), timeout=TCP_CONNECT_TIMEOUT)

    # UART side

    def _print(self, text: str) -> None:
        self._output.extend(text.encode(ENCODING, errors="replace"))

    def _println(self, text: str = "") -> None:
        self._print(text + "\n")

    def feed(self, data: bytes) -> None:
        """Appends bytes received on the UART."""
        self._input.extend(data)

    def read_output(self) -> bytes:
        """Drains everything the firmware has written to the UART."""
        data = bytes(self._output)
        self._output.clear()
        return data

    def reset(self) -> None:
        """
        Simulates a reboot: drops all state and prints the banner.
        """
        self._input.clear()
        self._output.clear()
        self._close_session()
        self.radio.disconnect()
        self.wifi_state = WiFiState.IDLE
        for line in FIRMWARE_BANNER:
            self._println(line)

    def poll(self) -> None:
        """
        Runs one loop iteration: dispatch every complete input line, forward
        pending TCP data, then idle briefly.
        """
        for command in self._take_lines():
            self.process_command(command)
        self._forward_tcp_data()
        self._sleep(FIRMWARE_IDLE_DELAY)

    def _take_lines(self):
        buffer = bytearray()
        commands = []
        for byte in self._input:
            if byte in (0x0A, 0x0D):
                if buffer:
                    commands.append(bytes(buffer).decode(ENCODING, errors="replace"))
                    buffer = bytearray()
            else:
                buffer.append(byte)
        self._input = buffer
        return commands

    # Command dispatch

    def process_command(self, cmd: str) -> None:
        """
        Executes one command line and writes its response lines.
        """
        cmd = cmd.strip()
        self.logger.debug(f"Firmware command received: {cmd}")

        if cmd.startswith("CONNECT:"):
            first_colon = cmd.find(":", 8)
            if first_colon > 0:
                self.connect_wifi(cmd[8:first_colon], cmd[first_colon + 1:])
            else:
                self._println("ERROR:Invalid CONNECT format. Use CONNECT:SSID:PASSWORD")
        elif cmd == "STATUS":
            self.report_status()
        elif cmd == "SCAN":
            self.scan_networks()
        elif cmd == "DISCONNECT":
            self.radio.disconnect()
            self.wifi_state = WiFiState.IDLE
            self._println("OK:Disconnected")
        elif cmd.startswith("TCPCONNECT:"):
            colon_pos = cmd.rfind(":")
            if colon_pos > 11:
                self.connect_tcp(cmd[11:colon_pos], to_int(cmd[colon_pos + 1:]))
            else:
                self._println("ERROR:Invalid TCPCONNECT format")
        elif cmd.startswith("TCPSEND:"):
            self.send_tcp(cmd[8:])
        elif cmd == "TCPCLOSE":
            if self._session_alive():
                self._close_session()
                self._println("OK:TCP connection closed")
            else:
                self._println("ERROR:No active TCP connection")
        elif cmd == "IP":
            if self._radio_connected():
                self._println(f"IP:{self.radio.local_ip()}")
            else:
                self._println("ERROR:Not connected to WiFi")
        else:
            self._println(f"ERROR:Unknown command: {cmd}")

    def _radio_connected(self) -> bool:
        connected = self.radio.is_connected()
        if not connected and self.wifi_state == WiFiState.CONNECTED:
            self.logger.info("Firmware: WiFi link lost")
            self.wifi_state = WiFiState.IDLE
        return connected

    def connect_wifi(self, ssid: str, password: str) -> None:
        self._println(f"CONNECTING:{ssid}")
        self.wifi_state = WiFiState.CONNECTING
        self.radio.begin(ssid, password)

        attempts = 0
        while not self.radio.is_connected() and attempts < CONNECT_ATTEMPTS:
            self._sleep(CONNECT_ATTEMPT_INTERVAL)
            self._print(".")
            attempts += 1
        self._println()

        if self.radio.is_connected():
            self.wifi_state = WiFiState.CONNECTED
            self._println("OK:Connected")
            self._println(f"IP:{self.radio.local_ip()}")
            self.logger.info(f"Firmware joined {ssid}")
        else:
            self.wifi_state = WiFiState.IDLE
            self._println("ERROR:Connection failed")
            self.logger.info(f"Firmware failed to join {ssid} after {attempts} attempts")

    def report_status(self) -> None:
        if self._radio_connected():
            self._println("STATUS:CONNECTED")
            self._println(f"SSID:{self.radio.ssid()}")
            self._println(f"IP:{self.radio.local_ip()}")
            self._println(f"RSSI:{self.radio.rssi()} dBm")
        else:
            self._println("STATUS:DISCONNECTED")

    def scan_networks(self) -> None:
        self._println("SCANNING...")
        results = self.radio.scan_networks()
        if not results:
            self._println("SCAN:No networks found")
            return
        self._println(f"SCAN:Found {len(results)} networks")
        for result in results:
            security = OPEN_TOKEN if result.open else SECURED_TOKEN
            self._println(f"NETWORK:{result.ssid}:{result.rssi}:{security}")

    # TCP session

    def connect_tcp(self, host: str, port: int) -> None:
        self._println(f"TCP:Connecting to {host}:{port}")
        self._close_session()
        try:
            sock = self._tcp_connector(host, port)
            sock.setblocking(False)
        except OSError as e:
            self.logger.debug(f"Firmware TCP connect to {host}:{port} failed: {e}")
            self._println("ERROR:TCP connection failed")
            return
        self.tcp_session = TCPSession(host=host, port=port, sock=sock)
        self._println("OK:TCP connected")

    def send_tcp(self, data: str) -> None:
        if not self._session_alive():
            self._println("ERROR:Not connected")
            return
        try:
            self.tcp_session.sock.sendall(data.encode(ENCODING, errors="replace"))
        except OSError as e:
            self.logger.debug(f"Firmware TCP send failed: {e}")
            self._close_session()
            self._println("ERROR:Not connected")
            return
        self._println("OK:Data sent")

    def _session_alive(self) -> bool:
        """Checks the session, clearing it if the peer has gone away."""
        if self.tcp_session is None:
            return False
        try:
            peek = self.tcp_session.sock.recv(1, socket.MSG_PEEK)
        except (BlockingIOError, InterruptedError):
            return True
        except OSError:
            self._close_session()
            return False
        if not peek:
            self._close_session()
            return False
        return True

    def _forward_tcp_data(self) -> None:
        if self.tcp_session is None:
            return
        received = bytearray()
        closed = False
        while True:
            try:
                chunk = self.tcp_session.sock.recv(TCP_READ_SIZE)
            except (BlockingIOError, InterruptedError):
                break
            except OSError as e:
                self.logger.debug(f"Firmware TCP read failed: {e}")
                closed = True
                break
            if not chunk:
                closed = True
                break
            received.extend(chunk)
        if received:
            self._println("TCPDATA:" + received.decode(ENCODING, errors="replace"))
        if closed:
            self.logger.info("Firmware: TCP peer closed the session")
            self._close_session()

    def _close_session(self) -> None:
        if self.tcp_session is None:
            return
        try:
            self.tcp_session.sock.close()
        except OSError as e:
            self.logger.debug(f"Firmware TCP close failed: {e}")
        self.tcp_session = None
