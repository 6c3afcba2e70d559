"""
models.py

Defines the data models exchanged with the ESP32 bridge: outbound commands,
collected responses, WiFi status and scan results.
Utilizes dataclasses to enforce structure.
"""

from dataclasses import dataclass, field
from typing import List

from wifi_bridge.config import FIELD_SEPARATOR


@dataclass
class BridgeCommand:
    """
    One outbound instruction.
    """
    verb: str                                      # Command verb (e.g., "CONNECT")
    args: List[str] = field(default_factory=list)  # Colon-delimited arguments

    def to_line(self) -> str:
        """
        Serializes the command to its wire form without the line terminator.
        Arguments are not escaped; a colon inside an argument stays as-is.
        """
        return FIELD_SEPARATOR.join([self.verb] + [str(arg) for arg in self.args])


@dataclass
class BridgeResponse:
    """
    Lines collected during one read window.
    """
    command: str                                        # Line that opened the window
    lines: List[str] = field(default_factory=list)      # Every trimmed line, in arrival order
    tcp_data: List[str] = field(default_factory=list)   # TCPDATA payloads seen in the window


@dataclass
class WiFiStatus:
    """
    Radio state as reported by the firmware for one STATUS query.
    """
    connected: bool = False
    ssid: str = ""
    ip: str = ""
    rssi: int = 0    # dBm


@dataclass
class NetworkRecord:
    """
    One scan result.
    """
    ssid: str
    rssi: int        # dBm
    secured: bool
