"""
command_types.py

Defines the command definition data class and the catalogue of verbs
understood by the bridge firmware.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from wifi_bridge.config import FAST_WINDOW, SLOW_WINDOW


@dataclass
class CommandDefinition:
    """
    Data class representing one verb of the bridge protocol.

    Attributes:
        verb: The case-sensitive command verb.
        description: A human-readable description of what the command does.
        args: Names of the colon-delimited arguments, in order.
        window: Read window in seconds, or None for fire-and-forget commands.
        success_marker: Substring that marks success inside the window.
    """
    verb: str
    description: str
    args: List[str] = field(default_factory=list)
    window: Optional[float] = None
    success_marker: Optional[str] = None


class BridgeCommands:
    """
    Contains the command definitions for the ESP32 WiFi bridge firmware.
    """
    CONNECT = CommandDefinition(
        verb="CONNECT",
        description="Join a WiFi network",
        args=["ssid", "password"],
        window=SLOW_WINDOW,
        success_marker="OK:Connected"
    )
    STATUS = CommandDefinition(
        verb="STATUS",
        description="Report connection state, SSID, IP and RSSI",
        window=FAST_WINDOW
    )
    SCAN = CommandDefinition(
        verb="SCAN",
        description="Scan for nearby networks",
        window=SLOW_WINDOW
    )
    DISCONNECT = CommandDefinition(
        verb="DISCONNECT",
        description="Leave the current network"
    )
    IP = CommandDefinition(
        verb="IP",
        description="Report the station IP address",
        window=FAST_WINDOW
    )
    TCPCONNECT = CommandDefinition(
        verb="TCPCONNECT",
        description="Open the TCP session",
        args=["host", "port"],
        window=SLOW_WINDOW,
        success_marker="OK:TCP connected"
    )
    TCPSEND = CommandDefinition(
        verb="TCPSEND",
        description="Write data to the TCP session",
        args=["data"]
    )
    TCPCLOSE = CommandDefinition(
        verb="TCPCLOSE",
        description="Close the TCP session"
    )


# Response prefixes emitted by the firmware.
PREFIX_ERROR = "ERROR"
PREFIX_STATUS = "STATUS:"
PREFIX_SSID = "SSID:"
PREFIX_IP = "IP:"
PREFIX_RSSI = "RSSI:"
PREFIX_NETWORK = "NETWORK:"
PREFIX_TCPDATA = "TCPDATA:"
SECURED_TOKEN = "SECURED"
OPEN_TOKEN = "OPEN"
