"""
response_parser.py

Defines the ResponseParser class that turns the lines collected in a read
window into typed results. Lines are classified purely by prefix or substring,
since the protocol carries no framing or request correlation.
Malformed lines are dropped, never raised.
"""

import logging
import re
from typing import List, Optional, Tuple

from wifi_bridge.command_types import (
    PREFIX_ERROR,
    PREFIX_IP,
    PREFIX_NETWORK,
    PREFIX_RSSI,
    PREFIX_SSID,
    PREFIX_STATUS,
    PREFIX_TCPDATA,
    SECURED_TOKEN,
)
from wifi_bridge.config import FIELD_SEPARATOR
from wifi_bridge.models import NetworkRecord, WiFiStatus

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

# Outcomes of a success/error scan over a window.
OUTCOME_OK = "ok"
OUTCOME_ERROR = "error"
OUTCOME_TIMEOUT = "timeout"


def parse_leading_int(text: str) -> Optional[int]:
    """
    Parses the integer at the start of text, ignoring anything after it
    (e.g., "-45 dBm" -> -45).

    Returns:
        The integer, or None if text does not start with one.
    """
    match = _LEADING_INT.match(text)
    if not match:
        return None
    return int(match.group(1))


class ResponseParser:
    """
    Classifies and folds response lines from the bridge firmware.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def find_outcome(self, lines: List[str], success_marker: str) -> Tuple[str, Optional[str]]:
        """
        Walks the lines in order and stops at the first decisive one.

        Args:
            lines: Lines collected in the window.
            success_marker: Substring marking success (e.g., "OK:Connected").

        Returns:
            A tuple (outcome, line) where outcome is OUTCOME_OK, OUTCOME_ERROR
            or OUTCOME_TIMEOUT and line is the decisive line, if any.
        """
        for line in lines:
            if success_marker in line:
                return OUTCOME_OK, line
            if PREFIX_ERROR in line:
                return OUTCOME_ERROR, line
        return OUTCOME_TIMEOUT, None

    def parse_status(self, lines: List[str]) -> WiFiStatus:
        """
        Folds STATUS output into one WiFiStatus. A later line overwrites an
        earlier line with the same prefix.

        A STATUS line counts as connected only when it contains CONNECTED and
        not DISCONNECTED, so "STATUS:DISCONNECTED" reads as disconnected.
        """
        status = WiFiStatus()
        for line in lines:
            if line.startswith(PREFIX_STATUS):
                state = line[len(PREFIX_STATUS):]
                # "DISCONNECTED" contains "CONNECTED"
                status.connected = "CONNECTED" in state and "DISCONNECTED" not in state
            elif line.startswith(PREFIX_SSID):
                status.ssid = line[len(PREFIX_SSID):]
            elif line.startswith(PREFIX_IP):
                status.ip = line[len(PREFIX_IP):]
            elif line.startswith(PREFIX_RSSI):
                rssi = parse_leading_int(line[len(PREFIX_RSSI):])
                if rssi is None:
                    self.logger.debug(f"Dropping malformed RSSI line: {line}")
                    continue
                status.rssi = rssi
        return status

    def parse_network(self, line: str) -> Optional[NetworkRecord]:
        """
        Parses one "NETWORK:<ssid>:<rssi>:<OPEN|SECURED>" line.

        Returns:
            A NetworkRecord, or None if the line is not a well-formed record.
        """
        if not line.startswith(PREFIX_NETWORK):
            return None
        parts = line[len(PREFIX_NETWORK):].split(FIELD_SEPARATOR)
        if len(parts) < 3:
            self.logger.debug(f"Dropping malformed network line: {line}")
            return None
        rssi = parse_leading_int(parts[1])
        if rssi is None:
            self.logger.debug(f"Dropping network line with bad RSSI: {line}")
            return None
        return NetworkRecord(ssid=parts[0], rssi=rssi, secured=(parts[2] == SECURED_TOKEN))

    def parse_networks(self, lines: List[str]) -> List[NetworkRecord]:
        """
        Collects every well-formed NETWORK line, in arrival order.
        """
        networks = []
        for line in lines:
            record = self.parse_network(line)
            if record is not None:
                networks.append(record)
        return networks

    def first_ip(self, lines: List[str]) -> Optional[str]:
        """Returns the suffix of the first IP line, verbatim."""
        for line in lines:
            if line.startswith(PREFIX_IP):
                return line[len(PREFIX_IP):]
        return None

    def split_tcp_data(self, lines: List[str]) -> List[str]:
        """Returns the payloads of every TCPDATA line."""
        return [line[len(PREFIX_TCPDATA):] for line in lines if line.startswith(PREFIX_TCPDATA)]
