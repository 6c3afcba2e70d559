"""
service.py

Caller-level helpers built on WiFiBridgeClient: joining the strongest known
network and a periodic health check that reconnects when the link drops.
Retry policy lives here, not in the client.
"""

import logging
import time
from typing import Callable, Dict, Optional

from wifi_bridge.client import WiFiBridgeClient
from wifi_bridge.exceptions import BridgeError
from wifi_bridge.models import NetworkRecord

DEFAULT_MONITOR_INTERVAL = 30.0


def connect_strongest_known(client: WiFiBridgeClient, known_networks: Dict[str, str],
                            logger: Optional[logging.Logger] = None) -> Optional[NetworkRecord]:
    """
    Scans and joins the strongest network whose SSID has a known password.

    Args:
        client: An open bridge client.
        known_networks: Mapping of SSID to password.
        logger: Optional logger instance.

    Returns:
        The network joined, or None if no known network was seen.

    Raises:
        BridgeError: If the scan or the connect fails.
    """
    logger = logger or logging.getLogger(__name__)
    best: Optional[NetworkRecord] = None
    for network in client.scan():
        if network.ssid in known_networks and (best is None or network.rssi > best.rssi):
            best = network
    if best is None:
        logger.info("No known networks found")
        return None
    logger.info(f"Connecting to {best.ssid} (signal: {best.rssi} dBm)...")
    client.connect(best.ssid, known_networks[best.ssid])
    return best


class ConnectionMonitor:
    """
    Periodically checks the bridge status and rejoins the network when the
    link is lost.
    """

    def __init__(self, client: WiFiBridgeClient, ssid: str, password: str,
                 interval: float = DEFAULT_MONITOR_INTERVAL,
                 logger: Optional[logging.Logger] = None,
                 sleep: Callable[[float], None] = time.sleep):
        self.client = client
        self.ssid = ssid
        self.password = password
        self.interval = interval
        self.logger = logger or logging.getLogger(__name__)
        self._sleep = sleep
        self.reconnects = 0

    def check_once(self) -> bool:
        """
        Runs one health check.

        Returns:
            True if the bridge is connected after the check.
        """
        try:
            status = self.client.get_status()
        except BridgeError as e:
            self.logger.error(f"Error checking status: {e}")
            return False

        if status.connected:
            self.logger.info(f"Connected: {status.ssid}, IP: {status.ip}, Signal: {status.rssi} dBm")
            return True

        self.logger.warning("Connection lost! Attempting to reconnect...")
        try:
            self.client.connect(self.ssid, self.password)
        except BridgeError as e:
            self.logger.error(f"Reconnection failed: {e}")
            return False
        self.reconnects += 1
        self.logger.info("Reconnected successfully")
        return True

    def run(self, iterations: Optional[int] = None) -> None:
        """
        Runs health checks every interval seconds.

        Args:
            iterations: Number of checks to run, None to run forever.
        """
        count = 0
        while iterations is None or count < iterations:
            self._sleep(self.interval)
            self.check_once()
            count += 1
