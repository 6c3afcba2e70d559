#!/usr/bin/env python3
"""
radio.py

Defines the abstract radio interface the bridge firmware drives, plus a
simulated radio for running the firmware without hardware.

Usage Example:
    radio = SimulatedRadio([
        SimulatedNetwork(ssid="Home", rssi=-45, password="secret"),
        SimulatedNetwork(ssid="Guest", rssi=-60),
    ])
    radio.begin("Home", "secret")
    radio.is_connected()
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class ScanResult:
    """One access point seen by a radio scan."""
    ssid: str
    rssi: int
    open: bool


class WiFiRadio(ABC):
    """
    Abstract station-mode radio. The firmware only talks to the radio
    through this interface.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def begin(self, ssid: str, password: str) -> None:
        """Starts joining a network. Completion is observed via is_connected()."""
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    def disconnect(self) -> None:
        pass

    @abstractmethod
    def ssid(self) -> str:
        pass

    @abstractmethod
    def rssi(self) -> int:
        pass

    @abstractmethod
    def local_ip(self) -> str:
        pass

    @abstractmethod
    def scan_networks(self) -> List[ScanResult]:
        pass


@dataclass
class SimulatedNetwork:
    """
    An access point known to the simulated radio.

    Attributes:
        ssid: Network name.
        rssi: Signal strength in dBm.
        password: Required password, None for an open network.
        ip: Address handed out on association.
        join_polls: Status polls that report "not yet" before association completes.
        reachable: False to make the network visible to scans but never joinable.
    """
    ssid: str
    rssi: int
    password: Optional[str] = None
    ip: str = "192.168.1.42"
    join_polls: int = 0
    reachable: bool = True


class SimulatedRadio(WiFiRadio):
    """
    In-memory radio with a fixed set of networks.
    """

    def __init__(self, networks: Optional[List[SimulatedNetwork]] = None,
                 logger: Optional[logging.Logger] = None):
        super().__init__(logger)
        self.networks: List[SimulatedNetwork] = list(networks or [])
        self._joining: Optional[SimulatedNetwork] = None
        self._polls_left = 0
        self._associated: Optional[SimulatedNetwork] = None

    def _find(self, ssid: str) -> Optional[SimulatedNetwork]:
        for network in self.networks:
            if network.ssid == ssid:
                return network
        return None

    def begin(self, ssid: str, password: str) -> None:
        self._associated = None
        self._joining = None
        network = self._find(ssid)
        if network is None or not network.reachable:
            self.logger.debug(f"Simulated radio: {ssid} not reachable")
            return
        if network.password is not None and network.password != password:
            self.logger.debug(f"Simulated radio: wrong password for {ssid}")
            return
        self._joining = network
        self._polls_left = network.join_polls

    def is_connected(self) -> bool:
        if self._joining is not None:
            if self._polls_left <= 0:
                self._associated, self._joining = self._joining, None
            else:
                self._polls_left -= 1
        return self._associated is not None

    def disconnect(self) -> None:
        self._joining = None
        self._associated = None

    def drop(self) -> None:
        """Simulates losing the access point."""
        self.disconnect()

    def ssid(self) -> str:
        return self._associated.ssid if self._associated else ""

    def rssi(self) -> int:
        return self._associated.rssi if self._associated else 0

    def local_ip(self) -> str:
        return self._associated.ip if self._associated else "0.0.0.0"

    def scan_networks(self) -> List[ScanResult]:
        return [ScanResult(ssid=n.ssid, rssi=n.rssi, open=n.password is None) for n in self.networks]
