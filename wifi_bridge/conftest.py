"""
conftest.py

Shared pytest fixtures: a fake clock so read windows elapse instantly, a
scripted serial port, and a client wired to the in-process firmware.
"""

import socket
from typing import List, Optional

import pytest
import serial

from wifi_bridge.client import WiFiBridgeClient
from wifi_bridge.config import BridgeConfig
from wifi_bridge.device_simulator import simulated_serial_factory
from wifi_bridge.firmware import BridgeFirmware
from wifi_bridge.radio import SimulatedNetwork, SimulatedRadio
from wifi_bridge.transport import SerialTransport


class FakeClock:
    """Monotonic clock that only moves when something sleeps."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def monotonic(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class ScriptedPort:
    """
    Serial port stand-in that replays canned chunks from readline().
    An empty queue behaves like a read timeout.
    """

    def __init__(self, clock: FakeClock, chunks: Optional[List[bytes]] = None,
                 timeout: float = 1.0, **settings):
        self.clock = clock
        self.chunks = list(chunks or [])
        self.timeout = timeout
        self.settings = settings
        self.written = bytearray()
        self.is_open = True
        self.fail_writes = False
        self.close_calls = 0

    def write(self, data: bytes) -> int:
        if self.fail_writes:
            raise serial.SerialException("device disconnected")
        self.written.extend(data)
        return len(data)

    def flush(self) -> None:
        pass

    def readline(self) -> bytes:
        if self.chunks:
            return self.chunks.pop(0)
        self.clock.sleep(self.timeout)
        return b""

    def close(self) -> None:
        self.close_calls += 1
        self.is_open = False


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scripted(clock):
    """Returns (client, port) where port replays chunks appended to port.chunks."""
    ports = []

    def factory(port, **settings):
        scripted_port = ScriptedPort(clock, **settings)
        ports.append(scripted_port)
        return scripted_port

    transport = SerialTransport(BridgeConfig(port="scripted"), serial_factory=factory,
                                clock=clock.monotonic, sleep=clock.sleep)
    client = WiFiBridgeClient(transport=transport)
    yield client, ports[0]
    client.close()


@pytest.fixture
def radio():
    return SimulatedRadio([
        SimulatedNetwork(ssid="Home", rssi=-45, password="secret123", ip="192.168.1.42"),
        SimulatedNetwork(ssid="Guest", rssi=-60),
        SimulatedNetwork(ssid="TestNet", rssi=-52, password="secret123", ip="192.168.1.42"),
    ])


@pytest.fixture
def tcp_peer():
    """Socket pair standing in for a remote TCP server; yields (connector, peer)."""
    firmware_end, peer_end = socket.socketpair()
    connected = []

    def connector(host, port):
        connected.append((host, port))
        return firmware_end

    connector.connected = connected
    yield connector, peer_end
    peer_end.close()
    firmware_end.close()


@pytest.fixture
def firmware(radio, tcp_peer):
    connector, _ = tcp_peer
    return BridgeFirmware(radio, tcp_connector=connector, sleep=lambda seconds: None)


@pytest.fixture
def client(firmware, clock):
    transport = SerialTransport(BridgeConfig(port="sim://bridge"),
                                serial_factory=simulated_serial_factory(firmware, sleep=clock.sleep),
                                clock=clock.monotonic, sleep=clock.sleep)
    bridge = WiFiBridgeClient(transport=transport)
    yield bridge
    bridge.close()
