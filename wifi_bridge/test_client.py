"""
Tests for WiFiBridgeClient, mostly run end to end against the in-process firmware.
"""

import pytest

from wifi_bridge.client import WiFiBridgeClient
from wifi_bridge.config import BridgeConfig
from wifi_bridge.device_simulator import simulated_serial_factory
from wifi_bridge.exceptions import NoAddressError, ProtocolError, ProtocolTimeout, TransportError
from wifi_bridge.firmware import BridgeFirmware
from wifi_bridge.models import NetworkRecord, WiFiStatus
from wifi_bridge.radio import SimulatedNetwork, SimulatedRadio
from wifi_bridge.transport import SerialTransport


def test_connect_then_get_ip(client):
    client.connect("TestNet", "secret123")
    port = client.transport.ser
    assert b"CONNECT:TestNet:secret123\n" in bytes(port.written)
    assert client.get_ip() == "192.168.1.42"


def test_connect_wrong_password_is_protocol_error(client):
    with pytest.raises(ProtocolError) as excinfo:
        client.connect("Home", "nope")
    assert excinfo.value.line == "ERROR:Connection failed"


def test_connect_without_response_times_out(scripted):
    client, port = scripted
    with pytest.raises(ProtocolTimeout):
        client.connect("Home", "secret123")
    assert bytes(port.written) == b"CONNECT:Home:secret123\n"


def test_connect_first_decisive_line_wins(scripted):
    client, port = scripted
    port.chunks = [b"CONNECTING:Home\n", b"OK:Connected\n", b"ERROR:later\n"]
    client.connect("Home", "secret123")

    port.chunks = [b"ERROR:Connection failed\n", b"OK:Connected\n"]
    with pytest.raises(ProtocolError):
        client.connect("Home", "secret123")


def test_slow_join_reported_after_window_is_a_timeout(clock):
    radio = SimulatedRadio([SimulatedNetwork(ssid="Slow", rssi=-80, join_polls=12)])
    firmware = BridgeFirmware(radio, sleep=clock.sleep)
    transport = SerialTransport(BridgeConfig(port="sim://bridge"),
                                serial_factory=simulated_serial_factory(firmware, sleep=clock.sleep),
                                clock=clock.monotonic, sleep=clock.sleep)
    with WiFiBridgeClient(transport=transport) as client:
        with pytest.raises(ProtocolTimeout):
            client.connect("Slow", "")
        # The late result is still on the wire and shows up in the next window.
        assert "OK:Connected" in client.read_lines(1.0)


def test_get_status_connected(client):
    assert client.get_status() == WiFiStatus()
    client.connect("Home", "secret123")
    assert client.get_status() == WiFiStatus(connected=True, ssid="Home", ip="192.168.1.42", rssi=-45)


def test_status_is_not_cached(client, radio):
    client.connect("Home", "secret123")
    assert client.get_status().connected
    radio.drop()
    assert not client.get_status().connected


def test_scan_returns_records_in_firmware_order(client):
    assert client.scan() == [
        NetworkRecord(ssid="Home", rssi=-45, secured=True),
        NetworkRecord(ssid="Guest", rssi=-60, secured=False),
        NetworkRecord(ssid="TestNet", rssi=-52, secured=True),
    ]


def test_scan_with_no_networks(clock):
    firmware = BridgeFirmware(SimulatedRadio([]), sleep=lambda seconds: None)
    transport = SerialTransport(BridgeConfig(port="sim://bridge"),
                                serial_factory=simulated_serial_factory(firmware, sleep=clock.sleep),
                                clock=clock.monotonic, sleep=clock.sleep)
    with WiFiBridgeClient(transport=transport) as client:
        assert client.scan() == []


def test_non_ascii_ssid_and_password(clock):
    radio = SimulatedRadio([SimulatedNetwork(ssid="Café", rssi=-50, password="päss", ip="10.0.0.7")])
    firmware = BridgeFirmware(radio, sleep=lambda seconds: None)
    transport = SerialTransport(BridgeConfig(port="sim://bridge"),
                                serial_factory=simulated_serial_factory(firmware, sleep=clock.sleep),
                                clock=clock.monotonic, sleep=clock.sleep)
    with WiFiBridgeClient(transport=transport) as client:
        assert client.scan() == [NetworkRecord(ssid="Café", rssi=-50, secured=True)]
        client.connect("Café", "päss")
        assert bytes(client.transport.ser.written).endswith("CONNECT:Café:päss\n".encode("utf-8"))
        assert client.get_status() == WiFiStatus(connected=True, ssid="Café", ip="10.0.0.7", rssi=-50)


def test_get_ip_without_address(client):
    with pytest.raises(NoAddressError):
        client.get_ip()


def test_disconnect_is_fire_and_forget(client):
    client.connect("Home", "secret123")
    client.disconnect()
    assert bytes(client.transport.ser.written).endswith(b"DISCONNECT\n")
    assert client.get_status() == WiFiStatus()


def test_tcp_session_round_trip(client, tcp_peer):
    connector, peer = tcp_peer
    client.tcp_connect("example.com", 80)
    assert connector.connected == [("example.com", 80)]

    client.tcp_send("GET / HTTP/1.1")
    client.read_tcp_data(1.0)
    assert peer.recv(1024) == b"GET / HTTP/1.1"

    peer.sendall(b"HTTP/1.1 200 OK")
    assert client.read_tcp_data(1.0) == ["HTTP/1.1 200 OK"]
    assert client.read_tcp_data() == []

    client.tcp_close()
    assert "OK:TCP connection closed" in client.read_lines(1.0)


def test_tcp_data_interleaved_with_command_response(client, tcp_peer):
    _, peer = tcp_peer
    client.tcp_connect("example.com", 80)
    peer.sendall(b"pushed")
    status = client.get_status()
    assert status.connected is False
    assert client.read_tcp_data() == ["pushed"]


def test_tcp_connect_failure(clock, radio):
    def refuse(host, port):
        raise ConnectionRefusedError(f"{host}:{port} refused")

    firmware = BridgeFirmware(radio, tcp_connector=refuse, sleep=lambda seconds: None)
    transport = SerialTransport(BridgeConfig(port="sim://bridge"),
                                serial_factory=simulated_serial_factory(firmware, sleep=clock.sleep),
                                clock=clock.monotonic, sleep=clock.sleep)
    with WiFiBridgeClient(transport=transport) as client:
        with pytest.raises(ProtocolError, match="TCP connection failed"):
            client.tcp_connect("10.0.0.1", 9)


def test_tcp_connect_timeout(scripted):
    client, _ = scripted
    with pytest.raises(ProtocolTimeout):
        client.tcp_connect("example.com", 80)


def test_write_failure_surfaces_transport_error(client):
    client.transport.ser.fail_writes = True
    with pytest.raises(TransportError):
        client.get_status()


def test_open_failure(clock):
    def factory(port, **settings):
        raise OSError(2, "No such file or directory")

    transport = SerialTransport(BridgeConfig(port="/dev/ttyS9"), serial_factory=factory,
                                clock=clock.monotonic, sleep=clock.sleep)
    with pytest.raises(TransportError):
        WiFiBridgeClient(transport=transport)


def test_close_is_idempotent(client):
    client.close()
    client.close()
    assert not client.is_open
    with pytest.raises(TransportError):
        client.get_status()


def test_read_lines_after_close_raises(client, clock):
    client.close()
    start = clock.now
    with pytest.raises(TransportError, match="Not connected"):
        client.read_lines(1.0)
    assert clock.now == start
    assert client.read_tcp_data(1.0) == []
