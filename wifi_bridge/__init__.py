# wifi_bridge/__init__.py
from wifi_bridge.client import WiFiBridgeClient
from wifi_bridge.config import BridgeConfig, setup_logging
from wifi_bridge.exceptions import (
    BridgeError,
    NoAddressError,
    ProtocolError,
    ProtocolTimeout,
    TransportError,
)
from wifi_bridge.models import BridgeCommand, BridgeResponse, NetworkRecord, WiFiStatus

__all__ = [
    "WiFiBridgeClient",
    "BridgeConfig",
    "setup_logging",
    "BridgeError",
    "NoAddressError",
    "ProtocolError",
    "ProtocolTimeout",
    "TransportError",
    "BridgeCommand",
    "BridgeResponse",
    "NetworkRecord",
    "WiFiStatus",
]
