"""
exceptions.py

Error taxonomy for bridge operations.
"""


class BridgeError(Exception):
    """Base class for every error raised by the bridge client."""


class TransportError(BridgeError):
    """
    The serial device could not be opened or a write failed.
    The connection should be treated as unusable until reopened.
    """


class ProtocolTimeout(BridgeError):
    """No decisive response line arrived inside the read window."""


class ProtocolError(BridgeError):
    """
    The firmware answered with an ERROR line.

    Attributes:
        line: The raw response line, passed through for diagnostics.
    """

    def __init__(self, message: str, line: str = ""):
        super().__init__(message)
        self.line = line


class NoAddressError(BridgeError):
    """No IP line arrived inside the read window."""
