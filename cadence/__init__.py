"""
Cadence - An asynchronous client for the Music Player Daemon (MPD).

Cadence speaks MPD's line protocol over a single persistent connection,
decodes replies into typed dataclasses and reports connection loss as a
dedicated error so applications can reconnect on their own terms.
"""

__version__ = "0.1.0"
__author__ = "Cadence Contributors"
__license__ = "MIT"

from cadence.client import MpdClient
from cadence.core.filter import Filter, Tag
from cadence.protocol.errors import (
    CommandError,
    Disconnected,
    FieldValueError,
    MpdError,
    ProtocolError,
    ResponseError,
    TransportError,
)

__all__ = [
    "CommandError",
    "Disconnected",
    "FieldValueError",
    "Filter",
    "MpdClient",
    "MpdError",
    "ProtocolError",
    "ResponseError",
    "Tag",
    "TransportError",
    "__version__",
]
