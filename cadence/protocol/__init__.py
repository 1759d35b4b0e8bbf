"""
Protocol implementation for Cadence.

This package contains the MPD wire protocol layers:
- io: newline-terminated line framing over asyncio streams
- respmap: reply decoding into an ordered multimap
- records: splitting multi-record listing replies
- handlers: reply decoders bound to commands
- commands: the command model
- errors: the error taxonomy
"""

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
    "MpdError",
    "ProtocolError",
    "ResponseError",
    "TransportError",
]
