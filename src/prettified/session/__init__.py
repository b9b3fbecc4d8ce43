"""Stream message bus shared by the decoders and the render loop."""

from prettified.session.wire import EventType, Wire, WireEvent

__all__ = [
    "EventType",
    "Wire",
    "WireEvent",
]
