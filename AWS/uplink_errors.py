class MalformedEventError(ValueError):
    """Trigger event has no resolvable payload or device identity."""

    def __init__(self, reason):
        super().__init__(reason)
        self.reason = reason


class DecodeError(ValueError):
    """Payload bytes are malformed or too short for the layout."""


class SinkError(Exception):
    """A write to one of the two stores failed."""

    def __init__(self, sink, message):
        super().__init__(f"{sink} write failed: {message}")
        self.sink = sink
