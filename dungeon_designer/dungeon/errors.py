"""Exceptions raised by the generator core.

Degraded-but-valid outcomes (no room candidate fits, no corridor path exists)
are never raised; they surface only in event reasons. Everything here signals a
broken internal invariant or malformed configuration.
"""


class GenerationInvariantError(RuntimeError):
    """An internal id or structure that must exist does not."""


class UnknownPartitionError(GenerationInvariantError, KeyError):
    def __init__(self, partition_id):
        super().__init__(f"Missing partition node {partition_id}")
        self.partition_id = partition_id


class UnknownRoomError(GenerationInvariantError, KeyError):
    def __init__(self, room_id):
        super().__init__(f"Missing room {room_id}")
        self.room_id = room_id


class UnknownItemError(KeyError):
    """Disjoint-set lookup for an item that was never registered."""

    def __init__(self, item):
        super().__init__(f"DisjointSet: missing item {item}")
        self.item = item


class ConfigError(ValueError):
    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


__all__ = [
    "GenerationInvariantError",
    "UnknownPartitionError",
    "UnknownRoomError",
    "UnknownItemError",
    "ConfigError",
]
