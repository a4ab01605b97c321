"""
Key catalog for RabbitMQ listener observations.

Defines the canonical low-cardinality attribute keys attached to every
listener receive observation, plus the small immutable key/value containers
conventions return.  Dashboards and trace queries are built against these
wire-names, so they must not change without a deprecation note.

Usage::

    from rabbit_observation.keys import KeyValues, ListenerLowCardinalityTags

    kvs = KeyValues.of(
        ListenerLowCardinalityTags.LISTENER_ID, "orders-listener",
        ListenerLowCardinalityTags.ROUTING_KEY, "orders.created",
    )
    kvs.to_dict()
    # {"spring.rabbit.listener.id": "orders-listener",
    #  "messaging.rabbitmq.destination.routing_key": "orders.created"}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

# Observation (and timer) name shared by the listener descriptor and conventions.
LISTENER_OBSERVATION_NAME = "spring.rabbit.listener"

REMOTE_SERVICE_NAME = "RabbitMQ"

MESSAGING_SYSTEM = "rabbitmq"


class ListenerLowCardinalityTags(str, Enum):
    """
    Low-cardinality tags for listener observations.

    Member order is the order attributes are presented in.
    """

    # Listener id.
    LISTENER_ID = "spring.rabbit.listener.id"

    # The exchange the listener is plugged to (empty if default exchange).
    EXCHANGE = "messaging.destination.name"

    # The routing key the listener is plugged to.
    ROUTING_KEY = "messaging.rabbitmq.destination.routing_key"

    def as_string(self) -> str:
        """Return the wire-name used as the attribute's external identifier."""
        return self.value


KeyLike = Union[ListenerLowCardinalityTags, str]


def _wire_name(key: KeyLike) -> str:
    if isinstance(key, ListenerLowCardinalityTags):
        return key.value
    return str(key)


@dataclass(frozen=True)
class KeyValue:
    """A single attribute: wire-name and string value."""

    key: str
    value: str

    @classmethod
    def of(cls, key: KeyLike, value: Any) -> "KeyValue":
        """Build a pair, substituting ``""`` for a missing value."""
        return cls(key=_wire_name(key), value="" if value is None else str(value))


def _merge(items: Tuple[KeyValue, ...], new: Iterable[KeyValue]) -> Tuple[KeyValue, ...]:
    # A repeated key keeps its first position and takes the latest value.
    merged: Dict[str, KeyValue] = {kv.key: kv for kv in items}
    for kv in new:
        merged[kv.key] = kv
    return tuple(merged.values())


@dataclass(frozen=True)
class KeyValues:
    """
    Ordered, immutable collection of ``KeyValue`` pairs.

    Produced once per receive event and handed to the telemetry sink by
    value.  ``and_()`` returns a new collection rather than mutating.
    """

    items: Tuple[KeyValue, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls) -> "KeyValues":
        return cls()

    @classmethod
    def of(cls, *pairs: Optional[Union[KeyLike, str]]) -> "KeyValues":
        """
        Build from alternating key/value arguments.

        Each key appears once; a repeated key replaces the earlier value.

        Example:
            KeyValues.of("a", "1", ListenerLowCardinalityTags.EXCHANGE, "")
        """
        if len(pairs) % 2:
            raise ValueError("KeyValues.of() needs an even number of arguments")
        return cls(
            items=_merge(
                (),
                (
                    KeyValue.of(pairs[i], pairs[i + 1])  # type: ignore[arg-type]
                    for i in range(0, len(pairs), 2)
                ),
            )
        )

    def and_(self, *pairs: Optional[Union[KeyLike, str]]) -> "KeyValues":
        """Return a new collection with ``pairs`` added or replacing existing keys."""
        return KeyValues(items=_merge(self.items, KeyValues.of(*pairs).items))

    def get(self, key: KeyLike) -> Optional[str]:
        name = _wire_name(key)
        for kv in self.items:
            if kv.key == name:
                return kv.value
        return None

    def keys(self) -> List[str]:
        return [kv.key for kv in self.items]

    def to_dict(self) -> Dict[str, str]:
        return {kv.key: kv.value for kv in self.items}

    def __iter__(self) -> Iterator[KeyValue]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)
