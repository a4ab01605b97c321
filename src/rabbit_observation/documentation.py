"""
Observation descriptor for RabbitMQ listeners.

``LISTENER_OBSERVATION`` declares the listener receive observation: its name
and prefix, the default convention, and the low-cardinality key catalog.
It is process-wide, immutable configuration evaluated once at import.

``resolve_convention()`` is the override point.  The dispatch layer calls it
once during setup; the convention it returns is used for every message that
listener receives afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Type

from rabbit_observation.convention import (
    DefaultRabbitListenerObservationConvention,
    RabbitListenerObservationConvention,
)
from rabbit_observation.keys import (
    LISTENER_OBSERVATION_NAME,
    ListenerLowCardinalityTags,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObservationDocumentation:
    """Declarative description of one observable operation."""

    name: str
    prefix: str
    default_convention_class: Type[RabbitListenerObservationConvention]
    low_cardinality_key_names: Tuple[ListenerLowCardinalityTags, ...]
    high_cardinality_key_names: Tuple[str, ...] = ()

    def default_convention(self) -> RabbitListenerObservationConvention:
        """Return the shared default convention instance."""
        instance = getattr(self.default_convention_class, "INSTANCE", None)
        if isinstance(instance, self.default_convention_class):
            return instance
        return self.default_convention_class()

    def resolve_convention(
        self, custom: Optional[RabbitListenerObservationConvention] = None
    ) -> RabbitListenerObservationConvention:
        """
        Select the active convention: ``custom`` if given, else the default.

        Raises:
            TypeError: If ``custom`` is not a listener observation convention.
        """
        if custom is None:
            return self.default_convention()
        if not isinstance(custom, RabbitListenerObservationConvention):
            raise TypeError(
                f"Expected a RabbitListenerObservationConvention, "
                f"got {type(custom).__name__}"
            )
        logger.debug(
            "Using custom convention %s for observation %s",
            type(custom).__name__,
            self.name,
        )
        return custom

    def key_wire_names(self) -> Tuple[str, ...]:
        return tuple(key.as_string() for key in self.low_cardinality_key_names)


# Observation for Rabbit listeners.
LISTENER_OBSERVATION = ObservationDocumentation(
    name=LISTENER_OBSERVATION_NAME,
    prefix="spring.rabbit.listener",
    default_convention_class=DefaultRabbitListenerObservationConvention,
    low_cardinality_key_names=tuple(ListenerLowCardinalityTags),
)
