"""
Observation conventions for RabbitMQ listeners.

A convention turns a ``RabbitMessageReceiverContext`` into the attributes and
display name of a receive observation.  ``DefaultRabbitListenerObservationConvention``
is used unless the integrator supplies their own subclass of
``RabbitListenerObservationConvention``.

Conventions must be stateless: they read only the context passed in and
return freshly built values, so one instance is shared by every concurrently
dispatched message.

Usage::

    from rabbit_observation.convention import (
        DefaultRabbitListenerObservationConvention,
        RabbitListenerObservationConvention,
    )

    class TenantConvention(RabbitListenerObservationConvention):
        def get_low_cardinality_key_values(self, context):
            return DefaultRabbitListenerObservationConvention.INSTANCE \\
                .get_low_cardinality_key_values(context) \\
                .and_("tenant", context.get_header("tenant"))

        def get_contextual_name(self, context):
            return f"{context.source} process"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from rabbit_observation.context import RabbitMessageReceiverContext
from rabbit_observation.keys import (
    LISTENER_OBSERVATION_NAME,
    KeyValues,
    ListenerLowCardinalityTags,
)


class RabbitListenerObservationConvention(ABC):
    """Contract for deriving listener observation names and attributes."""

    @abstractmethod
    def get_low_cardinality_key_values(
        self, context: RabbitMessageReceiverContext
    ) -> KeyValues:
        """Attributes safe to use as metric dimensions."""

    @abstractmethod
    def get_contextual_name(self, context: RabbitMessageReceiverContext) -> str:
        """Human-readable name for the span of this receive event."""

    def get_high_cardinality_key_values(
        self, context: RabbitMessageReceiverContext
    ) -> KeyValues:
        """Attributes recorded on spans only; none by default."""
        return KeyValues.empty()

    def get_name(self) -> str:
        """Observation name, also used as the duration metric name."""
        return LISTENER_OBSERVATION_NAME

    def supports_context(self, context: Any) -> bool:
        return isinstance(context, RabbitMessageReceiverContext)


class DefaultRabbitListenerObservationConvention(RabbitListenerObservationConvention):
    """
    Default convention for listener key values.

    Emits one value per ``ListenerLowCardinalityTags`` member, in catalog
    order.  Missing values become empty strings; an empty exchange name
    (the default exchange) is passed through as-is.
    """

    INSTANCE: ClassVar["DefaultRabbitListenerObservationConvention"]

    def get_low_cardinality_key_values(
        self, context: RabbitMessageReceiverContext
    ) -> KeyValues:
        properties = context.message.properties
        return KeyValues.of(
            ListenerLowCardinalityTags.LISTENER_ID, context.listener_id,
            ListenerLowCardinalityTags.EXCHANGE, properties.received_exchange,
            ListenerLowCardinalityTags.ROUTING_KEY, properties.received_routing_key,
        )

    def get_contextual_name(self, context: RabbitMessageReceiverContext) -> str:
        return (context.source or "") + " receive"


DefaultRabbitListenerObservationConvention.INSTANCE = (
    DefaultRabbitListenerObservationConvention()
)
