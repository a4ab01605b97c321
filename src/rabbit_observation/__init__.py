"""
rabbit-observation - observation conventions for RabbitMQ listeners.

Describes each message a listener receives to OpenTelemetry: a stable set of
low-cardinality attributes and a human-readable span name, derived by a
pluggable convention.

Public API::

    from rabbit_observation import (
        # Key catalog
        ListenerLowCardinalityTags,
        KeyValue,
        KeyValues,
        # Context
        Message,
        MessageProperties,
        RabbitMessageReceiverContext,
        # Conventions
        RabbitListenerObservationConvention,
        DefaultRabbitListenerObservationConvention,
        # Descriptor
        ObservationDocumentation,
        LISTENER_OBSERVATION,
        # Instrumentation
        ListenerObservationSupport,
    )

Usage::

    support = ListenerObservationSupport("orders-listener")
    with support.observe(message):
        handle(message)
"""

from rabbit_observation.compat import (
    ConventionCompatibilityResult,
    check_convention_compatibility,
)
from rabbit_observation.config import (
    ConventionResolutionError,
    ObservationConfig,
    get_config,
    load_convention,
    reset_config,
)
from rabbit_observation.context import (
    Message,
    MessageHeaderGetter,
    MessageProperties,
    RabbitMessageReceiverContext,
)
from rabbit_observation.convention import (
    DefaultRabbitListenerObservationConvention,
    RabbitListenerObservationConvention,
)
from rabbit_observation.documentation import (
    LISTENER_OBSERVATION,
    ObservationDocumentation,
)
from rabbit_observation.instrumentation import ListenerObservationSupport
from rabbit_observation.keys import (
    LISTENER_OBSERVATION_NAME,
    KeyValue,
    KeyValues,
    ListenerLowCardinalityTags,
)
from rabbit_observation.logger import configure_logging

__version__ = "0.1.0"
__all__ = [
    # Keys
    "ListenerLowCardinalityTags",
    "KeyValue",
    "KeyValues",
    "LISTENER_OBSERVATION_NAME",
    # Context
    "Message",
    "MessageProperties",
    "RabbitMessageReceiverContext",
    "MessageHeaderGetter",
    # Conventions
    "RabbitListenerObservationConvention",
    "DefaultRabbitListenerObservationConvention",
    # Descriptor
    "ObservationDocumentation",
    "LISTENER_OBSERVATION",
    # Instrumentation
    "ListenerObservationSupport",
    # Config
    "ObservationConfig",
    "ConventionResolutionError",
    "get_config",
    "reset_config",
    "load_convention",
    # Compatibility
    "ConventionCompatibilityResult",
    "check_convention_compatibility",
    # Logging
    "configure_logging",
]
