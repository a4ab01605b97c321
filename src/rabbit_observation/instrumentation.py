"""
Listener receive instrumentation.

``ListenerObservationSupport`` is the call site a listener container uses to
describe each received message to OpenTelemetry.  The active convention is
chosen once, when the support object is built: a custom convention if one was
supplied, otherwise the default.  It is never re-evaluated per message.

Usage::

    support = ListenerObservationSupport("orders-listener")

    def on_message(message: Message) -> None:
        with support.observe(message):
            handle(message)
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple

from opentelemetry import metrics, trace
from opentelemetry.propagate import extract
from opentelemetry.trace import SpanKind, Status, StatusCode

from rabbit_observation.config import ObservationConfig, get_config, load_convention
from rabbit_observation.context import (
    Message,
    RabbitMessageReceiverContext,
    header_getter,
)
from rabbit_observation.convention import RabbitListenerObservationConvention
from rabbit_observation.documentation import LISTENER_OBSERVATION
from rabbit_observation.keys import MESSAGING_SYSTEM, KeyValues

logger = logging.getLogger(__name__)

ERROR_KEY = "error"
NO_ERROR = "none"


def _check_key_values(kvs: Any) -> None:
    if not isinstance(kvs, KeyValues):
        raise TypeError(f"expected KeyValues, got {type(kvs).__name__}")
    for kv in kvs:
        if not isinstance(kv.key, str) or not isinstance(kv.value, str):
            raise TypeError(f"attribute {kv.key!r} must map a str key to a str value")


class ListenerObservationSupport:
    """
    Hands listener receive observations to OpenTelemetry.

    Args:
        listener_id: Identifier assigned to the listener at registration.
        convention: Custom convention; the default is used when omitted.
        tracer_provider: Tracer provider (global provider when omitted).
        meter_provider: Meter provider (global provider when omitted).
        enabled: When False, ``observe()`` records nothing.
        instrumentation_name: Scope name for the tracer and meter.
    """

    def __init__(
        self,
        listener_id: Optional[str],
        convention: Optional[RabbitListenerObservationConvention] = None,
        tracer_provider: Optional[trace.TracerProvider] = None,
        meter_provider: Optional[metrics.MeterProvider] = None,
        enabled: bool = True,
        instrumentation_name: str = "rabbit_observation",
    ):
        self.listener_id = listener_id
        self.enabled = enabled
        self.convention = LISTENER_OBSERVATION.resolve_convention(convention)
        self._observation_name = self.convention.get_name()

        self._tracer = trace.get_tracer(
            instrumentation_name, tracer_provider=tracer_provider
        )
        meter = metrics.get_meter(instrumentation_name, meter_provider=meter_provider)
        self._duration = meter.create_histogram(
            name=self._observation_name,
            unit="s",
            description="Time spent processing received messages",
        )

        logger.debug(
            "Listener observation ready: listener=%s convention=%s enabled=%s",
            listener_id,
            type(self.convention).__name__,
            enabled,
        )

    @classmethod
    def from_config(
        cls,
        listener_id: Optional[str],
        config: Optional[ObservationConfig] = None,
        **kwargs: Any,
    ) -> "ListenerObservationSupport":
        """
        Build from ``ObservationConfig``.

        An explicit ``convention`` keyword wins over the configured path.

        Raises:
            ConventionResolutionError: If the configured path is invalid.
        """
        config = config or get_config()
        if "convention" not in kwargs and config.convention:
            kwargs["convention"] = load_convention(config.convention)
        kwargs.setdefault("enabled", config.enabled)
        kwargs.setdefault("instrumentation_name", config.instrumentation_name)
        return cls(listener_id, **kwargs)

    def context_for(
        self, message: Message, source: Optional[str] = None
    ) -> RabbitMessageReceiverContext:
        return RabbitMessageReceiverContext.for_message(
            message, self.listener_id, source=source
        )

    def describe(
        self, context: RabbitMessageReceiverContext
    ) -> Tuple[str, KeyValues]:
        """
        Run the active convention for ``context``.

        Returns:
            ``(contextual_name, low_cardinality_key_values)``.  If a custom
            convention fails or returns the wrong types, the observation
            name and no attributes.
        """
        try:
            name = self.convention.get_contextual_name(context)
            low = self.convention.get_low_cardinality_key_values(context)
            if not isinstance(name, str):
                raise TypeError(f"contextual name must be str, got {type(name).__name__}")
            _check_key_values(low)
            return name, low
        except Exception:
            logger.warning(
                "Convention %s failed for listener %s",
                type(self.convention).__name__,
                self.listener_id,
                exc_info=True,
            )
            return self._observation_name, KeyValues.empty()

    def _high_cardinality(self, context: RabbitMessageReceiverContext) -> KeyValues:
        try:
            high = self.convention.get_high_cardinality_key_values(context)
            _check_key_values(high)
            return high
        except Exception:
            logger.warning(
                "Convention %s failed for listener %s",
                type(self.convention).__name__,
                self.listener_id,
                exc_info=True,
            )
            return KeyValues.empty()

    @contextmanager
    def observe(
        self, message: Message, source: Optional[str] = None
    ) -> Iterator[RabbitMessageReceiverContext]:
        """
        Observe processing of one received message.

        Opens a consumer span continuing any trace propagated in the message
        headers and records the processing duration.  Exceptions raised by
        the block are recorded and re-raised unchanged.
        """
        context = self.context_for(message, source=source)
        if not self.enabled:
            yield context
            return

        name, low = self.describe(context)
        high = self._high_cardinality(context)

        attributes = {"messaging.system": MESSAGING_SYSTEM}
        attributes.update(low.to_dict())
        attributes.update(high.to_dict())

        parent = extract(context, getter=header_getter)
        error = NO_ERROR
        start = time.perf_counter()
        with self._tracer.start_as_current_span(
            name,
            context=parent,
            kind=SpanKind.CONSUMER,
            attributes=attributes,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            try:
                yield context
            except Exception as e:
                error = type(e).__name__
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                raise
            finally:
                metric_attrs = low.to_dict()
                metric_attrs[ERROR_KEY] = error
                self._duration.record(time.perf_counter() - start, metric_attrs)
