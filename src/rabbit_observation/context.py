"""
Receiver context for listener observations.

The dispatch layer builds one ``RabbitMessageReceiverContext`` per received
message, immediately before opening the observation, and hands it to the
active convention.  Models are frozen: a context is read-only once built.

No validation is performed on identifiers.  ``None`` or empty values pass
through unchanged and are turned into empty strings by the convention.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from opentelemetry.propagators.textmap import Getter
from pydantic import BaseModel, ConfigDict, Field

from rabbit_observation.keys import REMOTE_SERVICE_NAME


class MessageProperties(BaseModel):
    """Broker-supplied metadata for a received message."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    received_exchange: Optional[str] = Field(
        None, description="Exchange the message arrived through ('' for the default exchange)"
    )
    received_routing_key: Optional[str] = Field(
        None, description="Routing key the message was published with"
    )
    consumer_queue: Optional[str] = Field(
        None, description="Queue the listener consumed the message from"
    )
    consumer_tag: Optional[str] = None
    delivery_tag: Optional[int] = None
    message_id: Optional[str] = None
    correlation_id: Optional[str] = None
    content_type: Optional[str] = None
    headers: Dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """A received message.  The body is opaque to observation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    body: bytes = b""
    properties: MessageProperties = Field(default_factory=MessageProperties)


class RabbitMessageReceiverContext(BaseModel):
    """Per-receive bundle read by listener observation conventions."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    message: Message
    listener_id: Optional[str] = Field(
        ..., description="Listener identifier assigned at registration time"
    )
    source: Optional[str] = Field(
        ..., description="Human-readable source label, used for the contextual name"
    )
    remote_service_name: str = REMOTE_SERVICE_NAME

    @classmethod
    def for_message(
        cls,
        message: Message,
        listener_id: Optional[str],
        source: Optional[str] = None,
    ) -> "RabbitMessageReceiverContext":
        """
        Build a context for ``message``.

        Args:
            message: The message currently being processed.
            listener_id: Identifier of the listener receiving it.
            source: Source label; defaults to the consumer queue.
        """
        if source is None:
            source = message.properties.consumer_queue or ""
        return cls(message=message, listener_id=listener_id, source=source)

    def get_header(self, key: str) -> Optional[str]:
        value = self.message.properties.headers.get(key)
        if value is None:
            return None
        # AMQP clients commonly deliver string headers as bytes.
        if isinstance(value, (bytes, bytearray)):
            return bytes(value).decode("utf-8", errors="replace")
        return str(value)


class MessageHeaderGetter(Getter[RabbitMessageReceiverContext]):
    """Reads trace propagation fields from the message headers."""

    def get(
        self, carrier: RabbitMessageReceiverContext, key: str
    ) -> Optional[List[str]]:
        value = carrier.get_header(key)
        return None if value is None else [value]

    def keys(self, carrier: RabbitMessageReceiverContext) -> List[str]:
        return list(carrier.message.properties.headers.keys())


header_getter = MessageHeaderGetter()
