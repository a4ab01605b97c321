"""Tests for the listener observation descriptor and override point."""

from __future__ import annotations

import dataclasses

import pytest

from rabbit_observation.convention import (
    DefaultRabbitListenerObservationConvention,
    RabbitListenerObservationConvention,
)
from rabbit_observation.documentation import LISTENER_OBSERVATION, ObservationDocumentation
from rabbit_observation.keys import KeyValues, ListenerLowCardinalityTags


class _Custom(RabbitListenerObservationConvention):
    def get_low_cardinality_key_values(self, context):
        return KeyValues.empty()

    def get_contextual_name(self, context):
        return "custom"


class TestListenerObservation:
    def test_prefix_and_name(self):
        assert LISTENER_OBSERVATION.prefix == "spring.rabbit.listener"
        assert LISTENER_OBSERVATION.name == "spring.rabbit.listener"

    def test_key_catalog(self):
        assert LISTENER_OBSERVATION.low_cardinality_key_names == tuple(ListenerLowCardinalityTags)
        assert LISTENER_OBSERVATION.key_wire_names() == (
            "spring.rabbit.listener.id",
            "messaging.destination.name",
            "messaging.rabbitmq.destination.routing_key",
        )
        assert LISTENER_OBSERVATION.high_cardinality_key_names == ()

    def test_default_convention_is_singleton(self):
        assert LISTENER_OBSERVATION.default_convention_class is DefaultRabbitListenerObservationConvention
        assert LISTENER_OBSERVATION.default_convention() is DefaultRabbitListenerObservationConvention.INSTANCE

    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            LISTENER_OBSERVATION.prefix = "other"  # type: ignore[misc]


class TestResolveConvention:
    def test_default_when_no_custom(self):
        assert LISTENER_OBSERVATION.resolve_convention() is DefaultRabbitListenerObservationConvention.INSTANCE
        assert LISTENER_OBSERVATION.resolve_convention(None) is DefaultRabbitListenerObservationConvention.INSTANCE

    def test_custom_preferred(self):
        custom = _Custom()
        assert LISTENER_OBSERVATION.resolve_convention(custom) is custom

    def test_non_convention_rejected(self):
        with pytest.raises(TypeError):
            LISTENER_OBSERVATION.resolve_convention(object())  # type: ignore[arg-type]

    def test_default_convention_without_instance(self):
        doc = ObservationDocumentation(
            name="x",
            prefix="x",
            default_convention_class=_Custom,
            low_cardinality_key_names=(),
        )
        conv = doc.default_convention()
        assert isinstance(conv, _Custom)
        assert doc.default_convention() is not conv
