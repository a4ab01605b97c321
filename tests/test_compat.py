"""Tests for the opt-in convention compatibility check."""

from __future__ import annotations

import logging

from rabbit_observation.compat import check_convention_compatibility
from rabbit_observation.convention import (
    DefaultRabbitListenerObservationConvention,
    RabbitListenerObservationConvention,
)
from rabbit_observation.keys import KeyValues, ListenerLowCardinalityTags


class _ExtraKey(RabbitListenerObservationConvention):
    def get_low_cardinality_key_values(self, context):
        return DefaultRabbitListenerObservationConvention.INSTANCE \
            .get_low_cardinality_key_values(context).and_("tenant", "acme")

    def get_contextual_name(self, context):
        return "extra"


class _DropsRoutingKey(RabbitListenerObservationConvention):
    def get_low_cardinality_key_values(self, context):
        return KeyValues.of(ListenerLowCardinalityTags.LISTENER_ID, context.listener_id)

    def get_contextual_name(self, context):
        return "dropped"


class _Reordered(RabbitListenerObservationConvention):
    def get_low_cardinality_key_values(self, context):
        return KeyValues.of(
            ListenerLowCardinalityTags.ROUTING_KEY, "k",
            ListenerLowCardinalityTags.EXCHANGE, "",
            ListenerLowCardinalityTags.LISTENER_ID, "l",
        )

    def get_contextual_name(self, context):
        return "reordered"


class TestCompatibility:
    def test_default_passes(self, orders_context):
        r = check_convention_compatibility(
            DefaultRabbitListenerObservationConvention.INSTANCE, orders_context
        )
        assert r.passed is True
        assert r.missing_keys == []
        assert r.extra_keys == []
        assert r.out_of_order is False
        assert r.convention == "DefaultRabbitListenerObservationConvention"
        assert r.contextual_name == "orders-queue receive"

    def test_extra_key_reported(self, orders_context):
        r = check_convention_compatibility(_ExtraKey(), orders_context)
        assert r.passed is True
        assert r.extra_keys == ["tenant"]

    def test_missing_key_fails(self, orders_context, caplog):
        with caplog.at_level(logging.WARNING, logger="rabbit_observation"):
            r = check_convention_compatibility(_DropsRoutingKey(), orders_context)
        assert r.passed is False
        assert r.missing_keys == [
            "messaging.destination.name",
            "messaging.rabbitmq.destination.routing_key",
        ]
        assert "missing documented keys" in caplog.text

    def test_order_reported(self, orders_context):
        r = check_convention_compatibility(_Reordered(), orders_context)
        assert r.passed is True
        assert r.out_of_order is True

    def test_custom_catalog(self, orders_context):
        r = check_convention_compatibility(
            _DropsRoutingKey(),
            orders_context,
            key_names=[ListenerLowCardinalityTags.LISTENER_ID],
        )
        assert r.passed is True

    def test_replacing_documented_value_keeps_order(self, orders_context):
        class _RenamesExchange(RabbitListenerObservationConvention):
            def get_low_cardinality_key_values(self, context):
                return DefaultRabbitListenerObservationConvention.INSTANCE \
                    .get_low_cardinality_key_values(context) \
                    .and_(ListenerLowCardinalityTags.EXCHANGE, "renamed")

            def get_contextual_name(self, context):
                return "renamed"

        r = check_convention_compatibility(_RenamesExchange(), orders_context)
        assert r.passed is True
        assert r.extra_keys == []
        assert r.out_of_order is False
