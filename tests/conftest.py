"""
Pytest configuration and fixtures for rabbit-observation tests.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Generator

import pytest
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from rabbit_observation.config import reset_config
from rabbit_observation.context import Message, MessageProperties, RabbitMessageReceiverContext
from rabbit_observation.logger import LOGGER_NAME


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolate_env() -> Generator[None, None, None]:
    """Clear RABBIT_OBSERVATION_* variables and the config singleton per test."""
    original: Dict[str, str] = {
        key: value
        for key, value in os.environ.items()
        if key.startswith("RABBIT_OBSERVATION_")
    }
    for key in original:
        del os.environ[key]
    reset_config()

    yield

    for key in [k for k in os.environ if k.startswith("RABBIT_OBSERVATION_")]:
        del os.environ[key]
    os.environ.update(original)
    reset_config()


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    """Drop handlers installed by configure_logging()."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ============================================================================
# Context Fixtures
# ============================================================================


def _make_message(
    source="orders-queue",
    exchange="",
    routing_key="orders.created",
    headers=None,
) -> Message:
    return Message(
        body=b'{"order": 1}',
        properties=MessageProperties(
            received_exchange=exchange,
            received_routing_key=routing_key,
            consumer_queue=source,
            headers=headers or {},
        ),
    )


def _make_context(
    listener_id="orders-listener",
    source="orders-queue",
    exchange="",
    routing_key="orders.created",
    headers=None,
) -> RabbitMessageReceiverContext:
    message = _make_message(source, exchange, routing_key, headers)
    return RabbitMessageReceiverContext(
        message=message, listener_id=listener_id, source=source
    )


@pytest.fixture
def make_message():
    """Factory for received messages."""
    return _make_message


@pytest.fixture
def make_context():
    """Factory for receiver contexts."""
    return _make_context


@pytest.fixture
def orders_context() -> RabbitMessageReceiverContext:
    """Receive of orders.created through the default exchange."""
    return _make_context()


# ============================================================================
# OpenTelemetry Fixtures
# ============================================================================


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> TracerProvider:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


@pytest.fixture
def metric_reader() -> InMemoryMetricReader:
    return InMemoryMetricReader()


@pytest.fixture
def meter_provider(metric_reader: InMemoryMetricReader) -> MeterProvider:
    return MeterProvider(metric_readers=[metric_reader])
