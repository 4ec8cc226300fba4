"""Unit tests for logging and tracing helpers."""

import logging
import os
from unittest.mock import patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode
from pythonjsonlogger import jsonlogger

from campus_bites.exceptions import InvalidTransitionError
from campus_bites.observability import configure_logging
from campus_bites.observability.decorators import traced


@pytest.fixture
def exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def provider(exporter: InMemorySpanExporter) -> TracerProvider:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider


@pytest.mark.unit
class TestTraced:
    """Test suite for the traced decorator."""

    def test_sync_success(self, provider: TracerProvider, exporter: InMemorySpanExporter) -> None:
        with patch("campus_bites.observability.decorators.trace.get_tracer", provider.get_tracer):

            @traced("orders.total")
            def total(a: int, b: int) -> int:
                return a + b

        assert total(2, 3) == 5
        (span,) = exporter.get_finished_spans()
        assert span.name == "orders.total"
        assert span.attributes["success"] is True
        assert span.attributes["function.name"] == "total"

    @pytest.mark.asyncio
    async def test_async_unexpected_error(
        self, provider: TracerProvider, exporter: InMemorySpanExporter
    ) -> None:
        with patch("campus_bites.observability.decorators.trace.get_tracer", provider.get_tracer):

            @traced()
            async def load() -> None:
                raise RuntimeError("table missing")

        with pytest.raises(RuntimeError):
            await load()

        (span,) = exporter.get_finished_spans()
        assert span.name == "load"
        assert span.attributes["success"] is False
        assert span.attributes["error.type"] == "RuntimeError"
        assert any(event.name == "exception" for event in span.events)
        assert span.status.status_code == StatusCode.ERROR

    @pytest.mark.asyncio
    async def test_domain_error_not_recorded_as_exception(
        self, provider: TracerProvider, exporter: InMemorySpanExporter
    ) -> None:
        with patch("campus_bites.observability.decorators.trace.get_tracer", provider.get_tracer):

            @traced("orders.update_status")
            async def update() -> None:
                raise InvalidTransitionError("Completed", "Preparing", [])

        with pytest.raises(InvalidTransitionError):
            await update()

        (span,) = exporter.get_finished_spans()
        assert span.attributes["error.type"] == "InvalidTransitionError"
        assert not any(event.name == "exception" for event in span.events)
        assert span.status.status_code == StatusCode.UNSET


@pytest.mark.unit
class TestConfigureLogging:
    """Test suite for configure_logging."""

    def setup_method(self) -> None:
        root_logger = logging.getLogger()
        self._handlers = root_logger.handlers[:]
        self._level = root_logger.level

    def teardown_method(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers[:] = self._handlers
        root_logger.setLevel(self._level)

    @patch.dict(os.environ, {"LOG_LEVEL": "debug"})
    def test_env_level_wins(self) -> None:
        configure_logging("INFO")

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, jsonlogger.JsonFormatter)

    @patch.dict(os.environ, {}, clear=True)
    def test_unknown_level_falls_back_to_info(self) -> None:
        configure_logging("LOUD")

        assert logging.getLogger().level == logging.INFO
