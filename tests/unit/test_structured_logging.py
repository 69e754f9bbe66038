"""Tests for structured logging."""
import structlog

from salon_booking.logging_config import bind_request_id, generate_request_id, get_logger, setup_structured_logging


class TestStructuredLogging:
    """Test structured logging with request IDs."""

    def test_logger_methods_work(self):
        """Should have working log methods."""
        setup_structured_logging(log_level="INFO")
        logger = get_logger(__name__)

        # These should not raise
        logger.info("test_info", tenant_id="salon-farah")
        logger.warning("test_warning")
        logger.error("test_error", error="boom")

    def test_console_format(self):
        setup_structured_logging(log_level="DEBUG", log_format="console")

        get_logger(__name__).debug("test_console", booking_id="BK-salon-farah-20251010-001")

        setup_structured_logging(log_level="INFO")

    def test_generate_request_id_format(self):
        request_id = generate_request_id()

        assert request_id.startswith("req-")
        assert len(request_id) == 16  # "req-" + 12 hex chars
        int(request_id[4:], 16)
        assert generate_request_id() != request_id

    def test_bind_request_id_replaces_context(self):
        structlog.contextvars.bind_contextvars(stale="value")

        bind_request_id("req-0123456789ab")

        assert structlog.contextvars.get_contextvars() == {"request_id": "req-0123456789ab"}
        structlog.contextvars.clear_contextvars()
