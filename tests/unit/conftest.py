"""Fixtures for unit tests."""

from typing import Generator

import pytest
import structlog

from .utils import FakeHostingClient, SleepRecorder


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Route structlog through the standard library so caplog sees fork sync log events."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    """A sleep function that records delays instead of waiting."""
    return SleepRecorder()


@pytest.fixture
def hosting_client() -> FakeHostingClient:
    """An empty in-memory hosting platform for the octocat account."""
    return FakeHostingClient(account="octocat")
