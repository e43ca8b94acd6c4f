"""
Pytest configuration and shared fixtures for the test suite.
"""

import logging
import uuid
from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from src.web_tester.services.browser_session import BrowserSession


@pytest.fixture
def sample_run_id():
    """Generate a unique test run ID."""
    return f"run-{uuid.uuid4().hex[:8]}"


@pytest.fixture
def mock_page():
    """A Playwright page double with async methods and no browser behind it."""
    page = MagicMock()
    page.url = "https://example.com/"
    page.on = Mock()
    page.goto = AsyncMock(return_value=None)
    page.wait_for_selector = AsyncMock()
    page.query_selector = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"png-bytes")
    page.title = AsyncMock(return_value="Example")
    page.content = AsyncMock(return_value="<html></html>")
    page.evaluate = AsyncMock()
    return page


@pytest.fixture
def live_session(mock_page):
    """A BrowserSession whose page has already been opened."""
    session = BrowserSession(settle_delay_ms=0)
    session._page = mock_page
    return session


def make_element(text=None):
    """An ElementHandle double."""
    element = MagicMock()
    element.click = AsyncMock()
    element.type = AsyncMock()
    element.text_content = AsyncMock(return_value=text)
    return element


@pytest.fixture
def element_factory():
    return make_element


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Set up logging for tests."""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
