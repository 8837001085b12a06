"""
Pytest configuration and shared fixtures
"""

from unittest.mock import Mock

import pytest

from networking.config import Config
from networking.dispatcher import Dispatcher
from networking.events import EventBus
from tests.test_helpers import OutcomeCollector


@pytest.fixture
def test_config():
    """Minimal test configuration"""
    return Config(
        {
            "networking": {
                "request": {
                    "default_timeout": 10.0,
                    "content_type": "application/json",
                    "language_parameter": "lang",
                    "signature_parameter": "signature",
                },
                "dispatch": {
                    "max_workers": 2,
                    "suspended_event": "SUSPENDACCOUNT",
                    "login_marker": "login",
                },
                "logging": {"body_preview_limit": 200},
            }
        }
    )


@pytest.fixture
def fixed_language(monkeypatch):
    """Pin the derived language parameter to 'en'"""
    monkeypatch.setattr("networking.request.get_language_identifier", lambda: "en")
    return "en"


@pytest.fixture
def collector():
    """Completion callback that records what it receives"""
    return OutcomeCollector()


@pytest.fixture
def mock_http_client():
    """Mock HTTP client for testing"""
    return Mock()


@pytest.fixture
def event_bus():
    """Fresh event bus so tests never see each other's events"""
    return EventBus()


@pytest.fixture
def dispatcher(mock_http_client, event_bus, test_config):
    """Dispatcher wired to mocks, shut down after the test"""
    dispatcher = Dispatcher(
        http_client=mock_http_client, event_bus=event_bus, config_obj=test_config
    )
    yield dispatcher
    dispatcher.close()
