"""Pytest configuration and fixtures."""

import logging
from collections.abc import Generator

import pytest
from flask import Flask
from flask.testing import FlaskClient

from authflow.app import create_app
from authflow.core.config import AppConfig, ClientSettings
from authflow.storage import MEMORY_URL, Database, LocalStorageBackend

AUTHORIZE_URL = "https://idp.example.com/authorize"


@pytest.fixture(autouse=True)
def reset_authflow_logging() -> Generator[None, None, None]:
    """Undo configure_logging() calls made by CLI tests."""
    yield
    root = logging.getLogger("authflow")
    root.handlers.clear()
    root.setLevel(logging.NOTSET)


@pytest.fixture
def store() -> LocalStorageBackend:
    """In-memory key/value store."""
    return LocalStorageBackend(Database(MEMORY_URL))


@pytest.fixture
def client_settings() -> ClientSettings:
    """Client settings with an explicit authorization endpoint."""
    return ClientSettings(
        authorize_url=AUTHORIZE_URL,
        token_url="https://idp.example.com/token",
        client_id="test-client",
        redirect_uri="http://localhost:8080/app/",
        discovery_uri="https://idp.example.com",
    )


@pytest.fixture
def app(client_settings: ClientSettings) -> Generator[Flask, None, None]:
    """Create application for testing with an in-memory store."""
    app = create_app(
        {
            "TESTING": True,
            "SECRET_KEY": "test-secret-key",
            "DATABASE_URL": MEMORY_URL,
        },
        app_config=AppConfig(client=client_settings),
    )
    yield app


@pytest.fixture
def client(app: Flask) -> FlaskClient:
    """Create test client."""
    return app.test_client()
