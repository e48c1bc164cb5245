"""
Pytest configuration and fixtures for security rules tests

This module provides shared fixtures for unit and integration tests.
"""
import pytest

from security_rules.backend import InMemoryRulesBackend
from security_rules.client import SecurityRules
from security_rules.config import AppConfig


PROJECT_ID = "test-project"
DEFAULT_BUCKET = "test-project.appspot.com"


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't touch a backend"
    )
    config.addinivalue_line(
        "markers", "integration: Tests running the client against the in-memory backend"
    )


# =======================
# CLIENT FIXTURES
# =======================

@pytest.fixture
def backend() -> InMemoryRulesBackend:
    """Fresh in-memory backend per test"""
    return InMemoryRulesBackend()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(project_id=PROJECT_ID, storage_bucket=DEFAULT_BUCKET)


@pytest.fixture
def client(backend: InMemoryRulesBackend, app_config: AppConfig) -> SecurityRules:
    """Client bound to the in-memory backend with a default bucket"""
    return SecurityRules(backend, app_config)


@pytest.fixture
def client_without_bucket(backend: InMemoryRulesBackend) -> SecurityRules:
    """Client whose configuration has no default bucket"""
    return SecurityRules(backend, AppConfig(project_id=PROJECT_ID))


# =======================
# SAMPLE RULES
# =======================

@pytest.fixture
def firestore_source() -> str:
    return (
        "rules_version = '2';\n"
        "service cloud.firestore {\n"
        "  match /databases/{database}/documents {\n"
        "    match /{document=**} { allow read, write: if false; }\n"
        "  }\n"
        "}\n"
    )


@pytest.fixture
def storage_source() -> str:
    return (
        "rules_version = '2';\n"
        "service firebase.storage {\n"
        "  match /b/{bucket}/o {\n"
        "    match /{allPaths=**} { allow read: if request.auth != null; }\n"
        "  }\n"
        "}\n"
    )
