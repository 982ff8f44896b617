"""Shared fixtures. Nothing here touches the network or audio hardware."""

import pytest

from src.audit import AuditLogger
from src.sync import UserPaths
from tests.fakes import FlakyDocumentStore


@pytest.fixture
def store():
    return FlakyDocumentStore()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def paths():
    return UserPaths(app_id="test-app", user_id="user-1")
