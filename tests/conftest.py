"""Shared pytest fixtures and configuration."""

import os
import pytest
from contextlib import ExitStack
from unittest.mock import AsyncMock, patch

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("LOG_FORMAT", "text")
os.environ.setdefault("REPORT_LOGO_PATH", "/nonexistent/report_logo.png")

from listing_traffic.models.caller import CallerIdentity
from listing_traffic.utils.logging_config import LoggingConfig
from tests.utils.fake_supabase import FakeClientContext, FakeSupabase

# Modules that open their own SupabaseClient context
SUPABASE_CLIENT_TARGETS = (
    "listing_traffic.services.supabase_client.SupabaseClient",
    "listing_traffic.services.storage.SupabaseClient",
    "listing_traffic.services.auth.SupabaseClient",
)

TEST_USER_ID = "5f0c9d0e-7a51-4f0f-9a0b-3c1d2e4f5a6b"
OTHER_USER_ID = "9b8a7c6d-5e4f-4a3b-8c2d-1e0f9a8b7c6d"


@pytest.fixture(autouse=True)
def _keep_pytest_logging():
    """Stop handlers from replacing pytest's root log handlers."""
    with patch.object(LoggingConfig, "_configured", True):
        yield


@pytest.fixture
def caller():
    """Authenticated caller used by most tests."""
    return CallerIdentity(user_id=TEST_USER_ID, email="agent@example.com")


@pytest.fixture
def other_caller():
    """A second user who must never see the first user's rows."""
    return CallerIdentity(user_id=OTHER_USER_ID, email="other@example.com")


@pytest.fixture
def fake_supabase():
    """In-memory Supabase patched into every module that opens a client."""
    fake = FakeSupabase()
    with ExitStack() as stack:
        for target in SUPABASE_CLIENT_TARGETS:
            stack.enter_context(patch(target, side_effect=lambda: FakeClientContext(fake)))
        yield fake


@pytest.fixture
def signed_in(caller):
    """Handlers resolve every bearer token to ``caller``."""
    with patch("listing_traffic.utils.http.resolve_caller", AsyncMock(return_value=caller)) as resolver:
        yield resolver

