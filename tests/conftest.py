"""
Pytest configuration and shared fixtures for awaybot tests.
"""

import pytest
import sys
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from awaybot.config.schema import ProviderConfig, ResponderConfig
from awaybot.providers.base import LLMResponse
from awaybot.storage.store import FileStore


@pytest.fixture
def workspace(tmp_path):
    """Create a temporary workspace directory."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def store(workspace):
    """File-backed store rooted in the temporary workspace."""
    return FileStore(workspace)


@pytest.fixture
def responder_config():
    """Responder config with zero delay bounds."""
    return ResponderConfig(min_delay_seconds=0.0, max_delay_seconds=0.0)


@pytest.fixture
def provider_config():
    return ProviderConfig()


@pytest.fixture
def provider():
    """Generation provider stub returning a fixed reply."""
    mock = AsyncMock()
    mock.chat.return_value = LLMResponse(content="Got your message! Sunny will reply soon.")
    return mock


@pytest.fixture
def afternoon():
    """A fixed afternoon timestamp (sun emoji bucket)."""
    return datetime(2026, 10, 19, 14, 30, 0, tzinfo=timezone.utc)
