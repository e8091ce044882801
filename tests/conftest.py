"""Global pytest configuration and fixtures."""

import pytest
import pytest_asyncio
import sys
import tempfile
from datetime import datetime, timezone
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dev_tool._storage.table_memory import MemoryTableStorage


@pytest.fixture
def temp_backup_dir():
    """Create temporary backup directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_storage():
    """Empty in-memory table storage."""
    return MemoryTableStorage(namespace="test")


@pytest_asyncio.fixture
async def seeded_storage(memory_storage):
    """In-memory storage holding a few tables with dates and nested values."""
    await memory_storage.upsert("user", [
        {"id": 1, "name": "alice", "authority": 4,
         "createdAt": datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)},
        {"id": 2, "name": "bob", "authority": 1,
         "createdAt": datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc)},
    ])
    await memory_storage.upsert("channel", [
        {"id": 10, "platform": "discord", "flags": ["a", "b"], "meta": {"topic": "general"}},
    ])
    await memory_storage.upsert("message", [
        {"id": 100, "content": "hello", "time": 1600000000},
        {"id": 101, "content": "world", "time": 1700000000},
    ])
    return memory_storage
