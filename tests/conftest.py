"""Shared pytest fixtures."""

import pytest

from lspd.profiles.models import OfficerRecord
from lspd.profiles.store import ProfileStore


@pytest.fixture(autouse=True)
def _clear_memory_and_env(monkeypatch):
    """Reset in-memory profiles and run without Cosmos DB or Firebase."""
    ProfileStore._memory.clear()
    monkeypatch.delenv("COSMOS_ENDPOINT", raising=False)
    monkeypatch.delenv("COSMOS_KEY", raising=False)
    monkeypatch.delenv("FIREBASE_PROJECT_ID", raising=False)
    monkeypatch.setattr("lspd.profiles.store.load_dotenv", lambda: None)
    monkeypatch.setattr("lspd.core.config.load_dotenv", lambda: None)
    yield
    ProfileStore._memory.clear()


def make_officer(
    uid: str, *, units=(), ranks=(), role: str = "officer-i", **extra
) -> OfficerRecord:
    """Build an OfficerRecord with sensible defaults."""
    return OfficerRecord(
        id=uid,
        login=uid,
        full_name=extra.pop("full_name", uid.title()),
        role=role,
        units=list(units),
        additional_ranks=list(ranks),
        **extra,
    )


@pytest.fixture
def make_record():
    """Factory for OfficerRecord instances."""
    return make_officer


@pytest.fixture
def seed():
    """Store officer records in the in-memory profile store."""

    async def _seed(*records: OfficerRecord) -> None:
        async with ProfileStore() as store:
            for record in records:
                await store.put(record)

    return _seed
