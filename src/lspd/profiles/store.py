"""Async Cosmos DB operations for officer profile documents.

Unit management only ever patches ``units``, ``additionalRanks``,
``additionalRank`` and ``updatedAt``; everything else on a profile is owned
by account administration.

Writes are optimistic: pass the ``etag`` read with the record and the
write fails with ``Conflict`` if someone else changed the profile in
between.

When ``COSMOS_ENDPOINT`` is not set, falls back to an in-memory store
for local development and testing.
"""

import copy
import logging
import os
from typing import ClassVar, Self

from dotenv import load_dotenv

from lspd.core.config import get_cosmos_database, get_org_config
from lspd.profiles.models import OfficerRecord
from lspd.units.errors import Conflict, NotFound

logger = logging.getLogger(__name__)


class ProfileStore:
    """Async read/patch operations for officer profiles in Cosmos DB.

    Falls back to in-memory storage when Cosmos DB is not configured.
    The container is partitioned by ``/id``.

    Usage::

        async with ProfileStore() as store:
            record = await store.get(uid)
            await store.patch(uid, {"units": [...]}, etag=record.etag)
    """

    # Shared in-memory store across instances (persists for server lifetime)
    _memory: ClassVar[dict[str, dict]] = {}

    def __init__(self) -> None:
        """Initialize store. Call ``__aenter__`` to connect."""
        self._client = None
        self._container = None
        self._credential = None
        self._in_memory = False

    async def __aenter__(self) -> Self:
        """Connect to Cosmos DB, or fall back to in-memory mode."""
        load_dotenv()

        endpoint = os.getenv("COSMOS_ENDPOINT")
        key = os.getenv("COSMOS_KEY")
        container_name = get_org_config().profiles_container

        if endpoint and key:
            from azure.cosmos.aio import CosmosClient

            self._client = CosmosClient(endpoint, credential=key)
        elif endpoint:
            from azure.cosmos.aio import CosmosClient
            from azure.identity.aio import DefaultAzureCredential

            self._credential = DefaultAzureCredential()
            self._client = CosmosClient(endpoint, credential=self._credential)
        else:
            logger.warning("No COSMOS_ENDPOINT set, using in-memory profile store (dev only)")
            self._in_memory = True
            return self

        database = self._client.get_database_client(get_cosmos_database())
        self._container = database.get_container_client(container_name)
        logger.info("Connected to Cosmos DB: %s/%s", get_cosmos_database(), container_name)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close connections."""
        if self._client:
            await self._client.close()
            self._client = None
        if self._credential:
            await self._credential.close()
            self._credential = None
        self._container = None

    async def get(self, uid: str) -> OfficerRecord | None:
        """Get an officer profile by ID.

        Args:
            uid: Profile document ID (identity provider user ID)

        Returns:
            OfficerRecord if found, None otherwise
        """
        if self._in_memory:
            data = self._memory.get(uid)
            return OfficerRecord.from_cosmos(copy.deepcopy(data)) if data else None

        from azure.cosmos.exceptions import CosmosResourceNotFoundError

        try:
            result = await self._container.read_item(item=uid, partition_key=uid)
        except CosmosResourceNotFoundError:
            logger.debug("Profile not found: %s", uid)
            return None
        return OfficerRecord.from_cosmos(result)

    async def list_all(self, max_items: int | None = None) -> list[OfficerRecord]:
        """List officer profiles.

        Reads the whole container unless ``max_items`` is given; the Cosmos
        iterator follows continuation pages on its own.

        Args:
            max_items: Maximum number of results, or None for all

        Returns:
            Officer records, unordered
        """
        if self._in_memory:
            return [
                OfficerRecord.from_cosmos(copy.deepcopy(data))
                for data in list(self._memory.values())[:max_items]
            ]

        items = []
        async for item in self._container.query_items(query="SELECT * FROM c"):
            items.append(OfficerRecord.from_cosmos(item))
            if max_items is not None and len(items) >= max_items:
                break
        return items

    async def put(self, record: OfficerRecord) -> OfficerRecord:
        """Create or replace a whole profile (seeding and local admin only).

        Args:
            record: Officer record to store

        Returns:
            The stored record with its new etag
        """
        body = record.to_cosmos()
        if self._in_memory:
            body["_etag"] = _next_etag(self._memory.get(record.id))
            self._memory[record.id] = body
            logger.info("Stored profile %s (in-memory)", record.id)
            return OfficerRecord.from_cosmos(copy.deepcopy(body))

        result = await self._container.upsert_item(body=body)
        logger.info("Stored profile %s", record.id)
        return OfficerRecord.from_cosmos(result)

    async def patch(self, uid: str, fields: dict, *, etag: str | None = None) -> OfficerRecord:
        """Set top-level fields on a profile.

        Args:
            uid: Profile document ID
            fields: Field name → new value (document field names)
            etag: If given, only write when the profile is unchanged since read

        Returns:
            The updated record

        Raises:
            NotFound: If the profile does not exist
            Conflict: If ``etag`` no longer matches the stored profile
        """
        if self._in_memory:
            data = self._memory.get(uid)
            if data is None:
                raise NotFound("Officer profile not found")
            if etag is not None and data.get("_etag") != etag:
                raise Conflict()
            updated = {**data, **copy.deepcopy(fields), "_etag": _next_etag(data)}
            self._memory[uid] = updated
            logger.info("Patched profile %s fields=%s (in-memory)", uid, sorted(fields))
            return OfficerRecord.from_cosmos(copy.deepcopy(updated))

        from azure.core import MatchConditions
        from azure.cosmos.exceptions import (
            CosmosAccessConditionFailedError,
            CosmosResourceNotFoundError,
        )

        operations = [
            {"op": "set", "path": f"/{name}", "value": value} for name, value in fields.items()
        ]
        kwargs: dict = {}
        if etag is not None:
            kwargs = {"etag": etag, "match_condition": MatchConditions.IfNotModified}

        try:
            result = await self._container.patch_item(
                item=uid,
                partition_key=uid,
                patch_operations=operations,
                **kwargs,
            )
        except CosmosResourceNotFoundError as e:
            raise NotFound("Officer profile not found") from e
        except CosmosAccessConditionFailedError as e:
            logger.warning("Concurrent modification of profile %s", uid)
            raise Conflict() from e

        logger.info("Patched profile %s fields=%s", uid, sorted(fields))
        return OfficerRecord.from_cosmos(result)


def _next_etag(data: dict | None) -> str:
    """Version tag for the in-memory store (monotonic counter)."""
    current = int(data.get("_etag", "0")) if data else 0
    return str(current + 1)
