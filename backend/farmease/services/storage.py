"""
Durable client storage.

A small key/value contract standing in for the browser's local storage:
values are strings, the cart snapshot lives under a fixed key. One store is
scoped to one owner (the signed-in user).
"""

import logging
from typing import Dict, Optional
from motor.motor_asyncio import AsyncIOMotorDatabase

from farmease.utils.helpers import get_current_timestamp

logger = logging.getLogger(__name__)


class ClientStorage:
    """Key/value storage contract."""

    async def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    async def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    async def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryClientStorage(ClientStorage):
    """Process-local storage, used for anonymous visitors and in tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def remove(self, key: str) -> None:
        self._values.pop(key, None)


class MongoClientStorage(ClientStorage):
    """Storage backed by the `client_storage` collection, one document per owner and key."""

    def __init__(self, db: AsyncIOMotorDatabase, owner_id: str):
        self.db = db
        self.owner_id = owner_id

    async def get(self, key: str) -> Optional[str]:
        document = await self.db.client_storage.find_one(
            {"owner_id": self.owner_id, "key": key}
        )
        if not document:
            return None
        return document.get("value")

    async def set(self, key: str, value: str) -> None:
        # Last write wins; there is exactly one writer per owner
        await self.db.client_storage.update_one(
            {"owner_id": self.owner_id, "key": key},
            {"$set": {
                "value": value,
                "updated_at": get_current_timestamp()
            }},
            upsert=True
        )

    async def remove(self, key: str) -> None:
        await self.db.client_storage.delete_one({"owner_id": self.owner_id, "key": key})
        logger.debug(f"Removed storage key {key} for {self.owner_id}")
