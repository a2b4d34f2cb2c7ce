"""Document store capability and its MongoDB implementation."""

import logging
from typing import Any, Dict, Optional, Protocol

from pymongo import AsyncMongoClient

from catalog_crawler.config import settings

logger = logging.getLogger(__name__)


class StoreConnectionError(Exception):
    """The document store could not be reached."""
    def __init__(self, uri: str, reason: str):
        self.uri = uri
        self.reason = reason
        super().__init__(f"Cannot connect to document store: {reason}")


class DocumentStore(Protocol):
    """What the reconciler needs from a store."""

    async def connect(self) -> None: ...

    async def find_one(self, filter: Dict[str, Any]) -> Optional[Dict[str, Any]]: ...

    async def insert_one(self, document: Dict[str, Any]) -> None: ...

    async def update_one(self, filter: Dict[str, Any], fields: Dict[str, Any]) -> int: ...

    async def disconnect(self) -> None: ...


class MongoDocumentStore:
    """
    One MongoDB collection, reached through pymongo's async client.

    Args:
        database: Database name
        collection: Collection name
        uri: Connection URI (defaults to settings)
    """

    def __init__(self, database: str, collection: str, uri: Optional[str] = None):
        self.uri = uri or settings.mongo_uri
        self.database = database
        self.collection_name = collection
        self._client: Optional[AsyncMongoClient] = None
        self._collection = None

    @classmethod
    def for_site(cls, site: str) -> "MongoDocumentStore":
        """Store for a site: database from ``mongo_databases``, collection named after the site."""
        database = settings.mongo_databases.get(site, site)
        return cls(database=database, collection=site)

    async def connect(self) -> None:
        """
        Open the client and verify the server answers.

        Raises:
            StoreConnectionError: If the server cannot be reached
        """
        client = AsyncMongoClient(
            self.uri,
            serverSelectionTimeoutMS=settings.mongo_server_selection_timeout_ms,
            tz_aware=True,
        )
        try:
            await client.admin.command("ping")
        except Exception as e:
            await client.close()
            raise StoreConnectionError(self.uri, str(e)) from e

        self._client = client
        self._collection = client[self.database][self.collection_name]
        logger.info(f"Connected to MongoDB {self.database}.{self.collection_name}")

    def _require_collection(self):
        if self._collection is None:
            raise RuntimeError("Store is not connected")
        return self._collection

    async def find_one(self, filter):
        return await self._require_collection().find_one(filter)

    async def insert_one(self, document):
        # insert_one adds _id to the dict it is given
        await self._require_collection().insert_one(dict(document))

    async def update_one(self, filter, fields):
        result = await self._require_collection().update_one(filter, {"$set": fields})
        return result.modified_count

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.close()
            logger.info(f"Disconnected from MongoDB {self.database}")
        self._client = None
        self._collection = None
