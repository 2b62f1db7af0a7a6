"""Async MongoDB store — one client held for the lifetime of the process.

Uses the asyncio client that ships with pymongo (>= 4.10).
Driver failures surface as ServiceError; callers never see pymongo exceptions.
"""

import logging
from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from result_checker.errors import ServiceError

logger = logging.getLogger(__name__)

STUDENTS = "students"
RESULTS = "results"


def serialize_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Convert a store document to a JSON-safe dict (ObjectId -> hex string)."""
    return jsonable_encoder(doc, custom_encoder={ObjectId: str})


class MongoStore:
    """Persistent store for the `students` and `results` collections."""

    def __init__(self, url: str, db_name: str, client: AsyncMongoClient | None = None):
        self._url = url
        self._db_name = db_name
        self._client = client

    @property
    def db(self):
        if self._client is None:
            raise ServiceError("MongoDB client is not connected")
        return self._client[self._db_name]

    async def connect(self) -> None:
        """Create the client and verify the server answers a ping."""
        if self._client is None:
            self._client = AsyncMongoClient(self._url)
        await self.ping()
        logger.info("MongoDB connected | db=%s", self._db_name)

    async def close(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            try:
                await client.close()
            except PyMongoError as e:
                raise ServiceError(f"MongoDB close failed: {e}") from e
            logger.info("MongoDB connection closed")

    async def ping(self) -> None:
        if self._client is None:
            raise ServiceError("MongoDB client is not connected")
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            raise ServiceError(f"MongoDB ping failed: {e}") from e

    # ── students ──

    async def list_students(self) -> list[dict[str, Any]]:
        try:
            docs = await self.db[STUDENTS].find({}).to_list()
        except PyMongoError as e:
            raise ServiceError(f"students query failed: {e}") from e
        return [serialize_document(d) for d in docs]

    async def insert_student(self, document: dict[str, Any]) -> str:
        return await self._insert(STUDENTS, document)

    # ── results ──

    async def find_result(self, student_id: str) -> dict[str, Any] | None:
        try:
            doc = await self.db[RESULTS].find_one({"id": student_id})
        except PyMongoError as e:
            raise ServiceError(f"results query failed: {e}") from e
        return serialize_document(doc) if doc is not None else None

    async def insert_result(self, document: dict[str, Any]) -> str:
        return await self._insert(RESULTS, document)

    async def _insert(self, collection: str, document: dict[str, Any]) -> str:
        # insert_one mutates its argument with the generated _id
        try:
            inserted = await self.db[collection].insert_one(dict(document))
        except PyMongoError as e:
            raise ServiceError(f"{collection} insert failed: {e}") from e
        return str(inserted.inserted_id)
