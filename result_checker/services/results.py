"""Result lookup (cache-aside) and ingestion (write-through on create).

lookup:
  cache hit  -> return cached copy, store untouched
  cache miss -> store query -> populate cache with the fixed TTL -> return
  not found  -> NotFoundError, cache untouched

ingest:
  store insert -> cache write under the same key -> inserted id

Results are never updated, so there is no invalidation step. Driver
failures propagate as ServiceError without retry.
"""

import logging
from typing import Any

from result_checker.database import MongoStore
from result_checker.errors import NotFoundError
from result_checker.schemas import ResultPayload
from result_checker.services.cache import ResultCache

logger = logging.getLogger(__name__)


class ResultService:
    """Reads and writes exam results through the cache."""

    def __init__(self, store: MongoStore, cache: ResultCache):
        self.store = store
        self.cache = cache

    async def lookup(self, student_id: str) -> dict[str, Any]:
        cached = await self.cache.get(student_id)
        if cached is not None:
            logger.info("Cache HIT | student=%s", student_id)
            return cached

        logger.info("Cache MISS | student=%s | querying database", student_id)
        result = await self.store.find_result(student_id)
        if result is None:
            logger.warning("Result not found | student=%s", student_id)
            raise NotFoundError("Result not found")

        await self.cache.set(student_id, result)
        return result

    async def ingest(self, payload: ResultPayload) -> str:
        document = payload.to_document()
        inserted_id = await self.store.insert_result(document)

        # Same shape a later store read would produce
        await self.cache.set(payload.id, {**document, "_id": inserted_id})
        logger.info("Result added | student=%s | inserted_id=%s", payload.id, inserted_id)
        return inserted_id
