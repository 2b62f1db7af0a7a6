"""Connectivity probe for /health."""

import logging

from result_checker.database import MongoStore
from result_checker.errors import ServiceError, UnhealthyError
from result_checker.schemas import HealthResponse, utc_timestamp
from result_checker.services.cache import ResultCache

logger = logging.getLogger(__name__)


class HealthService:
    def __init__(self, store: MongoStore, cache: ResultCache):
        self.store = store
        self.cache = cache

    async def check(self) -> HealthResponse:
        """Ping MongoDB, then Redis. Raises UnhealthyError on the first failure."""
        try:
            await self.store.ping()
            await self.cache.ping()
        except ServiceError as e:
            logger.error("Health check failed: %s", e)
            raise UnhealthyError(str(e)) from e
        return HealthResponse(timestamp=utc_timestamp())
