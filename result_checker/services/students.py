"""Student directory — plain pass-through to the `students` collection."""

import logging
from typing import Any

from result_checker.database import MongoStore
from result_checker.schemas import StudentPayload

logger = logging.getLogger(__name__)


class StudentDirectory:
    def __init__(self, store: MongoStore):
        self.store = store

    async def list_all(self) -> list[dict[str, Any]]:
        students = await self.store.list_students()
        logger.info("Retrieved %d students", len(students))
        return students

    async def add(self, payload: StudentPayload) -> str:
        # Duplicate ids are accepted
        inserted_id = await self.store.insert_student(payload.to_document())
        logger.info("Student added | student=%s | inserted_id=%s", payload.id, inserted_id)
        return inserted_id
