"""Shared test fixtures and configuration."""

import copy
import os

import pytest
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

# Keep tests independent of any local .env / running services
os.environ.setdefault("STATIC_DIR", "tests/no-static-dir")

from result_checker.config import Settings  # noqa: E402
from result_checker.database import serialize_document  # noqa: E402
from result_checker.errors import ServiceError  # noqa: E402
from result_checker.main import create_app  # noqa: E402
from result_checker.services.cache import MemoryResultCache  # noqa: E402
from result_checker.services.results import ResultService  # noqa: E402
from result_checker.services.students import StudentDirectory  # noqa: E402


class FakeStore:
    """In-memory stand-in for MongoStore.

    `calls` counts every store operation by name; setting `available` to
    False makes every operation raise ServiceError like a dropped connection.
    """

    def __init__(self):
        self.collections: dict[str, list[dict]] = {"students": [], "results": []}
        self.calls: dict[str, int] = {}
        self.available = True
        self.closed = False

    def _touch(self, name: str) -> None:
        self.calls[name] = self.calls.get(name, 0) + 1
        if not self.available:
            raise ServiceError("connection refused")

    def count(self, name: str) -> int:
        return self.calls.get(name, 0)

    async def connect(self):
        self._touch("connect")

    async def close(self):
        self.closed = True

    async def ping(self):
        self._touch("ping")

    async def list_students(self):
        self._touch("list_students")
        return [serialize_document(d) for d in self.collections["students"]]

    async def insert_student(self, document):
        self._touch("insert_student")
        return self._insert("students", document)

    async def find_result(self, student_id):
        self._touch("find_result")
        for doc in self.collections["results"]:
            if doc.get("id") == student_id:
                return serialize_document(doc)
        return None

    async def insert_result(self, document):
        self._touch("insert_result")
        return self._insert("results", document)

    def _insert(self, collection, document):
        doc = copy.deepcopy(document)
        doc["_id"] = ObjectId()
        self.collections[collection].append(doc)
        return str(doc["_id"])


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class BrokenCache(MemoryResultCache):
    """Cache whose reads and writes fail like an unreachable Redis."""

    async def ping(self):
        raise ServiceError("Redis ping failed: connection refused")

    async def get(self, student_id):
        raise ServiceError("Redis GET failed: connection refused")

    async def set(self, student_id, data):
        raise ServiceError("Redis SETEX failed: connection refused")


TTL = 600


@pytest.fixture
def settings():
    return Settings(cache_ttl=TTL, static_dir="tests/no-static-dir", _env_file=None)


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return MemoryResultCache(ttl=TTL, timer=clock)


@pytest.fixture
def result_service(store, cache):
    return ResultService(store, cache)


@pytest.fixture
def student_directory(store):
    return StudentDirectory(store)


@pytest.fixture
def app(settings, store, cache):
    return create_app(settings, store=store, cache=cache)


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def sample_result():
    return {
        "id": "S1",
        "name": "Rahim Uddin",
        "subjects": {"math": 90, "physics": 84, "english": 77},
        "gpa": 4.5,
    }


@pytest.fixture
def broken_cache():
    return BrokenCache(ttl=TTL)
