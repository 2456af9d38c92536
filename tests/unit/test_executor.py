"""
Unit tests for CursorExecutor.
"""

import pytest

from docquery.core.exceptions import MalformedQueryError, SerializationError, StoreError
from docquery.core.id_cache import SessionIdCache
from docquery.query.executor import CursorExecutor
from docquery.query.planner import ExecutableQuery
from docquery.storage.memory import MemoryCursor, MemoryStoreCollection


class FailingSizeCursor(MemoryCursor):
    """Cursor whose size() fails like a dropped connection."""

    def size(self):
        raise StoreError("connection reset")


class FailingSizeCollection(MemoryStoreCollection):
    def find(self, query=None, projection=None):
        return FailingSizeCursor(self, query, projection)


@pytest.fixture
def collection(codec, sample_people):
    collection = MemoryStoreCollection("people")
    for person in sample_people:
        collection.insert(codec.to_document(person))
    return collection


@pytest.fixture
def id_cache():
    return SessionIdCache()


@pytest.fixture
def executor(collection, codec, id_cache):
    return CursorExecutor(collection, codec, id_cache)


class TestIterate:
    """Object iteration tests."""

    def test_decodes_objects(self, executor, models):
        """Test documents come back as objects."""
        results = list(executor.iterate(ExecutableQuery()))

        assert len(results) == 5
        assert all(isinstance(p, models.Person) for p in results)

    def test_lazy(self, executor, collection):
        """Test no cursor is opened until the first result is requested."""
        results = executor.iterate(ExecutableQuery())

        assert collection.open_cursor_count == 0
        next(results)
        assert collection.open_cursor_count == 1
        results.close()

    def test_cursor_closed_on_exhaustion(self, executor, collection):
        list(executor.iterate(ExecutableQuery()))

        assert collection.open_cursor_count == 0

    def test_cursor_closed_on_early_stop(self, executor, collection):
        """Test abandoning an iteration releases its cursor."""
        results = executor.iterate(ExecutableQuery())
        next(results)
        next(results)
        results.close()

        assert collection.open_cursor_count == 0

    def test_cursor_closed_on_decode_error(self, executor, collection):
        """Test a document that cannot be decoded releases the cursor."""
        collection.insert({"_id": "broken", "class": "Unknown"})

        with pytest.raises(SerializationError):
            list(executor.iterate(ExecutableQuery()))

        assert collection.open_cursor_count == 0

    def test_ids_recorded(self, executor, id_cache, sample_people):
        """Test ids of returned objects are added to the id cache."""
        list(executor.iterate(ExecutableQuery(limit=2)))

        assert len(id_cache) == 2
        assert all(p.id in id_cache for p in sample_people[:2])

    def test_sort_skip_limit_applied(self, executor):
        """Test pagination is applied after sorting."""
        query = ExecutableQuery(sort=[("age", 1), ("name", 1)], skip=1, limit=2)

        assert [p.name for p in executor.iterate(query)] == ["Ada", "Barbara"]

    def test_store_errors_propagate(self, executor, collection):
        """Test malformed native queries surface unchanged."""
        query = ExecutableQuery(native_query={"age": {"$near": 3}})

        with pytest.raises(MalformedQueryError):
            list(executor.iterate(query))

        assert collection.open_cursor_count == 0


class TestIterateIds:
    """Id-only iteration tests."""

    def test_same_order_as_objects(self, executor):
        """Test ids come out in the order of the object results."""
        query = ExecutableQuery(sort=[("age", -1), ("name", 1)], skip=1)

        objects = [p.id for p in executor.iterate(query)]
        ids = list(executor.iterate_ids(query))

        assert ids == objects

    def test_ids_not_decoded(self, executor, collection, id_cache):
        """Test undecodable documents still yield their id."""
        collection.insert({"_id": "raw", "class": "Unknown"})

        assert "raw" in list(executor.iterate_ids(ExecutableQuery()))
        assert len(id_cache) == 0

    def test_cursor_closed_on_early_stop(self, executor, collection):
        ids = executor.iterate_ids(ExecutableQuery())
        next(ids)
        ids.close()

        assert collection.open_cursor_count == 0


class TestCount:
    """Counting tests."""

    def test_count(self, executor):
        assert executor.count(ExecutableQuery()) == 5

    def test_count_honours_skip_and_limit(self, executor):
        """Test counts reflect pagination."""
        assert executor.count(ExecutableQuery(skip=3)) == 2
        assert executor.count(ExecutableQuery(limit=2)) == 2
        assert executor.count(ExecutableQuery(skip=4, limit=3)) == 1
        assert executor.count(ExecutableQuery(skip=10)) == 0

    def test_count_releases_cursor(self, executor, collection):
        executor.count(ExecutableQuery())

        assert collection.open_cursor_count == 0

    def test_count_releases_cursor_on_error(self, codec, id_cache):
        """Test a failing size() still closes the cursor."""
        collection = FailingSizeCollection("people")
        executor = CursorExecutor(collection, codec, id_cache)

        with pytest.raises(StoreError, match="connection reset"):
            executor.count(ExecutableQuery())

        assert collection.open_cursor_count == 0

    def test_cursor_context(self, executor, collection):
        """Test the cursor context manager closes on exit."""
        with executor.cursor(ExecutableQuery()) as cursor:
            assert not cursor.closed

        assert cursor.closed
        assert collection.open_cursor_count == 0
