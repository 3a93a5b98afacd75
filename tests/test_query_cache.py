import pytest

from health_portal.services.errors import BackendError
from health_portal.services.query_cache import QueryCache


def test_fetch_loads_once():
    cache = QueryCache()
    calls = []

    def loader():
        calls.append(1)
        return ["report"]

    assert cache.fetch(("/api/reports",), loader) == ["report"]
    assert cache.fetch(("/api/reports",), loader) == ["report"]
    assert len(calls) == 1
    assert cache.updated_at(("/api/reports",)) is not None


def test_loader_error_leaves_cache_untouched():
    cache = QueryCache()

    def failing():
        raise BackendError(500, "down")

    with pytest.raises(BackendError):
        cache.fetch(("/api/reports",), failing)
    assert ("/api/reports",) not in cache


def test_invalidate_by_prefix():
    cache = QueryCache()
    cache.set(("/api/quizzes",), "list")
    cache.set(("/api/quizzes", "q1"), "one")
    cache.set(("/api/quizzes-other",), "keep")
    cache.set(("/api/categories-with-quizzes",), "cats")

    assert cache.invalidate(("/api/quizzes",)) == 2
    assert ("/api/quizzes", "q1") not in cache
    assert cache.get(("/api/quizzes-other",)) == "keep"
    assert cache.invalidate("/api/categories-with-quizzes") == 1
    assert cache.invalidate("/api/nothing") == 0


def test_refetch_after_invalidate():
    cache = QueryCache()
    values = iter([1, 2])
    key = ("/api/user/dashboard",)

    assert cache.fetch(key, lambda: next(values)) == 1
    cache.invalidate(key)
    assert cache.fetch(key, lambda: next(values)) == 2


def test_clear():
    cache = QueryCache()
    cache.set(("a",), 1)
    cache.clear()

    assert cache.get(("a",), "missing") == "missing"
