import httpx

from api.session import SessionStore
from health_portal.services.backend_client import BackendClient
from factories import FakeClock


class _StubPoller:

    def __init__(self) -> None:
        self.cancelled = False

    @property
    def active(self) -> bool:
        return not self.cancelled

    def cancel(self) -> None:
        self.cancelled = True


def _store(clock, ttl=60):
    backend = BackendClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    return SessionStore(backend, ttl=ttl, clock=clock)


def test_sessions_are_isolated():
    store = _store(FakeClock())
    a, b = store.create_session(), store.create_session()

    store.get_session(a)["language"] = "en"

    assert store.get(b, "language") == "it"
    assert store.get_session(a)["cache"] is not store.get_session(b)["cache"]


def test_expired_session_is_dropped_and_pollers_cancelled():
    clock = FakeClock()
    store = _store(clock, ttl=60)
    sid = store.create_session()
    poller = _StubPoller()
    store.get_session(sid)["pollers"]["j1"] = poller

    clock.advance(61)

    assert store.get_session(sid) is None
    assert poller.cancelled


def test_access_refreshes_ttl():
    clock = FakeClock()
    store = _store(clock, ttl=60)
    sid = store.create_session()

    clock.advance(50)
    assert store.get_session(sid) is not None
    clock.advance(50)
    assert store.get_session(sid) is not None


def test_cleanup_expired_counts_removed():
    clock = FakeClock()
    store = _store(clock, ttl=60)
    store.create_session()
    keep = store.create_session()

    clock.advance(40)
    store.get_session(keep)
    clock.advance(30)

    assert store.cleanup_expired() == 1
    assert store.get_session(keep) is not None


def test_reset_keeps_language_and_cancels_pollers():
    store = _store(FakeClock())
    sid = store.create_session()
    poller = _StubPoller()
    store.put(sid, "language", "fr")
    store.get_session(sid)["pollers"]["j1"] = poller

    store.reset(sid)

    assert poller.cancelled
    assert store.get(sid, "language") == "fr"
    assert store.get(sid, "pollers") == {}
