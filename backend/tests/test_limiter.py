import threading
import time

from limits.storage import storage_from_string

from app.limiter import SHARED_ANONYMOUS_KEY, RateLimiter, rate_limit_key


def make_limiter(window_seconds=60):
    return RateLimiter(storage_from_string("memory://"), window_seconds=window_seconds)


def test_admits_up_to_limit_then_rejects():
    limiter = make_limiter()
    results = [limiter.admit("user@example.com", 5) for _ in range(5)]
    assert results == [True] * 5
    assert limiter.admit("user@example.com", 5) is False
    assert limiter.admit("user@example.com", 5) is False


def test_keys_have_independent_windows():
    limiter = make_limiter()
    for _ in range(3):
        assert limiter.admit("a", 3)
    assert not limiter.admit("a", 3)
    assert limiter.admit("b", 3)


def test_window_expiry_resets_counter():
    limiter = make_limiter(window_seconds=1)
    assert limiter.admit("k", 2)
    assert limiter.admit("k", 2)
    assert not limiter.admit("k", 2)

    time.sleep(1.2)

    assert limiter.admit("k", 2)
    # the counter restarted at 1, so one more request fits in the new window
    assert limiter.admit("k", 2)
    assert not limiter.admit("k", 2)


def test_reset_at_reports_end_of_window():
    limiter = make_limiter(window_seconds=60)
    before = time.time()
    limiter.admit("k", 10)
    assert before + 59 <= limiter.reset_at("k") <= time.time() + 60


def test_reset_clears_all_windows():
    limiter = make_limiter()
    limiter.admit("k", 1)
    assert not limiter.admit("k", 1)
    limiter.reset()
    assert limiter.admit("k", 1)


def test_concurrent_requests_never_exceed_limit():
    limiter = make_limiter()
    limit = 10
    assert limiter.admit("shared", limit)

    admitted = []
    lock = threading.Lock()

    def worker():
        ok = limiter.admit("shared", limit)
        with lock:
            admitted.append(ok)

    threads = [threading.Thread(target=worker) for _ in range(50)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert 1 + sum(admitted) <= limit
    assert not limiter.admit("shared", limit)


def test_key_prefers_email():
    assert rate_limit_key("user@example.com", "1.2.3.4", "10.0.0.1") == "user@example.com"


def test_key_uses_first_forwarded_address():
    assert rate_limit_key(None, "1.2.3.4, 10.0.0.2", "10.0.0.1") == "1.2.3.4"


def test_key_falls_back_to_peer_address():
    assert rate_limit_key(None, None, "10.0.0.1") == "10.0.0.1"
    assert rate_limit_key(None, "", "10.0.0.1") == "10.0.0.1"


def test_key_falls_back_to_shared_bucket():
    assert rate_limit_key(None, None, None) == SHARED_ANONYMOUS_KEY
