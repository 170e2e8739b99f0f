from app.services.quota import (
    ANONYMOUS_POLICY,
    PRO_POLICY,
    USER_POLICY,
    resolve,
)


def test_pro_wins_regardless_of_authentication():
    assert resolve(is_authenticated=True, is_pro=True) == PRO_POLICY
    assert resolve(is_authenticated=False, is_pro=True) == PRO_POLICY


def test_authenticated_gets_user_policy():
    assert resolve(is_authenticated=True, is_pro=False) == USER_POLICY


def test_anonymous_policy():
    assert resolve(is_authenticated=False, is_pro=False) == ANONYMOUS_POLICY


def test_canonical_limits():
    assert ANONYMOUS_POLICY.max_file_size_bytes == 5 * 1024 * 1024
    assert ANONYMOUS_POLICY.max_bulk_files == 5
    assert ANONYMOUS_POLICY.requests_per_minute == 10

    assert USER_POLICY.max_file_size_bytes == 15 * 1024 * 1024
    assert USER_POLICY.max_bulk_files == 10
    assert USER_POLICY.requests_per_minute == 30

    assert PRO_POLICY.max_file_size_bytes == 35 * 1024 * 1024
    assert PRO_POLICY.max_bulk_files == 50
    assert PRO_POLICY.requests_per_minute == 100


def test_only_pro_policy_is_pro():
    assert PRO_POLICY.is_pro
    assert not USER_POLICY.is_pro
    assert not ANONYMOUS_POLICY.is_pro
