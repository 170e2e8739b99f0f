import base64
import hashlib
import hmac

import pytest

from app.errors import ConfigurationError
from app.services.tokens import issue_upload_token, sign

SECRET = b"s3cret-signing-key"


def test_signature_is_hmac_of_upload_message():
    token = issue_upload_token(SECRET, now=1760000000.9)
    assert token.timestamp == 1760000000

    expected = hmac.new(SECRET, b"upload:1760000000", hashlib.sha256).digest()
    assert base64.urlsafe_b64decode(token.signature + "=") == expected


def test_signature_is_url_safe_without_padding():
    for ts in range(1760000000, 1760000050):
        signature = sign(SECRET, ts)
        assert len(signature) == 43
        assert "=" not in signature
        assert "+" not in signature
        assert "/" not in signature


def test_same_second_same_secret_is_deterministic():
    assert issue_upload_token(SECRET, now=1760000000) == issue_upload_token(SECRET, now=1760000000.5)


def test_changing_secret_or_timestamp_changes_signature():
    base = sign(SECRET, 1760000000)
    assert sign(b"t3cret-signing-key", 1760000000) != base
    assert sign(SECRET, 1760000001) != base


def test_string_secret_matches_bytes_secret():
    assert issue_upload_token("s3cret-signing-key", now=1760000000) == issue_upload_token(SECRET, now=1760000000)


@pytest.mark.parametrize("secret", ["", b"", None])
def test_missing_secret_fails_closed(secret):
    with pytest.raises(ConfigurationError):
        issue_upload_token(secret)
