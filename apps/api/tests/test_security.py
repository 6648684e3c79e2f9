from __future__ import annotations

import jwt
import pytest

from stampbook.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    validate_password_strength,
    verify_password,
)


def test_password_hash_verifies_only_the_original() -> None:
    hashed = hash_password("correct-horse")

    assert hashed != "correct-horse"
    assert verify_password("correct-horse", hashed) is True
    assert verify_password("wrong-horse", hashed) is False
    assert verify_password("correct-horse", "not-a-hash") is False


def test_access_token_carries_admin_and_family() -> None:
    payload = decode_token(create_access_token(admin_id=3, family_id=9))

    assert payload["sub"] == "3"
    assert payload["family_id"] == 9
    assert payload["type"] == "access"


def test_token_signed_with_other_secret_is_rejected() -> None:
    forged = jwt.encode(
        {"sub": "1", "family_id": 1, "type": "access", "iss": "stampbook"},
        "another-secret-of-sufficient-length",
        algorithm="HS256",
    )

    with pytest.raises(jwt.InvalidSignatureError):
        decode_token(forged)


def test_password_strength_rules() -> None:
    assert validate_password_strength("short") is not None
    assert validate_password_strength(" padded-password ") is not None
    assert validate_password_strength("long-enough") is None
