"""Tests for session JWT handling and device link material."""

import uuid
from datetime import timedelta

from jose import jwt

from src.config import settings
from src.core.security import (
    TokenData,
    create_access_token,
    decode_access_token,
    generate_device_access_token,
    generate_pairing_code,
)


class TestSessionTokens:
    def test_round_trip(self):
        user_id = uuid.uuid4()

        payload = decode_access_token(create_access_token(user_id))

        assert payload is not None
        assert TokenData(payload).user_id == user_id

    def test_expired_token_rejected(self):
        token = create_access_token(uuid.uuid4(), expires_delta=timedelta(seconds=-1))

        assert decode_access_token(token) is None

    def test_wrong_secret_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "access"},
            "some-other-secret",
            algorithm=settings.jwt_algorithm,
        )

        assert decode_access_token(token) is None

    def test_non_access_token_rejected(self):
        token = jwt.encode(
            {"sub": str(uuid.uuid4()), "type": "refresh"},
            settings.secret_key,
            algorithm=settings.jwt_algorithm,
        )

        assert decode_access_token(token) is None

    def test_garbage_rejected(self):
        assert decode_access_token("not-a-jwt") is None


class TestDeviceLinkMaterial:
    def test_pairing_codes_are_six_digits_in_range(self):
        for _ in range(500):
            code = generate_pairing_code()
            assert len(code) == 6
            assert 100000 <= int(code) <= 999999

    def test_access_tokens_are_prefixed_hex(self):
        token = generate_device_access_token()

        assert token.startswith("vtc_")
        assert len(token) == 36
        int(token[4:], 16)

    def test_access_tokens_are_unique(self):
        tokens = {generate_device_access_token() for _ in range(100)}

        assert len(tokens) == 100
