from datetime import timedelta
from jose import jwt

from spacesync.core.auth import create_access_token, verify_token
from spacesync.core.config import settings

class TestTokenUtils:
    def test_create_and_verify_access_token(self):
        data = {"sub": "user_123", "email": "test@example.com"}
        token = create_access_token(data)

        assert isinstance(token, str)
        assert len(token) > 0

        token_data = verify_token(token, "access")
        assert token_data is not None
        assert token_data.user_id == "user_123"
        assert token_data.email == "test@example.com"

    def test_numeric_subject_becomes_string(self):
        token = create_access_token({"sub": 42})

        token_data = verify_token(token)
        assert token_data.user_id == "42"

    def test_verify_token_wrong_type(self):
        token = create_access_token({"sub": "user_123"})

        assert verify_token(token, "refresh") is None

    def test_verify_invalid_token(self):
        assert verify_token("invalid_token", "access") is None

    def test_verify_token_wrong_secret(self):
        token = jwt.encode({"sub": "user_123"}, "not-the-secret", algorithm=settings.ALGORITHM)

        assert verify_token(token) is None

    def test_expired_token(self):
        token = create_access_token({"sub": "user_123"}, timedelta(minutes=-1))

        assert verify_token(token) is None

    def test_legacy_user_id_claim(self):
        # Tokens from the legacy auth service: {"userId": ...}, no type claim
        token = jwt.encode({"userId": "legacy_user"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

        token_data = verify_token(token)
        assert token_data is not None
        assert token_data.user_id == "legacy_user"

    def test_token_without_user(self):
        token = jwt.encode({"email": "nobody@example.com"}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

        assert verify_token(token) is None
