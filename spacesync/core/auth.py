from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt

from spacesync.core.config import settings
from spacesync.schemas.auth import TokenData


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create an access token the sync API will accept.

    The auth service owns issuance; this helper signs tokens with the shared
    secret so tools and tests can talk to the API.

    Args:
        data: Token payload data (must include 'sub' for user ID)
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT access token
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    # RFC 7519 requires a string subject
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])

    to_encode.update({
        "exp": expire,
        "iat": now,
        "type": "access",
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str, token_type: str = "access") -> Optional[TokenData]:
    """
    Verify a JWT token and extract the authenticated user.

    Tokens from the legacy auth service carry the user in a ``userId`` claim
    and no ``type`` claim; both shapes are accepted.

    Args:
        token: The JWT token to verify
        token_type: Expected token type

    Returns:
        TokenData if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    user_id = payload.get("sub") or payload.get("userId")
    token_type_payload: Optional[str] = payload.get("type")

    if not user_id:
        return None
    if token_type_payload is not None and token_type_payload != token_type:
        return None

    return TokenData(user_id=str(user_id), email=payload.get("email"))
