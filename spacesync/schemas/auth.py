# spacesync/schemas/auth.py
from pydantic import BaseModel
from typing import Optional

class TokenData(BaseModel):
    """Claims the sync API relies on. Tokens are issued by the auth service."""
    user_id: str
    email: Optional[str] = None
