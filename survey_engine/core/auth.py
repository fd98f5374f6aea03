import logging
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import List
import jwt
from datetime import datetime, timedelta, timezone
from survey_engine.core.config import settings

logger = logging.getLogger(__name__)

class TokenData(BaseModel):
    sub: str
    roles: List[str]

bearer = HTTPBearer()

def _secret() -> str:
    return settings.SECRET_KEY.get_secret_value()

def create_token(user_id: str, roles: List[str], ttl_minutes: int | None = None) -> str:
    ttl = ttl_minutes if ttl_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    now = datetime.now(timezone.utc)
    payload = {"sub": user_id, "roles": roles, "iat": int(now.timestamp()), "exp": int((now + timedelta(minutes=ttl)).timestamp())}
    return jwt.encode(payload, _secret(), algorithm=settings.ALGORITHM)

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> TokenData:
    """The token subject is the survey owner id stored on attempts."""
    try:
        payload = jwt.decode(creds.credentials, _secret(), algorithms=[settings.ALGORITHM])
        return TokenData(sub=str(payload["sub"]), roles=payload.get("roles", []))
    except (jwt.PyJWTError, KeyError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")

def require_roles(*required: str):
    def checker(user: TokenData = Depends(get_current_user)):
        if not set(user.roles) & set(required):
            logger.warning(f"User {user.sub} lacks role {'/'.join(required)}")
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user
    return checker
