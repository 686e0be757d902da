from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from smartnotes import config

bearer = HTTPBearer(auto_error=False)


def create_access_token(subject: str, email: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=config.jwt_exp_minutes())
    payload = {"sub": subject, "iat": int(now.timestamp()), "exp": int(exp.timestamp())}
    if email:
        payload["email"] = email
    return jwt.encode(payload, config.jwt_secret(), algorithm=config.jwt_algorithm())


def decode_token(token: str) -> dict:
    return jwt.decode(token, config.jwt_secret(), algorithms=[config.jwt_algorithm()])


def get_current_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """
    Resolve the user id that namespaces every note operation.

    - Prefer JWT (Authorization: Bearer ...)
    - Fall back to X-User-Id for the demo client and tests
    """
    if creds is not None and creds.scheme.lower() == "bearer":
        try:
            payload = decode_token(creds.credentials)
        except JWTError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
        sub = payload.get("sub")
        if not sub:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
        return str(sub)

    if x_user_id:
        if "/" in x_user_id or "\\" in x_user_id or ".." in x_user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid user id")
        return x_user_id

    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing credentials")
