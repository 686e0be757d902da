from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from smartnotes.api import deps
from smartnotes.models.auth import LoginRequest, RegisterRequest, TokenResponse
from smartnotes.utils.auth_hash import hash_password, verify_password
from smartnotes.utils.jwt_auth import create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(req: RegisterRequest):
    try:
        if deps.users.get(req.user_id) is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")
        # never store the plaintext
        deps.users.create(req.user_id, hash_password(req.password), email=req.email)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Invalid user_id")
    except FileExistsError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User exists")
    return {"user_id": req.user_id}


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest):
    try:
        rec = deps.users.get(req.user_id)
    except ValueError:
        rec = None
    if rec is None or not verify_password(req.password, rec.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token(subject=rec.user_id, email=rec.email)
    # signing in opens the user's editing session
    await deps.sessions.open(rec.user_id)
    return TokenResponse(access_token=token, user_id=rec.user_id)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(user_id: str = Depends(get_current_user)) -> None:
    # flushes unsaved edits before the session is torn down
    await deps.sessions.logout(user_id)
    return None
