from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from backend.database import get_db
from backend.models.user import AdminUser
from backend.routers.deps import get_bearer_token, get_current_admin
from backend.schemas.user import AuthResponse, LoginRequest, UserResponse
from backend.services.auth import authenticate, create_session, revoke_session

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, payload.username, payload.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    session = create_session(db, user.id)
    return AuthResponse(
        token=session.id,
        expires_at=session.expires_at,
        user=UserResponse(id=user.id, username=user.username),
    )


@router.post("/logout")
def logout(token: str = Depends(get_bearer_token), db: Session = Depends(get_db)):
    revoke_session(db, token)
    return {"statusCode": 200, "message": "Logged out", "data": None}


@router.get("/me", response_model=UserResponse)
def me(current_admin: AdminUser = Depends(get_current_admin)):
    return UserResponse(id=current_admin.id, username=current_admin.username)
