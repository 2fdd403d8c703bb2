"""Authentication API."""
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.orm import Session

from fleetops.core.database import get_db
from fleetops.core.security import get_current_user, token_for
from fleetops.models.user import User
from fleetops.schemas.user import LoginRequest, TokenResponse, UserResponse
from fleetops.services.users import UserService

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    user = UserService(db).authenticate(request.username, request.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return TokenResponse(access_token=token_for(user))


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    return current_user
