from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List, Optional

from fleetops.api.deps import require_admin, require_supervisor
from fleetops.core.database import get_db
from fleetops.models.enums import UserRole
from fleetops.models.user import User
from fleetops.schemas.user import UserCreate, UserResponse
from fleetops.services.users import UserService

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    return UserService(db).create(data)


@router.get("", response_model=List[UserResponse])
def list_users(
    role: Optional[UserRole] = None,
    db: Session = Depends(get_db),
    _: User = Depends(require_supervisor),
):
    return UserService(db).list(role)


@router.get("/technicians", response_model=List[UserResponse])
def list_technicians(db: Session = Depends(get_db), _: User = Depends(require_supervisor)):
    """Users that can be assigned to a work order."""
    return UserService(db).technicians()


@router.delete("/{user_id}", response_model=UserResponse)
def deactivate_user(user_id: int, db: Session = Depends(get_db), _: User = Depends(require_admin)):
    return UserService(db).deactivate(user_id)
