"""User records backing authentication and technician assignment."""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from fleetops.core.config import settings
from fleetops.core.database import transaction
from fleetops.core.exceptions import ConflictError, NotFoundError
from fleetops.core.security import get_password_hash, verify_password
from fleetops.models.enums import UserRole, ASSIGNABLE_ROLES
from fleetops.models.user import User
from fleetops.schemas.user import UserCreate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError(f"User {user_id} not found")
        return user

    def create(self, data: UserCreate) -> User:
        if self.db.query(User).filter(User.username == data.username).first():
            raise ConflictError("User already exists")

        user = User(
            username=data.username,
            full_name=data.full_name,
            email=data.email,
            role=data.role,
            hashed_password=get_password_hash(data.password),
        )
        with transaction(self.db):
            self.db.add(user)
        self.db.refresh(user)
        logger.info(f"User created: {user.username} ({user.role.value})")
        return user

    def authenticate(self, username: str, password: str) -> Optional[User]:
        user = self.db.query(User).filter(User.username == username).first()
        if user and user.is_active and verify_password(password, user.hashed_password):
            return user
        return None

    def list(self, role: Optional[UserRole] = None) -> List[User]:
        query = self.db.query(User)
        if role:
            query = query.filter(User.role == role)
        return query.order_by(User.id.asc()).all()

    def technicians(self) -> List[User]:
        """Active users who can be assigned to a work order."""
        return (
            self.db.query(User)
            .filter(User.role.in_(list(ASSIGNABLE_ROLES)), User.is_active == True)  # noqa: E712
            .order_by(User.full_name.asc())
            .all()
        )

    def deactivate(self, user_id: int) -> User:
        user = self.get(user_id)
        with transaction(self.db):
            user.is_active = False
        return user


def init_default_user(db: Session) -> None:
    """Create the bootstrap administrator on an empty user table."""
    if db.query(User).count():
        return
    UserService(db).create(
        UserCreate(
            username=settings.DEFAULT_ADMIN_USERNAME,
            full_name="Administrator",
            role=UserRole.ADMINISTRATOR,
            password=settings.DEFAULT_ADMIN_PASSWORD,
        )
    )
