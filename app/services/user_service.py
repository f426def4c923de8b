# app/services/user_service.py
import logging
import uuid

from sqlmodel import Session

from app.core.errors import NotFound
from app.models.user import User
from app.schemas.user import UserRoleUpdate

logger = logging.getLogger(__name__)


class UserService:
    """
    Role management. Profiles themselves are created by app.core.auth.
    """

    def update_role(
        self,
        session: Session,
        user_id: uuid.UUID,
        payload: UserRoleUpdate,
    ) -> User:
        user = session.get(User, user_id)
        if user is None:
            raise NotFound("User not found")

        previous = user.role
        user.role = payload.role
        session.add(user)
        session.commit()
        session.refresh(user)

        logger.info("User %s role changed %s -> %s", user.id, previous, user.role)
        return user
