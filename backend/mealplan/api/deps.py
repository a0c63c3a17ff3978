from fastapi import Header

from mealplan.errors import AuthError
from mealplan.logging import get_logger
from mealplan.storage import db
from mealplan.storage.models import UserProfile
from mealplan.storage.repositories import get_user_by_token

logger = get_logger(__name__)


def current_user(authorization: str | None = Header(default=None)) -> UserProfile:
    """Resolve the caller from `Authorization: Bearer <token>` before anything else runs."""
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError()
    with db.get_session() as session:
        user = get_user_by_token(session, token.strip())
        if user is None:
            logger.info("auth.rejected reason=unknown token")
            raise AuthError()
        session.expunge(user)
    return user
