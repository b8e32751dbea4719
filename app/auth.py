import logging
from dataclasses import dataclass

import jwt

from .exceptions import UnauthorizedError
from .models.user import ROLE_ADMIN

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


def decode_access_token(token: str, secret: str, algorithm: str) -> CurrentUser:
    """
    Проверка JWT, выданного сервисом авторизации.
    Ожидаются claims id и role.
    """
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
    except jwt.PyJWTError as e:
        logger.warning(f"⚠️ Token verification failed: {e}")
        raise UnauthorizedError("Invalid token") from e

    user_id = claims.get("id")
    if isinstance(user_id, str) and user_id.isascii() and user_id.isdigit():
        user_id = int(user_id)
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise UnauthorizedError("Invalid token")

    return CurrentUser(id=user_id, role=claims.get("role") or "user")
