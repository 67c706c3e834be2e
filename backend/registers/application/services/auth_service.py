"""Application service (use case) for credential checks, sessions and password reset."""

import logging

from registers.application.interfaces import PasswordHasher, UserRepository
from registers.application.services.session_store import SessionStore
from registers.domain.entities import Role, Session, User
from registers.domain.exceptions import AuthenticationFailure

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def normalize_answer(answer: str) -> str:
    """Security answers are compared case- and whitespace-insensitively."""
    return answer.strip().lower()


class AuthService:
    """Orchestrates login, logout and self-service password reset.

    Credential failures always surface as the same AuthenticationFailure,
    whether the username is unknown or the password is wrong.
    """

    def __init__(
        self,
        users: UserRepository,
        sessions: SessionStore,
        hasher: PasswordHasher,
    ):
        self._users = users
        self._sessions = sessions
        self._hasher = hasher

    async def authenticate(self, username: str, password: str) -> Session:
        user = await self._users.get_by_username(username)
        # Unknown users skip the bcrypt comparison; only the message is uniform.
        if user is None or not self._hasher.verify(password, user.password_hash):
            logger.info("Failed login attempt for '%s'", username)
            raise AuthenticationFailure()
        return self._sessions.create(user.id, user.username, user.role)

    def logout(self, token: str | None) -> bool:
        return self._sessions.destroy(token)

    async def verify_security_answer(self, username: str, answer: str) -> bool:
        user = await self._users.get_by_username(username)
        if user is None:
            return False
        return self._hasher.verify(normalize_answer(answer), user.security_answer_hash)

    async def change_password(self, username: str, answer: str, new_password: str) -> None:
        """Reset a password after re-checking the security answer."""
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValueError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
            )
        if not await self.verify_security_answer(username, answer):
            raise AuthenticationFailure("Incorrect security answer")

        user = await self._users.get_by_username(username)
        user.change_password_hash(self._hasher.hash(new_password))
        await self._users.update(user)
        await self._users.commit()
        logger.info("Password changed for '%s'", username)

    async def ensure_account(
        self,
        username: str,
        password: str,
        security_answer: str,
        role: Role,
        enforce_role: bool = False,
    ) -> User:
        """Create a seeded account if missing. Idempotent.

        With ``enforce_role`` an existing account is reset to *role*.
        """
        existing = await self._users.get_by_username(username)
        if existing is not None:
            if enforce_role and existing.role != role:
                existing.role = role
                existing = await self._users.update(existing)
                await self._users.commit()
            return existing

        user = await self._users.create(
            User(
                username=username,
                password_hash=self._hasher.hash(password),
                security_answer_hash=self._hasher.hash(normalize_answer(security_answer)),
                role=role,
            )
        )
        await self._users.commit()
        logger.info("Seeded account '%s' (role=%s)", username, role.value)
        return user
