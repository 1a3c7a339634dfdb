"""Registration, login and profile edits."""

from __future__ import annotations

import logging

from .. import errors, models, schemas, security
from ..repositories import UserRepository
from ..tokens import TokenManager

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    def __init__(self, users: UserRepository, tokens: TokenManager):
        self._users = users
        self._tokens = tokens

    def register(self, email: str, name: str, password: str) -> models.User:
        email = normalize_email(email)
        try:
            self._users.find_by_email(email)
        except errors.NotFound:
            pass
        else:
            raise errors.EmailAlreadyExists()

        user = self._users.create(
            models.User(
                email=email,
                name=name.strip(),
                password_hash=security.hash_password(password),  # hash before storing
            )
        )
        logger.info("user registered user_id=%s", user.id)
        return user

    def login(self, email: str, password: str) -> schemas.TokenPair:
        # Unknown email and wrong password must be indistinguishable
        try:
            user = self._users.find_by_email(normalize_email(email))
        except errors.NotFound:
            security.dummy_verify(password)
            raise errors.InvalidCredentials()

        if not security.verify_password(password, user.password_hash):
            raise errors.InvalidCredentials()

        return schemas.TokenPair(
            access_token=self._tokens.generate_access_token(user.id, user.email),
            refresh_token=self._tokens.generate_refresh_token(user.id),
        )

    def get_profile(self, user_id: int) -> models.User:
        try:
            return self._users.find_by_id(user_id)
        except errors.NotFound:
            # token outlived its user
            raise errors.Unauthenticated("user no longer exists")

    def update_profile(self, user_id: int, name: str) -> models.User:
        user = self.get_profile(user_id)
        user.name = name.strip()
        return self._users.update(user)
