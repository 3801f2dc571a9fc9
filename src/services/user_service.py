"""Username registration: the durable username -> identity lookup used before a participant reaches a match."""

import logging

from src.api.models import RegisterUserRequest, UserResponse
from src.core.exceptions import InvalidUsernameError
from src.core.models import ExternalId, UserModel
from src.db.repository import UserRepository

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20


class UserService:
    def __init__(self, repository: UserRepository) -> None:
        self.repo = repository

    def register(self, request: RegisterUserRequest, candidate_id: ExternalId) -> UserResponse:
        """
        Claim a username.
        ----

        * first time the username is seen: store it together with the candidate identity
        * username already known: the caller is a returning user and gets the stored identity back
        """
        username = request.username
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise InvalidUsernameError(
                f"Username must be {USERNAME_MIN_LENGTH} to {USERNAME_MAX_LENGTH} characters long (inclusive)"
            )

        stored = self.repo.get_user(username)
        if stored is None:
            stored = self.repo.create_user(UserModel(username=username, user_id=candidate_id))
            logger.info("Registered new user %r", username)
        else:
            logger.info("Returning user %r", username)

        return UserResponse(user_id=stored.user_id, username=stored.username)
