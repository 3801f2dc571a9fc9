"""Identifier generation, injected wherever new ids are needed (matches, automated seats, users)."""

from typing import Protocol
from uuid import UUID, uuid4


class IdGenerator(Protocol):
    def new_match_id(self) -> UUID: ...
    def new_bot_id(self, label: str) -> str: ...
    def new_user_id(self) -> str: ...


class UUIDGenerator:
    """Default generator: random UUID4s, independent of any request content."""

    def new_match_id(self) -> UUID:
        return uuid4()

    def new_bot_id(self, label: str) -> str:
        return f"{label or 'bot'}_{uuid4().hex}"

    def new_user_id(self) -> str:
        return f"user_{uuid4().hex}"
