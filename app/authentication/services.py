"""
User directory service.

The chat core never touches the User model directly; it asks this service
whether ids resolve to users and for the display details to embed in
conversation and message responses.

Services:
    UserDirectory: UserExists / UserLookup collaborator

Usage:
    from authentication.services import UserDirectory

    missing = UserDirectory.missing_user_ids([10, 20, 30])
    summary = UserDirectory.lookup(10)
    if summary:
        print(summary.full_name, summary.email)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from core.services import BaseService

from authentication.models import User

if TYPE_CHECKING:
    from collections.abc import Iterable


@dataclass(frozen=True)
class UserSummary:
    """Display details of a user as embedded in chat responses."""

    id: int
    first_name: str
    last_name: str
    email: str
    role: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @classmethod
    def from_user(cls, user: User) -> UserSummary:
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role=user.role,
        )


class UserDirectory(BaseService):
    """
    Read-only lookups over platform users.

    Methods:
        user_exists: Whether an id resolves to a user
        missing_user_ids: Ids from a batch that do not resolve
        lookup: Display details for one user, or None
        lookup_many: Display details for a batch, keyed by id
    """

    @classmethod
    def user_exists(cls, user_id: int) -> bool:
        return User.objects.filter(id=user_id).exists()

    @classmethod
    def missing_user_ids(cls, user_ids: Iterable[int]) -> list[int]:
        """
        Return the ids that do not resolve to an existing user.

        Order follows the input; duplicates are reported once.
        """
        wanted = list(dict.fromkeys(user_ids))
        found = set(User.objects.filter(id__in=wanted).values_list("id", flat=True))
        return [user_id for user_id in wanted if user_id not in found]

    @classmethod
    def lookup(cls, user_id: int | None) -> UserSummary | None:
        if user_id is None:
            return None
        user = User.objects.filter(id=user_id).first()
        return UserSummary.from_user(user) if user else None

    @classmethod
    def lookup_many(cls, user_ids: Iterable[int]) -> dict[int, UserSummary]:
        return {
            user.id: UserSummary.from_user(user)
            for user in User.objects.filter(id__in=set(user_ids))
        }
