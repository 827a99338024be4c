import enum
from dataclasses import dataclass

from quoteflow.core.exceptions import MissingActor


class AuthorityKind(str, enum.Enum):
    automated = "automated"
    user = "user"
    admin = "admin"


@dataclass(frozen=True)
class Authority:
    """Who is driving a transition.

    ``automated`` transitions (payment events, scheduled sweeps, customer portal
    actions) carry no actor. ``user`` and ``admin`` always carry one.
    """

    kind: AuthorityKind
    actor_id: int | None = None

    def __post_init__(self):
        if self.kind is AuthorityKind.automated and self.actor_id is not None:
            raise ValueError("Automated authority cannot carry an actor id")
        if self.kind is not AuthorityKind.automated and self.actor_id is None:
            raise MissingActor(f"act as {self.kind.value}")

    @classmethod
    def automated(cls) -> "Authority":
        return cls(AuthorityKind.automated)

    @classmethod
    def user(cls, actor_id: int) -> "Authority":
        return cls(AuthorityKind.user, actor_id)

    @classmethod
    def admin(cls, actor_id: int) -> "Authority":
        return cls(AuthorityKind.admin, actor_id)

    @classmethod
    def for_user(cls, user) -> "Authority":
        """Authority for an authenticated HTTP caller."""
        if user.is_admin:
            return cls.admin(user.id)
        return cls.user(user.id)

    @property
    def is_admin(self) -> bool:
        return self.kind is AuthorityKind.admin

    @property
    def is_automated(self) -> bool:
        return self.kind is AuthorityKind.automated
