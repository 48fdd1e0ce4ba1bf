"""User ORM model for JWT authentication.

Users authenticate via email/password and receive bearer tokens; the
``role`` column drives ``require_role`` checks on every route.
"""

from __future__ import annotations

from sqlalchemy import Enum, String, text
from sqlalchemy.orm import Mapped, mapped_column

from farmops.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from farmops.models.enums import UserRoleEnum


class User(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    """Application user: authenticates via email/password (JWT)."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(320), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str] = mapped_column(
        String(128), nullable=False
    )
    role: Mapped[UserRoleEnum] = mapped_column(
        Enum(
            UserRoleEnum,
            name="user_role",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=UserRoleEnum.viewer,
        server_default="viewer",
    )
    is_active: Mapped[bool] = mapped_column(
        default=True,
        server_default=text("true"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role}>"
