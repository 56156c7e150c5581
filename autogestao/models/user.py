"""User ORM model (platform accounts)."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from autogestao.db.postgres import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str | None] = mapped_column(Text, nullable=True)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    role: Mapped[str] = mapped_column(
        Text, nullable=False, default="user"
    )  # 'user' | 'admin' (platform role, not tenant role)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    last_signed_in: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    profiles: Mapped[list["Profile"]] = relationship(  # noqa: F821
        back_populates="user", lazy="raise"
    )

    @property
    def is_platform_admin(self) -> bool:
        return self.role == "admin"
