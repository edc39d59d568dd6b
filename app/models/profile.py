"""
Profile Model

Public profile row for every account created in the identity service.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.models.enums import UserRole

if TYPE_CHECKING:
    from app.models.progress import UserProgress


class Profile(Base):
    """
    Profile model for students and staff.
    
    Email lives in the identity service, not here.
    
    Attributes:
        id: UUID primary key, same as the identity service user id.
        full_name: Display name.
        role: student, admin, team or instructor.
        created_at: Signup timestamp (drives new-user analytics).
        updated_at: Last profile change.
    """

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
    )
    full_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    role: Mapped[str] = mapped_column(
        String(50),
        default=UserRole.STUDENT.value,
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    # Relationships
    progress: Mapped[list["UserProgress"]] = relationship(
        "UserProgress",
        back_populates="profile",
    )

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role})>"
