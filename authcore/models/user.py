"""User model."""

from sqlalchemy import Boolean, Column, Enum, Integer, String
from sqlalchemy.orm import relationship

from authcore.db.base import Base
from authcore.models.enums import Role


class User(Base):
    """
    A person's identity.

    A NULL password means the account has no local login and can only
    authenticate through one of its provider links.
    """

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=True)
    # Stored lower-case; callers normalize before writing or querying
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=True)
    is_email_verified = Column(Boolean, nullable=False, default=False)
    role = Column(
        Enum(Role, name="role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.USER,
    )

    authorisations = relationship(
        "Authorisation",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def has_local_login(self) -> bool:
        return self.password is not None

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
