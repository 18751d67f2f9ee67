"""Provider link model."""

from sqlalchemy import Column, ForeignKey, Index, Integer, PrimaryKeyConstraint, String, UniqueConstraint
from sqlalchemy.orm import relationship

from authcore.db.base import Base


class Authorisation(Base):
    """
    Association between a provider identity and a local user.

    Rows are created on link or OAuth signup and deleted on unlink; they are
    never updated in place. A provider identity maps to at most one user.
    """

    __tablename__ = "authorisation"
    __table_args__ = (
        PrimaryKeyConstraint("provider_type", "provider_user_id", "user_id", name="primary_key"),
        UniqueConstraint("provider_type", "provider_user_id", name="unique_provider_user"),
        Index("authorisations_user_id_index", "user_id"),
    )

    provider_type = Column(String(255), nullable=False)
    provider_user_id = Column(String(255), nullable=False)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)

    user = relationship("User", back_populates="authorisations")

    def __repr__(self) -> str:
        return (
            f"<Authorisation(provider_type={self.provider_type}, "
            f"provider_user_id={self.provider_user_id}, user_id={self.user_id})>"
        )
