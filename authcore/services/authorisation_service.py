"""Persistence of provider links."""

import logging
from typing import Optional

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from authcore.models.authorisation import Authorisation

logger = logging.getLogger(__name__)


class AuthorisationService:
    """Queries over the authorisation table. Callers own the transaction."""

    def __init__(self, db: Session):
        self.db = db

    def create_authorisation(
        self, user_id: int, provider_type: str, provider_user_id: str
    ) -> Authorisation:
        """
        Insert a provider link and flush it.

        Raises:
            IntegrityError: If the identity is linked already
        """
        authorisation = Authorisation(
            provider_type=provider_type,
            provider_user_id=provider_user_id,
            user_id=user_id,
        )
        self.db.add(authorisation)
        self.db.flush()
        return authorisation

    def list_user_authorisations(self, user_id: int) -> list[Authorisation]:
        query = (
            select(Authorisation)
            .where(Authorisation.user_id == user_id)
            .order_by(Authorisation.provider_type)
        )
        return list(self.db.scalars(query).all())

    def get_authorisation(self, user_id: int, provider_type: str) -> Optional[Authorisation]:
        query = select(Authorisation).where(
            Authorisation.user_id == user_id,
            Authorisation.provider_type == provider_type,
        )
        return self.db.scalars(query).first()

    def count_user_authorisations(self, user_id: int) -> int:
        query = select(func.count()).select_from(Authorisation).where(
            Authorisation.user_id == user_id
        )
        return self.db.scalar(query) or 0

    def delete_authorisation(self, user_id: int, provider_type: str) -> int:
        """
        Delete the user's link for a provider.

        Returns:
            Number of rows removed
        """
        result = self.db.execute(
            delete(Authorisation).where(
                Authorisation.user_id == user_id,
                Authorisation.provider_type == provider_type,
            )
        )
        return result.rowcount
