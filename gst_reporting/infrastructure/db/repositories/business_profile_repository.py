"""Numbering state held on the business profile."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gst_reporting.domain.exceptions import PersistenceError
from gst_reporting.domain.models.numbering import NumberingState
from gst_reporting.infrastructure.db.models import Business

logger = logging.getLogger("business_profile_repository")


class BusinessProfileRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_business(self, business_id: uuid.UUID) -> Business | None:
        try:
            result = await self.db.execute(select(Business).where(Business.id == business_id))
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not load business {business_id}") from exc
        return result.scalar_one_or_none()

    async def _require(self, business_id: uuid.UUID) -> Business:
        business = await self.get_business(business_id)
        if business is None:
            raise PersistenceError(f"Business {business_id} not found")
        return business

    async def get_numbering_state(self, business_id: uuid.UUID) -> NumberingState:
        business = await self._require(business_id)
        return NumberingState(
            prefix=business.invoice_prefix,
            auto_numbering=bool(business.auto_numbering),
        )

    async def save_numbering_state(self, business_id: uuid.UUID, state: NumberingState) -> None:
        business = await self._require(business_id)
        business.invoice_prefix = state.prefix
        business.auto_numbering = state.auto_numbering
        business.updated_at = datetime.now(timezone.utc)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.error("Failed to save numbering state for business %s: %s", business_id, exc)
            raise PersistenceError(f"Could not save numbering state for business {business_id}") from exc
