"""
MedCare Backend: Camp Service
===============================

What:  Camp CRUD, filtered/paginated listing, and aggregate reconciliation.
Why:   Keeps query construction and ownership rules out of the route handlers.
How:   SQLAlchemy select/update/delete statements against the request session.

Listing query plan:
    SELECT ... FROM camps
    WHERE category = :category
      AND (name ILIKE :q OR location ILIKE :q OR healthcare_professional ILIKE :q)
      AND scheduled_at >= :day_start AND scheduled_at < :day_end
    ORDER BY <sort> LIMIT :limit OFFSET (:page - 1) * :limit

    Offset pagination matches the page-number UI of the camp catalogue.
    The total count is a separate COUNT(*) with the same filters.

Aggregates:
    participant_count and average_rating are cached on the camp row.
    reconcile_aggregates() recomputes both from the registrations table,
    which repairs drift left by concurrent raters or by cancellations.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.exceptions import NotFoundError, ValidationError
from medcare.models.camp import Camp
from medcare.models.registration import Registration, RegistrationStatus
from medcare.schemas.camp import (
    CampCreate,
    CampListParams,
    CampListResponse,
    CampResponse,
    CampUpdate,
)

logger = logging.getLogger(__name__)


def parse_uuid(value: str, field: str = "id") -> uuid.UUID:
    """Parse a path or body identifier, raising a 400 for malformed keys."""
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(message=f"Invalid {field.replace('_', ' ')}", field=field)


def _parse_day(value: str) -> datetime:
    try:
        day = datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise ValidationError(message="Invalid date, expected YYYY-MM-DD", field="date")
    return day.replace(tzinfo=timezone.utc)


class CampService:
    """Business logic for camps."""

    async def get_camp_or_404(self, db: AsyncSession, camp_id: uuid.UUID) -> Camp:
        camp = await db.get(Camp, camp_id)
        if camp is None:
            raise NotFoundError(resource="camp", resource_id=str(camp_id))
        return camp

    async def create_camp(
        self,
        db: AsyncSession,
        payload: CampCreate,
        organizer_email: str,
        organizer_name: Optional[str] = None,
    ) -> CampResponse:
        camp = Camp(
            **payload.model_dump(),
            organizer_email=organizer_email,
            organizer_name=organizer_name,
            participant_count=0,
        )
        db.add(camp)
        await db.flush()
        logger.info("Camp %s created by %s", camp.id, organizer_email)
        return CampResponse.model_validate(camp)

    async def get_camp(self, db: AsyncSession, camp_id: str) -> CampResponse:
        camp = await self.get_camp_or_404(db, parse_uuid(camp_id, "camp_id"))
        return CampResponse.model_validate(camp)

    async def update_camp(
        self,
        db: AsyncSession,
        camp_id: str,
        payload: CampUpdate,
        organizer_email: str,
    ) -> CampResponse:
        """Apply a partial update. Only the camp's own organizer may change it."""
        camp = await self._get_owned(db, camp_id, organizer_email)
        for field, value in payload.model_dump(exclude_unset=True).items():
            setattr(camp, field, value)
        await db.flush()
        return CampResponse.model_validate(camp)

    async def delete_camp(self, db: AsyncSession, camp_id: str, organizer_email: str) -> None:
        camp = await self._get_owned(db, camp_id, organizer_email)
        # Registrations go first so SQLite (no FK cascade by default) stays consistent
        await db.execute(delete(Registration).where(Registration.camp_id == camp.id))
        await db.delete(camp)
        await db.flush()
        logger.info("Camp %s deleted by %s", camp.id, organizer_email)

    async def _get_owned(self, db: AsyncSession, camp_id: str, organizer_email: str) -> Camp:
        camp = await self.get_camp_or_404(db, parse_uuid(camp_id, "camp_id"))
        # Someone else's camp is reported as absent rather than forbidden
        if camp.organizer_email != organizer_email:
            raise NotFoundError(resource="camp", resource_id=str(camp.id))
        return camp

    def _apply_filters(self, query: Select, params: CampListParams) -> Select:
        if params.category:
            query = query.where(Camp.category == params.category)

        if params.search:
            pattern = f"%{params.search.strip()}%"
            query = query.where(
                or_(
                    Camp.name.ilike(pattern),
                    Camp.location.ilike(pattern),
                    Camp.healthcare_professional.ilike(pattern),
                )
            )

        if params.date:
            day_start = _parse_day(params.date)
            query = query.where(
                Camp.scheduled_at >= day_start,
                Camp.scheduled_at < day_start + timedelta(days=1),
            )
        return query

    async def list_camps(self, db: AsyncSession, params: CampListParams) -> CampListResponse:
        """
        List camps with filters, sorting, and offset pagination.

        Returns:
            CampListResponse with the page of camps, total count, and has_more flag.
        """
        query = self._apply_filters(select(Camp), params)

        if params.sort == "most_registered":
            query = query.order_by(Camp.participant_count.desc(), Camp.created_at.desc())
        elif params.sort == "fees_asc":
            query = query.order_by(Camp.fees.asc())
        elif params.sort == "fees_desc":
            query = query.order_by(Camp.fees.desc())
        elif params.sort == "name":
            query = query.order_by(Camp.name.asc())
        else:
            query = query.order_by(Camp.created_at.desc())

        skip = (params.page - 1) * params.limit
        result = await db.execute(query.offset(skip).limit(params.limit))
        camps = list(result.scalars().all())

        count_query = self._apply_filters(select(func.count(Camp.id)), params)
        total = await db.scalar(count_query) or 0

        return CampListResponse(
            camps=[CampResponse.model_validate(c) for c in camps],
            total_count=total,
            page=params.page,
            limit=params.limit,
            has_more=skip + len(camps) < total,
        )

    async def list_for_organizer(self, db: AsyncSession, organizer_email: str) -> List[CampResponse]:
        result = await db.execute(
            select(Camp)
            .where(Camp.organizer_email == organizer_email)
            .order_by(Camp.created_at.desc())
        )
        return [CampResponse.model_validate(c) for c in result.scalars().all()]

    async def popular(self, db: AsyncSession, limit: int = 6) -> List[CampResponse]:
        """Camps with the most registrations, for the home page."""
        result = await db.execute(
            select(Camp).order_by(Camp.participant_count.desc()).limit(limit)
        )
        return [CampResponse.model_validate(c) for c in result.scalars().all()]

    async def reconcile_aggregates(
        self,
        db: AsyncSession,
        camp_id: Optional[str] = None,
    ) -> int:
        """
        Recompute cached participant counts and average ratings.

        participant_count = non-canceled registrations of the camp
        average_rating    = mean rating of non-canceled registrations (NULL if none)

        Args:
            camp_id: Limit the pass to one camp; None reconciles every camp.

        Returns:
            Number of camps whose cached values changed.
        """
        query = select(Camp)
        if camp_id is not None:
            target = parse_uuid(camp_id, "camp_id")
            await self.get_camp_or_404(db, target)
            query = query.where(Camp.id == target)
        camps = list((await db.execute(query)).scalars().all())

        counts = dict(
            (
                await db.execute(
                    select(Registration.camp_id, func.count(Registration.id))
                    .where(Registration.status != RegistrationStatus.CANCELED.value)
                    .group_by(Registration.camp_id)
                )
            ).all()
        )
        averages = dict(
            (
                await db.execute(
                    select(Registration.camp_id, func.avg(Registration.rating))
                    .where(Registration.rating.is_not(None))
                    .where(Registration.status != RegistrationStatus.CANCELED.value)
                    .group_by(Registration.camp_id)
                )
            ).all()
        )

        changed = 0
        for camp in camps:
            count = int(counts.get(camp.id, 0))
            avg = averages.get(camp.id)
            average = float(avg) if avg is not None else None
            if camp.participant_count != count or camp.average_rating != average:
                logger.info(
                    "Reconciled camp %s: count %s→%s, rating %s→%s",
                    camp.id, camp.participant_count, count, camp.average_rating, average,
                )
                camp.participant_count = count
                camp.average_rating = average
                changed += 1

        await db.flush()
        return changed


camp_service = CampService()
