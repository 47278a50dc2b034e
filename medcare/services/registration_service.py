"""
MedCare Backend: Registration Service (Join / Rating / Cancellation Workflow)
===============================================================================

What:  The multi-step workflows that touch camps, registrations, payments,
       and users together.
Who:   Called by the /registrations route handlers.
When:  A participant joins or rates a camp, a payment is canceled, or an
       organizer changes a registration's status.

Join workflow:
    ┌──────────┐   ┌────────────┐   ┌───────────────┐   ┌──────────────┐   ┌────────────┐
    │ Validate │──▶│ Fetch camp │──▶│ Increment     │──▶│ Insert       │──▶│ Promote    │
    │ camp id  │   │ (404)      │   │ count (atomic)│   │ registration │   │ user role  │
    └──────────┘   └────────────┘   └───────────────┘   └──────────────┘   └────────────┘
        400                              500 if 0 rows

    The counter uses UPDATE ... SET participant_count = participant_count + 1,
    so concurrent joins never lose an increment. All steps run in the
    request's transaction: if the insert fails, the increment rolls back too.
    Joining the same camp twice counts twice; duplicates are not rejected.

Rating workflow:
    validate 1..5 → update registration (id AND owner email, else 404)
    → read every rating of the camp → mean → store on camp.average_rating

    The mean is recomputed from a snapshot. Two raters committing at the same
    moment can leave a mean that misses one rating; the next rating or
    CampService.reconcile_aggregates() corrects it.

Cancellation:
    Sets the registration AND the payment sharing a payment_method_id to
    Canceled. If either update matches nothing the request fails with 404
    and the transaction rollback leaves both tables unchanged.
"""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from medcare.exceptions import ConflictError, NotFoundError, ValidationError
from medcare.models.camp import Camp
from medcare.models.payment import Payment
from medcare.models.registration import Registration, RegistrationStatus
from medcare.models.user import UserRole
from medcare.schemas.registration import (
    JoinCampResponse,
    RatingResponse,
    RegistrationListResponse,
    RegistrationResponse,
)
from medcare.services.camp_service import camp_service, parse_uuid
from medcare.services.user_service import user_service

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

# Roles that a join never overrides
_PRIVILEGED_ROLES = {UserRole.ORGANIZER.value, UserRole.ADMIN.value}


class RegistrationService:
    """Business logic for camp registrations."""

    async def join_camp(
        self,
        db: AsyncSession,
        participant_email: str,
        camp_id: str,
        participant_name: Optional[str] = None,
        payment_method_id: Optional[str] = None,
    ) -> JoinCampResponse:
        """
        Register a participant to a camp.

        Args:
            db: Request session
            participant_email: Email from the verified session claims
            camp_id: Camp identifier as sent by the client
            participant_name: Display name to show the organizer
            payment_method_id: Gateway reference if the fee was already paid

        Returns:
            JoinCampResponse with the new registration id.

        Raises:
            ValidationError: camp_id is not a well-formed identifier
            NotFoundError: no such camp
            ConflictError: the counter update modified no row
        """
        # ── Step 1: Validate identifier ───────────────────────────────────
        camp_uuid = parse_uuid(camp_id, "camp_id")

        # ── Step 2: Camp must exist ───────────────────────────────────────
        await camp_service.get_camp_or_404(db, camp_uuid)

        # ── Step 3: Increment the participant counter ─────────────────────
        result = await db.execute(
            update(Camp)
            .where(Camp.id == camp_uuid)
            .values(participant_count=Camp.participant_count + 1)
        )
        if result.rowcount == 0:
            logger.error("Counter update for camp %s modified no rows", camp_uuid)
            raise ConflictError(
                message="Could not register for this camp. Please try again.",
                context={"camp_id": str(camp_uuid)},
            )

        # ── Step 4: Insert the registration ───────────────────────────────
        registration = Registration(
            camp_id=camp_uuid,
            participant_email=participant_email,
            participant_name=participant_name,
            payment_method_id=payment_method_id,
            status=RegistrationStatus.ACTIVE.value,
        )
        db.add(registration)
        await db.flush()

        # ── Step 5: Promote the user to participant ───────────────────────
        user = await user_service.get_user_by_email(db, participant_email)
        if user is None:
            logger.warning("Joined camp %s without a saved user profile: %s", camp_uuid, participant_email)
        elif user.role != UserRole.PARTICIPANT.value and user.role not in _PRIVILEGED_ROLES:
            logger.info("Promoting %s from %s to participant", participant_email, user.role)
            user.role = UserRole.PARTICIPANT.value
            await db.flush()

        logger.info("Registration %s: %s joined camp %s", registration.id, participant_email, camp_uuid)
        return JoinCampResponse(registration_id=registration.id)

    async def rate_registration(
        self,
        db: AsyncSession,
        participant_email: str,
        registration_id: str,
        rating: int,
        rating_text: Optional[str] = None,
    ) -> RatingResponse:
        """
        Store a participant's rating and refresh the camp's average.

        Raises:
            ValidationError: bad rating or id; canceled registration
            NotFoundError: no registration with this id owned by this participant
        """
        if not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(
                message=f"Rating must be between {MIN_RATING} and {MAX_RATING}",
                field="rating",
            )
        reg_uuid = parse_uuid(registration_id, "registration_id")

        result = await db.execute(
            select(Registration).where(
                Registration.id == reg_uuid,
                Registration.participant_email == participant_email,
            )
        )
        registration = result.scalar_one_or_none()
        if registration is None:
            raise NotFoundError(resource="registration", resource_id=registration_id)

        if registration.status == RegistrationStatus.CANCELED.value:
            raise ValidationError(
                message="Canceled registrations cannot be rated",
                field="registration_id",
            )

        registration.rating = rating
        registration.rating_text = rating_text
        await db.flush()

        ratings_result = await db.execute(
            select(Registration.rating).where(
                Registration.camp_id == registration.camp_id,
                Registration.rating.is_not(None),
                Registration.status != RegistrationStatus.CANCELED.value,
            )
        )
        ratings = [r for r in ratings_result.scalars().all()]
        average = sum(ratings) / len(ratings)

        await db.execute(
            update(Camp)
            .where(Camp.id == registration.camp_id)
            .values(average_rating=average)
        )
        logger.info(
            "Registration %s rated %d; camp %s average now %.2f over %d ratings",
            reg_uuid, rating, registration.camp_id, average, len(ratings),
        )
        return RatingResponse(camp_id=registration.camp_id, average_rating=average)

    async def cancel_by_payment_method(
        self,
        db: AsyncSession,
        payment_method_id: str,
        participant_email: Optional[str] = None,
        organizer_email: Optional[str] = None,
    ) -> None:
        """
        Cancel the registration and payment that share a payment-method reference.

        Args:
            participant_email: When set, only that participant's records match.
            organizer_email: When set, only registrations of camps this
                organizer owns match, and the payment only when such a
                registration carries the reference.
                Admins pass neither.

        Raises:
            NotFoundError: either update matched no row
        """
        reg_stmt = update(Registration).where(Registration.payment_method_id == payment_method_id)
        pay_stmt = update(Payment).where(Payment.payment_method_id == payment_method_id)
        if participant_email is not None:
            reg_stmt = reg_stmt.where(Registration.participant_email == participant_email)
            pay_stmt = pay_stmt.where(Payment.payer_email == participant_email)
        if organizer_email is not None:
            owned_camps = select(Camp.id).where(Camp.organizer_email == organizer_email)
            reg_stmt = reg_stmt.where(Registration.camp_id.in_(owned_camps))
            pay_stmt = pay_stmt.where(
                select(Registration.id)
                .where(
                    Registration.payment_method_id == payment_method_id,
                    Registration.camp_id.in_(owned_camps),
                )
                .exists()
            )

        canceled = RegistrationStatus.CANCELED.value
        # In-session sync cannot evaluate the subquery filters
        reg_result = await db.execute(
            reg_stmt.values(status=canceled).execution_options(synchronize_session=False)
        )
        pay_result = await db.execute(
            pay_stmt.values(status=canceled).execution_options(synchronize_session=False)
        )

        if reg_result.rowcount == 0 or pay_result.rowcount == 0:
            logger.info(
                "Cancel for %s matched %d registrations and %d payments",
                payment_method_id, reg_result.rowcount, pay_result.rowcount,
            )
            raise NotFoundError(resource="payment", resource_id=payment_method_id)

        logger.info("Canceled registration and payment for %s", payment_method_id)

    async def update_status(
        self,
        db: AsyncSession,
        registration_id: str,
        status: RegistrationStatus,
        organizer_email: str,
    ) -> RegistrationResponse:
        """
        Organizer sets a registration's status; the linked payment mirrors it.

        Only registrations of camps owned by the organizer are visible.
        """
        reg_uuid = parse_uuid(registration_id, "registration_id")
        result = await db.execute(
            select(Registration)
            .join(Camp, Camp.id == Registration.camp_id)
            .where(Registration.id == reg_uuid, Camp.organizer_email == organizer_email)
        )
        registration = result.scalar_one_or_none()
        if registration is None:
            raise NotFoundError(resource="registration", resource_id=registration_id)

        registration.status = status.value
        if registration.payment_method_id:
            await db.execute(
                update(Payment)
                .where(Payment.payment_method_id == registration.payment_method_id)
                .values(status=status.value)
            )
        await db.flush()
        return RegistrationResponse.model_validate(registration)

    async def list_for_participant(
        self,
        db: AsyncSession,
        participant_email: str,
        page: int = 1,
        limit: int = 10,
    ) -> RegistrationListResponse:
        condition = Registration.participant_email == participant_email
        return await self._paginate(db, condition, page, limit)

    async def list_for_organizer(
        self,
        db: AsyncSession,
        organizer_email: str,
        page: int = 1,
        limit: int = 10,
    ) -> RegistrationListResponse:
        owned_camps = select(Camp.id).where(Camp.organizer_email == organizer_email)
        condition = Registration.camp_id.in_(owned_camps)
        return await self._paginate(db, condition, page, limit)

    async def _paginate(self, db: AsyncSession, condition, page: int, limit: int) -> RegistrationListResponse:
        skip = (page - 1) * limit
        result = await db.execute(
            select(Registration)
            .where(condition)
            .order_by(Registration.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        registrations = list(result.scalars().all())
        total = await db.scalar(select(func.count(Registration.id)).where(condition)) or 0
        return RegistrationListResponse(
            registrations=[RegistrationResponse.model_validate(r) for r in registrations],
            total_count=total,
            page=page,
            limit=limit,
            has_more=skip + len(registrations) < total,
        )


registration_service = RegistrationService()
