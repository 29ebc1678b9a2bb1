"""EnvelopeApplicationService — creation, claim and read side of red envelopes.

create_envelope and claim each run as ONE transaction on the caller's session:
    try: ... await db.commit()
    except Exception: await db.rollback(); raise
so a balance change, its envelope mutation and its order row commit together
or not at all.

Claim ordering under the envelope row lock:
    expired → finished → self-claim policy → already claimed → split → write
"""

import logging
import random
from collections.abc import Callable
from datetime import datetime

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from src.cr_account.domain.repository import AccountRepositoryProtocol
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.cents import calculate_fee, cents_to_display
from src.cr_common.datetime_utils import utc_day_start, utc_now
from src.cr_common.enums import (
    BalanceOperation,
    BalanceTotalField,
    EnvelopeStatus,
    EnvelopeType,
    OrderType,
)
from src.cr_common.errors import (
    AccountNotFoundError,
    AlreadyClaimedError,
    CannotClaimOwnEnvelopeError,
    DailyLimitExceededError,
    EnvelopeExpiredError,
    EnvelopeFinishedError,
    EnvelopeNotFoundError,
    EnvelopesDisabledError,
    InsufficientBalanceError,
    InternalError,
    InvalidAmountError,
    InvalidCountError,
)
from src.cr_common.id_generator import generate_id, is_storable_id
from src.cr_envelope.application.schemas import (
    ClaimResponse,
    ClaimView,
    CreateEnvelopeRequest,
    CreateEnvelopeResponse,
    DetailResponse,
    EnvelopeView,
    ListRequest,
    ListResponse,
)
from src.cr_envelope.domain.invariants import check_envelope_invariants
from src.cr_envelope.domain.models import Claim, Envelope
from src.cr_envelope.domain.policy import EnvelopePolicy
from src.cr_envelope.domain.repository import EnvelopeRepositoryProtocol, ExpiryTimerProtocol
from src.cr_envelope.domain.split import MIN_SHARE, fixed_unit_share, split_share
from src.cr_envelope.infrastructure.persistence import EnvelopeRepository
from src.cr_ledger.domain.models import Order
from src.cr_ledger.domain.repository import OrderLedgerProtocol
from src.cr_ledger.infrastructure.persistence import OrderLedger

logger = logging.getLogger(__name__)


def _send_remark(total_count: int, fee: int, greeting: str) -> str:
    remark = f"count={total_count}, fee={cents_to_display(fee)}"
    if greeting:
        remark += f", greeting={greeting}"
    return remark


class EnvelopeApplicationService:
    def __init__(
        self,
        envelopes: EnvelopeRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        ledger: OrderLedgerProtocol | None = None,
        timer: ExpiryTimerProtocol | None = None,
        policy: EnvelopePolicy | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._envelopes: EnvelopeRepositoryProtocol = envelopes or EnvelopeRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._ledger: OrderLedgerProtocol = ledger or OrderLedger()
        self._timer = timer
        self._policy = policy or EnvelopePolicy()
        self._rng = rng
        self._clock = clock

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _validate_shape(self, envelope_type: EnvelopeType, total: int, count: int) -> None:
        policy = self._policy
        if not policy.enabled:
            raise EnvelopesDisabledError()
        if total < policy.min_amount:
            raise InvalidAmountError(
                f"total must be at least {cents_to_display(policy.min_amount)}"
            )
        if total > policy.max_amount:
            raise InvalidAmountError(
                f"total must not exceed {cents_to_display(policy.max_amount)}"
            )
        if count < 1 or count > policy.max_recipients:
            raise InvalidCountError(f"count must be between 1 and {policy.max_recipients}")
        if total < MIN_SHARE * count:
            raise InvalidAmountError("each share must be at least 0.01")
        if (
            envelope_type == EnvelopeType.FIXED
            and fixed_unit_share(total, count) * (count - 1) > total - MIN_SHARE
        ):
            # Rounded-up unit shares would leave nothing for the last claimant
            raise InvalidAmountError(
                f"{cents_to_display(total)} cannot be split evenly into {count} shares"
            )

    async def create_envelope(
        self, db: AsyncSession, creator_id: str, req: CreateEnvelopeRequest
    ) -> CreateEnvelopeResponse:
        try:
            total = req.total_amount_cents
        except ValueError as exc:
            raise InvalidAmountError(str(exc)) from None
        count = req.total_count
        self._validate_shape(req.type, total, count)

        now = self._clock()
        day_start = utc_day_start(now)
        # Early rejection; re-counted under the account row lock below
        await self._check_daily_limit(db, creator_id, day_start)

        fee = calculate_fee(total, self._policy.fee_rate_bps)
        payable = total + fee

        # Early rejection; re-checked under the account row lock below
        account = await self._accounts.get_account_by_user_id(db, creator_id)
        if account is None:
            raise AccountNotFoundError(creator_id)
        if account.available_balance < payable:
            raise InsufficientBalanceError(payable, account.available_balance)

        envelope = Envelope(
            id=generate_id(),
            creator_id=creator_id,
            envelope_type=req.type,
            total_amount=total,
            remaining_amount=total,
            total_count=count,
            remaining_count=count,
            status=EnvelopeStatus.ACTIVE,
            expires_at=now + self._policy.lifetime,
            greeting=req.greeting,
        )

        try:
            await self._accounts.update_balance(
                db,
                creator_id,
                payable,
                BalanceOperation.DEDUCT,
                BalanceTotalField.TOTAL_PAYMENT,
                check_balance=True,
            )
            # Creates by one sender serialize on its account row from here
            await self._check_daily_limit(db, creator_id, day_start)
            envelope = await self._envelopes.insert_envelope(db, envelope)
            await self._ledger.append(
                db,
                Order(
                    order_name="Red envelope sent",
                    payer_user_id=creator_id,
                    payee_user_id=None,
                    amount=payable,
                    order_type=OrderType.ENVELOPE_SEND,
                    remark=_send_remark(count, fee, req.greeting),
                    reference_id=str(envelope.id),
                    trade_time=now,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Envelope created: id=%s creator=%s type=%s total=%d count=%d fee=%d",
            envelope.id,
            creator_id,
            envelope.envelope_type.value,
            total,
            count,
            fee,
        )
        await self._arm_timer(envelope, now)

        return CreateEnvelopeResponse(
            id=str(envelope.id),
            fee_cents=fee,
            expires_at=envelope.expires_at.isoformat(),
        )

    async def _check_daily_limit(
        self, db: AsyncSession, creator_id: str, day_start: datetime
    ) -> None:
        created_today = await self._envelopes.count_created_since(db, creator_id, day_start)
        if created_today >= self._policy.daily_limit:
            raise DailyLimitExceededError(self._policy.daily_limit)

    async def _arm_timer(self, envelope: Envelope, now: datetime) -> None:
        if self._timer is None:
            return
        try:
            await self._timer.arm(envelope.id, envelope.expires_at, now)
        except RedisError as exc:
            # The sweep still settles it
            logger.warning("Failed to arm expiry timer for envelope %s: %s", envelope.id, exc)

    # ------------------------------------------------------------------
    # Claim
    # ------------------------------------------------------------------

    async def claim(
        self, db: AsyncSession, envelope_id: int, claimant_id: str
    ) -> ClaimResponse:
        if not is_storable_id(envelope_id):
            raise EnvelopeNotFoundError(envelope_id)
        now = self._clock()
        try:
            envelope = await self._envelopes.lock_for_claim(db, envelope_id)
            if envelope is None:
                raise EnvelopeNotFoundError(envelope_id)
            if envelope.is_expired_at(now):
                raise EnvelopeExpiredError(envelope_id)
            if envelope.is_exhausted():
                raise EnvelopeFinishedError(envelope_id)
            if not self._policy.allow_self_claim and claimant_id == envelope.creator_id:
                raise CannotClaimOwnEnvelopeError()
            if await self._envelopes.find_claim(db, envelope_id, claimant_id) is not None:
                raise AlreadyClaimedError(envelope_id)

            amount = split_share(
                envelope.envelope_type,
                total_amount=envelope.total_amount,
                total_count=envelope.total_count,
                remaining_amount=envelope.remaining_amount,
                remaining_count=envelope.remaining_count,
                rng=self._rng,
            )

            await self._envelopes.insert_claim(
                db,
                Claim(id=generate_id(), envelope_id=envelope_id, user_id=claimant_id, amount=amount),
            )
            updated = envelope.after_claim(amount)
            await self._envelopes.update_counters(db, updated)

            claim_count, claimed_sum = await self._envelopes.claim_totals(db, envelope_id)
            if check_envelope_invariants(updated, claimed_sum, claim_count):
                raise InternalError(f"Envelope {envelope_id} invariant violated during claim")

            await self._accounts.update_balance(
                db,
                claimant_id,
                amount,
                BalanceOperation.ADD,
                BalanceTotalField.TOTAL_RECEIVE,
            )
            await self._ledger.append(
                db,
                Order(
                    order_name="Red envelope received",
                    payer_user_id=envelope.creator_id,
                    payee_user_id=claimant_id,
                    amount=amount,
                    order_type=OrderType.ENVELOPE_RECEIVE,
                    remark=envelope.greeting,
                    reference_id=str(envelope_id),
                    trade_time=now,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Envelope claimed: id=%s user=%s amount=%d remaining=%d/%d",
            envelope_id,
            claimant_id,
            amount,
            updated.remaining_count,
            updated.total_count,
        )
        return ClaimResponse(
            amount_cents=amount,
            amount_display=cents_to_display(amount),
            red_envelope=EnvelopeView.from_domain(updated),
        )

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    async def get_detail(
        self, db: AsyncSession, envelope_id: int, viewer_id: str
    ) -> DetailResponse:
        if not is_storable_id(envelope_id):
            raise EnvelopeNotFoundError(envelope_id)
        envelope = await self._envelopes.get_envelope(db, envelope_id)
        if envelope is None:
            raise EnvelopeNotFoundError(envelope_id)
        claims = await self._envelopes.list_claims(db, envelope_id)
        mine = next((c for c in claims if c.user_id == viewer_id), None)
        return DetailResponse(
            red_envelope=EnvelopeView.from_domain(envelope),
            claims=[ClaimView.from_domain(c) for c in claims],
            user_claimed=ClaimView.from_domain(mine) if mine else None,
        )

    async def list_envelopes(
        self, db: AsyncSession, user_id: str, req: ListRequest
    ) -> ListResponse:
        offset = (req.page - 1) * req.page_size
        total, envelopes = await self._envelopes.list_envelopes(
            db, user_id, req.box, offset, req.page_size
        )
        return ListResponse(
            total=total,
            page=req.page,
            page_size=req.page_size,
            red_envelopes=[EnvelopeView.from_domain(e) for e in envelopes],
        )
