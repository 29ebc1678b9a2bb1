"""ExpiryResolver — settles envelopes whose lifetime has elapsed.

Two independent callers drive it: ExpireListener (Redis key-expiry
notification, fast but lossy) and the scheduled sweep (slow but complete).
Both funnel into settle(), which is safe to call any number of times for the
same envelope: conditional_expire lets exactly one caller perform the
ACTIVE → EXPIRED transition, and only that caller refunds.

Each settlement owns its session and transaction; one bad envelope never
blocks the rest of a sweep.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.cr_account.domain.constants import SYSTEM_USER_ID
from src.cr_account.domain.repository import AccountRepositoryProtocol
from src.cr_account.infrastructure.persistence import AccountRepository
from src.cr_common.datetime_utils import utc_now
from src.cr_common.enums import BalanceOperation, BalanceTotalField, EnvelopeStatus, OrderType
from src.cr_common.errors import InternalError
from src.cr_envelope.domain.invariants import check_envelope_invariants
from src.cr_envelope.domain.repository import EnvelopeRepositoryProtocol
from src.cr_envelope.infrastructure.persistence import EnvelopeRepository
from src.cr_ledger.domain.models import Order
from src.cr_ledger.domain.repository import OrderLedgerProtocol
from src.cr_ledger.infrastructure.persistence import OrderLedger

logger = logging.getLogger(__name__)


class ExpiryResolver:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        envelopes: EnvelopeRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        ledger: OrderLedgerProtocol | None = None,
        batch_size: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._session_factory = session_factory
        self._envelopes: EnvelopeRepositoryProtocol = envelopes or EnvelopeRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._ledger: OrderLedgerProtocol = ledger or OrderLedger()
        self._batch_size = batch_size
        self._clock = clock

    async def settle(self, envelope_id: int) -> bool:
        """Expire one envelope and refund its remainder to the creator.

        Returns True only for the call that performed the transition; False
        when the envelope is unknown, still live, finished, or already expired.
        """
        now = self._clock()
        async with self._session_factory() as db:
            try:
                snapshot = await self._envelopes.conditional_expire(db, envelope_id, now)
                if snapshot is None:
                    await db.rollback()
                    return False

                refund = snapshot.remaining_amount
                if refund > 0:
                    await self._accounts.update_balance(
                        db,
                        snapshot.creator_id,
                        refund,
                        BalanceOperation.REFUND,
                        BalanceTotalField.TOTAL_PAYMENT,
                    )
                    await self._ledger.append(
                        db,
                        Order(
                            order_name="Red envelope refund",
                            payer_user_id=SYSTEM_USER_ID,
                            payee_user_id=snapshot.creator_id,
                            amount=refund,
                            order_type=OrderType.ENVELOPE_REFUND,
                            remark=f"unclaimed shares={snapshot.remaining_count}",
                            reference_id=str(envelope_id),
                            trade_time=now,
                        ),
                    )

                expired = replace(
                    snapshot, status=EnvelopeStatus.EXPIRED, remaining_amount=0, remaining_count=0
                )
                claim_count, claimed_sum = await self._envelopes.claim_totals(db, envelope_id)
                if check_envelope_invariants(expired, claimed_sum, claim_count, refunded=refund):
                    raise InternalError(f"Envelope {envelope_id} invariant violated during settle")

                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Envelope expired: id=%s creator=%s refunded=%d unclaimed=%d",
            envelope_id,
            snapshot.creator_id,
            refund,
            snapshot.remaining_count,
        )
        return True

    async def sweep(self) -> int:
        """Settle every overdue envelope, paging by ascending id. Returns settled count."""
        now = self._clock()
        after_id = 0
        settled = 0
        while True:
            async with self._session_factory() as db:
                page = await self._envelopes.next_expired_page(
                    db, after_id, now, self._batch_size
                )
            if not page:
                break
            for envelope in page:
                # Advance first so a failing row is never fetched again this run
                after_id = envelope.id
                try:
                    if await self.settle(envelope.id):
                        settled += 1
                except Exception:
                    logger.exception("Failed to settle expired envelope %s", envelope.id)

        if settled:
            logger.info("Expiry sweep settled %d envelopes", settled)
        return settled
