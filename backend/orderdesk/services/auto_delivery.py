# backend/orderdesk/services/auto_delivery.py
"""
Auto-Delivery Sweeper.

Speed Post has no delivery tracking, so Speed Post orders still PENDING or
DISPATCHED a few days after they were created are assumed delivered.

The sweep runs in the background: listing orders fires it off without
waiting, and the app can also run it on a fixed interval. A failed sweep is
logged and never reaches the caller that triggered it.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from orderdesk.config import get_settings
from orderdesk.models import Order, OrderStatus, ShippingMethod
from orderdesk.services.audit_logger import ActorType, AuditAction, AuditLogger
from orderdesk.services.order_lifecycle import SWEEPABLE_STATUSES

logger = logging.getLogger(__name__)
settings = get_settings()


class AutoDeliverySweeper:
    """
    Marks stale Speed Post orders as DELIVERED.

    Usage:
        sweeper = AutoDeliverySweeper(async_session_maker)
        sweeper.trigger()          # fire and forget
        count = await sweeper.sweep()  # run inline
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], dwell_days: Optional[int] = None):
        """
        Args:
            session_factory: Creates a fresh session per sweep
            dwell_days: Age after which an undelivered Speed Post order is closed
        """
        self.session_factory = session_factory
        self.dwell = timedelta(days=settings.AUTO_DELIVERY_DAYS if dwell_days is None else dwell_days)
        self._task: Optional[asyncio.Task] = None

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Deliver every qualifying order in one transaction.

        Each transition gets a system audit entry. Returns the number of
        orders delivered; 0 when nothing qualifies, in which case nothing is
        written.
        """
        cutoff = (now or datetime.utcnow()) - self.dwell

        async with self.session_factory() as session:
            try:
                result = await session.execute(
                    select(Order.id, Order.status, Order.net_profit).where(
                        Order.shipping_method == ShippingMethod.SPEED_POST.value,
                        Order.status.in_(SWEEPABLE_STATUSES),
                        Order.created_at < cutoff,
                    )
                )
                stale = {row.id: row for row in result.all()}
                if not stale:
                    return 0

                # Orders changed since the select no longer match and are skipped
                updated = await session.execute(
                    update(Order)
                    .where(Order.id.in_(list(stale)), Order.status.in_(SWEEPABLE_STATUSES))
                    .values(status=OrderStatus.DELIVERED)
                    .returning(Order.id)
                    .execution_options(synchronize_session=False)
                )
                delivered = [stale[order_id] for order_id in updated.scalars().all()]

                for row in delivered:
                    await AuditLogger.log(
                        session,
                        action=AuditAction.UPDATE_ORDER_STATUS,
                        target_id=row.id,
                        previous={"status": row.status, "net_profit": row.net_profit},
                        new={"status": OrderStatus.DELIVERED, "net_profit": row.net_profit},
                        actor_type=ActorType.SYSTEM,
                    )

                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info(f"Auto-delivered {len(delivered)} Speed Post orders older than {self.dwell.days} days")
        return len(delivered)

    async def _run_safely(self, now: Optional[datetime] = None) -> int:
        try:
            return await self.sweep(now=now)
        except Exception:
            logger.exception("Auto delivery sweep failed")
            return 0

    def trigger(self, now: Optional[datetime] = None) -> asyncio.Task:
        """
        Start a sweep in the background and return immediately.

        While a sweep is still running, further triggers join it instead of
        starting another.
        """
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run_safely(now), name="auto-delivery-sweep")
        return self._task

    async def wait_idle(self) -> None:
        """Wait for an in-flight background sweep to finish."""
        if self._task is not None and not self._task.done():
            await asyncio.gather(self._task, return_exceptions=True)

    async def run_periodically(self, interval_seconds: float) -> None:
        """Sweep forever on a fixed interval; cancel the task to stop."""
        logger.info(f"Auto delivery sweep scheduled every {interval_seconds}s")
        while True:
            await self._run_safely()
            await asyncio.sleep(interval_seconds)
