"""Dashboard projection of a floor's pipeline.

Numbers are always derived from the current leads; nothing here is stored.
"""
import logging
from decimal import Decimal

from django.db.models import Count, Sum, Value
from django.db.models.functions import Coalesce

from leads import notifications
from leads.models import Lead, Stage
from leads.retry import retry_transient

logger = logging.getLogger("jewellery")

ZERO = Decimal("0.00")


@retry_transient
def compute_dashboard(floor) -> dict:
    qs = Lead.objects.filter(floor=floor)
    rows = (
        qs.order_by()
        .values("stage")
        .annotate(
            count=Count("id"),
            amount=Coalesce(Sum("amount"), Value(ZERO)),
        )
    )
    by_stage = {stage: 0 for stage in Stage.values}
    amounts = {stage: ZERO for stage in Stage.values}
    for row in rows:
        by_stage[row["stage"]] = row["count"]
        amounts[row["stage"]] = row["amount"]

    total = sum(by_stage.values())
    won = by_stage[Stage.CLOSED_WON]
    lost = by_stage[Stage.CLOSED_LOST]
    return {
        "floor": int(floor),
        "total_leads": total,
        "by_stage": by_stage,
        "pipeline_amount": sum(amounts.values(), ZERO),
        "won_count": won,
        "lost_count": lost,
        "open_count": total - won - lost,
        "won_amount": amounts[Stage.CLOSED_WON],
        "conversion_rate": round(won / total * 100, 1) if total else 0.0,
        "unassigned_count": (
            qs.filter(assigned_to__isnull=True)
            .exclude(stage__in=[Stage.CLOSED_WON, Stage.CLOSED_LOST])
            .count()
        ),
    }


class LiveDashboard:
    """Dashboard of one floor kept fresh by lead change notifications.

    Use as a context manager, or call :meth:`close` to release the
    subscription.
    """

    def __init__(self, floor):
        self.floor = int(floor)
        self.refresh_count = 0
        self._closed = False
        self._snapshot = compute_dashboard(self.floor)
        self._subscription = notifications.subscribe_to_lead_changes(
            self.floor, self._on_change,
        )

    def _on_change(self, topic):
        self._snapshot = compute_dashboard(self.floor)
        self.refresh_count += 1

    @property
    def snapshot(self) -> dict:
        if self._subscription.active:
            notifications.touch(self._subscription)
        elif not self._closed:
            # Reaped while idle: changes since then were missed.
            logger.info("Dashboard for floor %s was reaped, resubscribing", self.floor)
            self._subscription = notifications.subscribe_to_lead_changes(
                self.floor, self._on_change,
            )
            self._snapshot = compute_dashboard(self.floor)
        return self._snapshot

    @property
    def is_open(self) -> bool:
        return self._subscription.active

    def close(self):
        self._closed = True
        notifications.unsubscribe(self._subscription)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
