"""Subscription cost summary: drain usage records, group and sum."""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional

import structlog

from clusterscope.auth.session import Session
from clusterscope.clients.azure.client_factory import cost_client_for
from clusterscope.clients.azure.cost_client import CostClient
from clusterscope.config.settings import CostSettings
from clusterscope.core.models import CostItem, CostReport

logger = structlog.get_logger(__name__)

CostClientFactory = Callable[[Session, Dict[str, Any]], CostClient]


def clamp_days(days: Optional[int], settings: CostSettings) -> int:
    if days is None:
        return settings.default_days
    return min(settings.max_days, max(1, int(days)))


def aggregate_costs(records: Iterable[Dict[str, Any]]) -> CostReport:
    """Group records by (name, meter category), sum cost, order by cost descending.
    
    Records without a meter category are skipped and do not count toward the total.
    """
    grouped: Dict[tuple, CostItem] = {}
    total = 0.0
    for record in records:
        category = record.get("meterCategory")
        if not category:
            continue
        cost = float(record.get("cost") or 0.0)
        total += cost
        key = (record.get("name") or "unknown", category)
        if key not in grouped:
            grouped[key] = CostItem(name=key[0], meter_category=category, cost=0.0)
        grouped[key].cost += cost
    
    items = sorted(grouped.values(), key=lambda item: (-item.cost, item.name, item.meter_category))
    return CostReport(range="", total=total, items=items)


async def cost_report(session: Session, days: Optional[int] = None,
                      settings: Optional[CostSettings] = None,
                      client_factory: Optional[CostClientFactory] = None,
                      now: Optional[datetime] = None) -> CostReport:
    """Cost of every metered resource in the session's subscription over the last ``days``."""
    settings = settings or CostSettings()
    client_factory = client_factory or cost_client_for
    days = clamp_days(days, settings)
    
    end = now or datetime.now(timezone.utc)
    start = end - timedelta(days=days)
    config = {
        "retry_attempts": settings.retry_attempts,
        "retry_backoff_factor": settings.retry_backoff_factor
    }
    
    async with client_factory(session, config) as client:
        records = [record async for record in client.iter_usage(start, end)]
    
    report = aggregate_costs(records)
    report.range = f"{start.isoformat()}/{end.isoformat()}"
    logger.info("Cost report built", days=days, items=len(report.items), total=round(report.total, 2))
    return report
