import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional
from config import settings

UNKNOWN_PRODUCT = {"name": "Unknown Product"}


@dataclass
class DashboardSummary:
    total_products: int
    total_suppliers: int
    total_stock_out_records: int
    low_stock_items: int
    soon_to_expire: List[dict] = field(default_factory=list)
    recent_stock_out: List[dict] = field(default_factory=list)


def parse_timestamp(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def days_until(expiry: datetime, now: datetime) -> int:
    return math.ceil((expiry - now).total_seconds() / 86400)


def summarize(products: List[dict], suppliers: List[dict], records: List[dict],
              now: Optional[datetime] = None) -> DashboardSummary:
    """Build the dashboard view from the product, supplier and stock out lists.

    Low stock counts every product under the threshold, obsolete ones included.
    """
    now = parse_timestamp(now) if now else datetime.now(timezone.utc)

    low_stock = sum(1 for p in products if p["quantity"] < settings.LOW_STOCK_THRESHOLD)

    soon_to_expire = []
    for product in products:
        expiry = parse_timestamp(product.get("expiry_date"))
        if expiry is None:
            continue
        if 0 < days_until(expiry, now) <= settings.EXPIRY_WINDOW_DAYS:
            soon_to_expire.append(product)

    by_id = {p["id"]: p for p in products}
    latest = sorted(records, key=lambda r: parse_timestamp(r["timestamp"]), reverse=True)
    recent = []
    for record in latest[:settings.RECENT_STOCK_OUT_LIMIT]:
        joined = dict(record)
        joined["product"] = by_id.get(record.get("product_ref"), UNKNOWN_PRODUCT)
        recent.append(joined)

    return DashboardSummary(
        total_products=len(products),
        total_suppliers=len(suppliers),
        total_stock_out_records=len(records),
        low_stock_items=low_stock,
        soon_to_expire=soon_to_expire,
        recent_stock_out=recent,
    )
