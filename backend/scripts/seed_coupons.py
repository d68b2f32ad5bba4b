"""Seed a development shop with demo coupons covering every status.

Usage:
    python -m scripts.seed_coupons [--shop my-store.myshopify.com]

Existing coupons of the shop are removed first. Dates are relative to now, so
the status mix stays the same whenever the script runs.
"""

import argparse
from collections import Counter
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from coupon_admin.core.database import SessionLocal, init_db
from coupon_admin.models.coupon import Coupon
from coupon_admin.models.shared import utc_now
from coupon_admin.services.coupon_status import get_coupon_status

DEFAULT_SHOP = "dev-store.myshopify.com"

# (title, code, type, value, minimum, limit, used, start offset days, end offset days, active)
DEMO_COUPONS = [
    ("Summer Sale", "SUMMER25", "percentage", "25", "50", 100, 42, -30, 30, True),
    ("Welcome Discount", "WELCOME10", "percentage", "10", None, None, 187, -90, None, True),
    ("Free Shipping", "FREESHIP75", "fixed_amount", "8.99", "75", 500, 312, -60, None, True),
    ("Flash Deal", "FLASH15", "percentage", "15", "30", 50, 8, -2, 5, True),
    ("Loyalty Reward", "LOYAL20", "percentage", "20", None, 200, 73, -14, 60, True),
    ("Flat $5 Off", "FLAT5", "fixed_amount", "5", "25", None, 401, -120, None, True),
    ("Holiday Special", "HOLIDAY30", "percentage", "30", "100", 1000, 0, 15, 45, True),
    ("Spring Launch", "SPRING-LAUNCH", "fixed_amount", "12", "60", 300, 0, 30, 90, True),
    ("VIP Early Access", "VIPEARLY", "percentage", "40", None, 50, 0, 7, 14, True),
    ("Black Friday", "BFRIDAY50", "percentage", "50", "200", 500, 498, -75, -70, True),
    ("New Year Blowout", "NEWYEAR20", "fixed_amount", "20", "80", 100, 67, -40, -10, True),
    ("Valentines Deal", "LOVE15", "percentage", "15", None, 250, 250, -50, -20, True),
    ("Old Promo (Disabled)", "OLDPROMO", "percentage", "5", None, None, 22, -180, None, False),
    ("Paused Campaign", "PAUSED10", "fixed_amount", "10", "40", 100, 55, -30, 30, False),
    ("Retired Clearance", "CLEARANCE", "percentage", "35", None, 75, 75, -200, -100, False),
    ("Bulk Test A", "BULKA", "percentage", "8", None, None, 0, -5, None, True),
    ("Bulk Test B", "BULKB", "fixed_amount", "3", "15", None, 14, -10, None, True),
    ("Bulk Test C", "BULKC", "percentage", "12", None, 1000, 999, -3, 100, True),
    ("Bulk Test D", "BULKD", "fixed_amount", "50", "250", 10, 3, -1, 7, True),
]


def seed_coupons(db: Session, shop: str, now: datetime) -> list[Coupon]:
    """Replace the shop's coupons with the demo set.

    Returns:
        The created coupons.
    """
    db.query(Coupon).filter(Coupon.shop == shop).delete(synchronize_session=False)

    coupons = []
    for (
        title,
        code,
        discount_type,
        value,
        minimum,
        limit,
        used,
        start_days,
        end_days,
        is_active,
    ) in DEMO_COUPONS:
        coupons.append(
            Coupon(
                shop=shop,
                title=title,
                code=code,
                discount_type=discount_type,
                discount_value=Decimal(value),
                minimum_purchase=Decimal(minimum) if minimum is not None else None,
                usage_limit=limit,
                usage_count=used,
                starts_at=now + timedelta(days=start_days),
                ends_at=now + timedelta(days=end_days) if end_days is not None else None,
                is_active=is_active,
            )
        )

    db.add_all(coupons)
    db.commit()
    return coupons


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--shop", default=DEFAULT_SHOP)
    args = parser.parse_args()

    init_db()
    now = utc_now()
    db = SessionLocal()
    try:
        coupons = seed_coupons(db, args.shop, now)
        breakdown = Counter(
            get_coupon_status(c.is_active, c.starts_at, c.ends_at, now).value  # type: ignore[arg-type]
            for c in coupons
        )
    finally:
        db.close()

    print(f"Seeded {len(coupons)} coupons for {args.shop}")
    for status, count in sorted(breakdown.items()):
        print(f"  {status:<10} {count}")


if __name__ == "__main__":
    main()
