"""Order numbers shown to shoppers and support staff.

Format: ``KLTZ`` + UTC date (YYMMDD) + 12 uppercase hex characters from a
UUID4, e.g. ``KLTZ2410193F9A0C6E12B4``. The random part carries 48 bits, so
concurrent checkouts on the same day do not realistically collide.
"""

from datetime import UTC, datetime
from uuid import uuid4

ORDER_NUMBER_PREFIX = "KLTZ"


def generate_order_number(now=None) -> str:
    now = now or datetime.now(UTC)
    return f"{ORDER_NUMBER_PREFIX}{now:%y%m%d}{uuid4().hex[:12].upper()}"
