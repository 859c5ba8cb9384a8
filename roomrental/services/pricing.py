"""
Booking price computation.

The price is a pure function of the room's daily rate and the stay dates,
evaluated once when the booking is admitted and stored on the booking.
"""

import math
from datetime import date, datetime
from decimal import Decimal
from typing import Union

SECONDS_PER_DAY = 24 * 60 * 60

DateLike = Union[date, datetime]


def count_days(check_in: DateLike, check_out: DateLike) -> int:
    """Length of the stay in days; a started day counts as a full day."""
    seconds = abs((check_out - check_in).total_seconds())
    return math.ceil(seconds / SECONDS_PER_DAY)


def calculate_total_price(price: Union[Decimal, int, str], check_in: DateLike, check_out: DateLike) -> Decimal:
    return Decimal(str(price)) * count_days(check_in, check_out)
