import os
import random
import time
from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], float]


# ----------------------------
# Helpers
# ----------------------------
def now_ts() -> float:
    return time.time()


def to_iso(ts: float | None) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def unique_filename(original: str, clock: Clock, rng: random.Random,
                    prefix: str = "") -> str:
    """Build "{prefix}{unix_ms}-{6 hex}{ext}" with ext taken from `original`."""
    ext = os.path.splitext(original or "")[1].lower()
    millis = int(clock() * 1000)
    return f"{prefix}{millis}-{rng.getrandbits(24):06x}{ext}"


def format_amount(amount: int) -> str:
    # minor units -> "100.00"
    return f"{amount / 100:.2f}"
