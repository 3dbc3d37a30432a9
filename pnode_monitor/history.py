"""
Simulated uptime history for node detail charts.
No time series is stored; points are jittered around the node's current uptime.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from .models import PNode, UptimeDataPoint

DEFAULT_BASE_UPTIME = 95
JITTER = 5


def synthesize_uptime_history(node: PNode, days: int = 7, points: int = 101,
                              now: Optional[datetime] = None,
                              rng: Optional[random.Random] = None) -> List[UptimeDataPoint]:
    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()
    interval = timedelta(days=days) / (points - 1)
    base = node.uptime or DEFAULT_BASE_UPTIME

    history = []
    for i in range(points - 1, -1, -1):
        uptime = max(0, min(100, base + rng.uniform(-JITTER, JITTER)))
        history.append(UptimeDataPoint(timestamp=now - i * interval, uptime=round(uptime, 1)))
    return history
