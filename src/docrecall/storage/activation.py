"""ACT-R style base-level activation.

For access ages ``t_j`` in seconds and decay ``d``::

    B = sum(max(t_j, 1) ** -d)
    activation = ln(1 + B)

``ln(1 + B)`` keeps a single fresh access strictly positive where the
classic ``ln(B)`` would give zero. No history means exactly 0.0.
"""

from datetime import datetime, timezone
from typing import Optional, Sequence

import numpy as np

from docrecall.config import DEFAULT_DECAY

# Only the most recent accesses contribute.
MAX_HISTORY = 50


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def base_level_activation(
    accessed_at: Sequence[datetime],
    now: Optional[datetime] = None,
    decay: float = DEFAULT_DECAY,
) -> float:
    """Compute activation from access times (most recent first)."""
    if not accessed_at:
        return 0.0

    now = now or datetime.now(timezone.utc)
    ages = np.array(
        [(now - ts).total_seconds() for ts in accessed_at[:MAX_HISTORY]],
        dtype=np.float64,
    )
    strength = float(np.sum(np.power(np.maximum(ages, 1.0), -decay)))
    if strength <= 0:
        return 0.0
    return float(np.log1p(strength))
