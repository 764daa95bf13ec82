# -*- coding: utf-8 -*-
"""Approximate block dates with a bounded number of block lookups.

Given N block numbers spread over [min, max], sample at most MAX_SAMPLES + 1 anchors
(`min, min+step, ..., max`), fetch their timestamps in one batch and interpolate
linearly inside each anchor bracket.

Estimates are for display and reporting only: they are monotonic inside a bracket but
follow real block-time drift only at anchor resolution.
"""

from __future__ import annotations

import bisect
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from chaincmd.core.errors import InterpolationError

logger = logging.getLogger(__name__)

MIN_STEP = 100
MAX_SAMPLES = 50

Anchor = Tuple[int, int]


def sample_numbers(lo: int, hi: int, *, min_step: int = MIN_STEP, max_samples: int = MAX_SAMPLES) -> List[int]:
    step = max(min_step, (hi - lo) // max_samples)
    nrs = [lo + step * i for i in range(max_samples) if lo + step * i < hi]
    nrs.append(hi)
    return nrs


def interpolate(anchors: Sequence[Anchor], targets: Iterable[int]) -> Dict[int, float]:
    """Pure interpolation over sorted `(number, timestamp)` anchors -> seconds."""

    anchors = sorted(anchors)
    if not anchors:
        raise InterpolationError("No anchors to interpolate from")
    numbers = [nr for nr, _ in anchors]
    out: Dict[int, float] = {}

    for target in targets:
        if len(anchors) == 1:
            out[target] = float(anchors[0][1])
            continue
        # last anchor <= target, clamped so (i, i + 1) is always a bracket
        i = bisect.bisect_right(numbers, target) - 1
        i = max(0, min(i, len(anchors) - 2))
        a_nr, a_time = anchors[i]
        b_nr, b_time = anchors[i + 1]
        avg = (b_time - a_time) / (b_nr - a_nr)
        out[target] = a_time + (target - a_nr) * avg
    return out


class BlockTimestampInterpolator:
    def __init__(self, client: Any, *, min_step: int = MIN_STEP, max_samples: int = MAX_SAMPLES):
        self.client = client
        self.min_step = int(min_step)
        self.max_samples = int(max_samples)

    async def anchors(self, lo: int, hi: int) -> List[Anchor]:
        nrs = sample_numbers(lo, hi, min_step=self.min_step, max_samples=self.max_samples)
        try:
            blocks = await self.client.get_blocks(nrs)
        except Exception as exc:
            raise InterpolationError(f"Anchor lookup failed for blocks {lo}..{hi}: {exc}") from exc

        found: Dict[int, int] = {}
        for block in blocks or []:
            if block is None:
                continue
            found[int(block["number"])] = int(block["timestamp"])
        missing = [nr for nr in nrs if nr not in found]
        if missing:
            raise InterpolationError(f"Anchor blocks not returned: {missing[:5]}{'...' if len(missing) > 5 else ''}")
        return [(nr, found[nr]) for nr in nrs]

    async def estimate(self, block_numbers: Iterable[int]) -> Dict[int, datetime]:
        targets = sorted({int(nr) for nr in block_numbers})
        if not targets:
            return {}
        anchors = await self.anchors(targets[0], targets[-1])
        logger.info("Estimated %d block dates from %d anchors", len(targets), len(anchors))
        seconds = interpolate(anchors, targets)
        return {nr: datetime.fromtimestamp(ts, tz=timezone.utc) for nr, ts in seconds.items()}
