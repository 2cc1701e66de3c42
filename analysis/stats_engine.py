## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Generic k-of-N Number Statistics
## Description:
## One counting routine shared by every game shape. Given draws of k values from a domain
## of N consecutive numbers starting at `low`, it returns per-number hit counts, how many
## draws ago each number last appeared, and a z-score against the binomial expectation.
## Shape adapters in analysis/shapes.py only choose (k, N, low); they never count.

import math
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Sequence

import numpy as np

from config.settings import LOG_LEVEL, LOG_FORMAT

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

MIN_VARIANCE = 1e-9
MIN_SD = 1e-6


@dataclass
class StatsResult:
    counts: Dict[int, int]
    last_seen: Dict[int, float]
    z: Dict[int, float]
    total_draws: int
    k: int
    domain_size: int
    low: int = 1
    invalid_rows: int = field(default=0)

    @property
    def domain(self) -> range:
        return range(self.low, self.low + self.domain_size)

    def counts_array(self) -> np.ndarray:
        """Counts in domain order, as the weighting code expects."""
        return np.array([self.counts[n] for n in self.domain], dtype=float)


def _values_of(row) -> Sequence[int]:
    # Accept DrawRow objects as well as bare sequences
    return getattr(row, "values", row)


def _is_valid(values: Sequence[int], k: int, low: int, high: int, allow_repeats: bool) -> bool:
    if len(values) != k:
        return False
    for v in values:
        if not isinstance(v, (int, np.integer)) or v < low or v > high:
            return False
    if not allow_repeats and len(set(values)) != len(values):
        return False
    return True


def compute_stats(rows: Iterable, k: int, n: int, low: int = 1, allow_repeats: bool = False) -> StatsResult:
    """
    Count hits, recency and z-scores over a list of draws.

    Parameters:
    - rows: Draws sorted ascending by date (DrawRow or plain sequences of ints).
    - k (int): Values per draw.
    - n (int): Domain size; numbers run low..low+n-1.
    - low (int): Smallest number in the domain (1 for balls, 0 for digits).
    - allow_repeats (bool): Digit games may repeat a value inside one draw.

    Returns:
    - StatsResult: Dense counts/last_seen over the domain. `last_seen` is draws-ago from the
      newest valid draw (0 = in that draw, inf = never). `z` is empty when no draw is valid.
    """
    if k < 1 or n < 1:
        raise ValueError(f"Invalid draw shape k={k}, n={n}")
    high = low + n - 1
    rows = list(rows)

    valid: List[Sequence[int]] = []
    invalid = 0
    # newest first, so the index below is draws-ago
    for row in reversed(rows):
        values = tuple(_values_of(row))
        if _is_valid(values, k, low, high, allow_repeats):
            valid.append(values)
        else:
            invalid += 1

    total = len(valid)
    last_seen_arr = np.full(n, np.inf)
    if total:
        matrix = np.asarray(valid, dtype=int) - low
        counts_arr = np.bincount(matrix.ravel(), minlength=n)
        for idx, draw in enumerate(matrix):
            hit = draw[np.isinf(last_seen_arr[draw])]
            last_seen_arr[hit] = idx
    else:
        counts_arr = np.zeros(n, dtype=int)

    counts = {low + i: int(c) for i, c in enumerate(counts_arr)}
    last_seen = {low + i: (math.inf if np.isinf(v) else int(v)) for i, v in enumerate(last_seen_arr)}

    z: Dict[int, float] = {}
    if total:
        p = k / n
        expected = total * p
        sd = max(math.sqrt(max(total * p * (1 - p), MIN_VARIANCE)), MIN_SD)
        z = {num: (c - expected) / sd for num, c in counts.items()}

    if invalid:
        logging.debug(f"Skipped {invalid} row(s) that did not match a {k}-of-{n} draw.")

    return StatsResult(
        counts=counts,
        last_seen=last_seen,
        z=z,
        total_draws=total,
        k=k,
        domain_size=n,
        low=low,
        invalid_rows=invalid,
    )


async def compute_stats_async(rows: Iterable, k: int, n: int, low: int = 1, allow_repeats: bool = False) -> StatsResult:
    """Run compute_stats in a worker thread so a large history does not block the event loop."""
    return await asyncio.to_thread(compute_stats, list(rows), k, n, low, allow_repeats)
