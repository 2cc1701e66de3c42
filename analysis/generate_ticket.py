## Modified By: Callam
## Project: Draw Analytics
## Purpose: Weighted ticket generation for every game shape
## Notes:
##   - Weights come from analysis/weights.py (hot/cold blended with uniform)
##   - "avoid_common" rejects and redraws tickets that match popular patterns
##   - Rejection is bounded; after MAX_PATTERN_RETRIES the last draw is accepted
##   - Pass a seeded numpy Generator for reproducible tickets

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from config.settings import LOG_LEVEL, LOG_FORMAT, MAX_PATTERN_RETRIES
from registry import resolve_canonical_group
from analysis.stats_engine import StatsResult
from analysis.shapes import LottoStats, compute_lotto_stats
from analysis.historical import filter_rows_for_era
from analysis.weights import build_weights, weighted_sample_distinct
from analysis.hints import (
    looks_too_common,
    has_consecutive_run,
    kofn_is_tight,
    is_palindrome,
    is_sum_outlier,
    longest_run_len,
)

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

KOFN_EPS_FLOOR = 0.1
KOFN_EPS_CAP = 1.0


@dataclass
class TicketOptions:
    mode_main: str = "hot"
    mode_special: str = "hot"
    alpha_main: float = 0.60
    alpha_special: float = 0.60
    avoid_common: bool = False
    max_retries: int = MAX_PATTERN_RETRIES


def options_from_analysis(analysis: Dict[str, Any], avoid_common: bool = True) -> TicketOptions:
    """Turn analyze_game() recommendations into generator options."""
    rec_main = analysis.get("rec_main") or {}
    rec_special = analysis.get("rec_special") or {}
    return TicketOptions(
        mode_main=rec_main.get("mode", "hot"),
        mode_special=rec_special.get("mode", "hot"),
        alpha_main=rec_main.get("alpha", 0.60),
        alpha_special=rec_special.get("alpha", 0.60),
        avoid_common=avoid_common,
    )


def _rng(rng: Optional[np.random.Generator]) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


def _retry(draw, rejected, options: TicketOptions, label: str):
    """Draw until `rejected` is False or the retry cap is hit, then accept the last candidate."""
    candidate = draw()
    if not options.avoid_common:
        return candidate
    tries = 1
    while rejected(candidate):
        if tries >= max(1, options.max_retries):
            logging.info(f"{label}: pattern avoidance gave up after {tries} attempts; accepting last draw.")
            break
        candidate = draw()
        tries += 1
    return candidate


# ---------------- Lotto-style (5/6 + special) ----------------
def generate_from_stats(stats: LottoStats, options: Optional[TicketOptions] = None,
                        rng: Optional[np.random.Generator] = None) -> Dict[str, Any]:
    options = options or TicketOptions()
    rng = _rng(rng)
    cfg = stats.cfg

    w_main = build_weights(cfg.main_domain_size, stats.main.counts, options.mode_main, options.alpha_main)
    w_special = None
    if stats.special is not None:
        w_special = build_weights(cfg.special_domain_size, stats.special.counts,
                                  options.mode_special, options.alpha_special)

    def draw():
        mains = weighted_sample_distinct(cfg.main_pick_count, w_main, rng=rng)
        special = weighted_sample_distinct(1, w_special, rng=rng)[0] if w_special is not None else None
        return {"mains": mains, "special": special}

    return _retry(draw, lambda t: looks_too_common(t["mains"], cfg.main_domain_size), options, cfg.label)


def generate_ticket(rows: Sequence, game_id, options: Optional[TicketOptions] = None,
                    rng: Optional[np.random.Generator] = None) -> Dict[str, Any]:
    """
    Generate one lotto-style ticket from a game's current-era history.

    Returns:
    - dict: {"mains": sorted list of ints, "special": int or None}
    """
    group = resolve_canonical_group(game_id)
    stats = compute_lotto_stats(filter_rows_for_era(rows, group), group)
    return generate_from_stats(stats, options, rng)


def generate_tickets(rows: Sequence, game_id, count: int, options: Optional[TicketOptions] = None,
                     rng: Optional[np.random.Generator] = None) -> List[Dict[str, Any]]:
    """Several tickets from one statistics pass."""
    group = resolve_canonical_group(game_id)
    stats = compute_lotto_stats(filter_rows_for_era(rows, group), group)
    rng = _rng(rng)
    tickets = [generate_from_stats(stats, options, rng) for _ in range(max(0, count))]
    logging.info(f"Generated {len(tickets)} ticket(s) for {group}.")
    return tickets


# ---------------- Digit games ----------------
def _digit_too_common(digits: Sequence[int]) -> bool:
    return longest_run_len(digits) >= 3 or is_palindrome(digits) or is_sum_outlier(digits)


def generate_digit_ticket(stats: StatsResult, options: Optional[TicketOptions] = None,
                          rng: Optional[np.random.Generator] = None) -> List[int]:
    """k digits drawn with replacement, in play order."""
    options = options or TicketOptions()
    rng = _rng(rng)
    k = stats.k
    weights = build_weights(10, stats.counts, options.mode_main, options.alpha_main, low=0)

    def draw():
        return [int(d) for d in rng.choice(10, size=k, replace=True, p=weights)]

    if k not in (3, 4):
        return draw()
    return _retry(draw, _digit_too_common, options, f"{k}-digit")


# ---------------- k-of-N games ----------------
def generate_kofn_ticket(stats: StatsResult, pick: int, options: Optional[TicketOptions] = None,
                         rng: Optional[np.random.Generator] = None) -> List[int]:
    """
    `pick` distinct numbers from the stats domain: 10 for Pick 10, 1-10 spots for Quick Draw,
    12 for All or Nothing.
    """
    options = options or TicketOptions()
    rng = _rng(rng)
    n = stats.domain_size
    if pick < 1 or pick > n:
        raise ValueError(f"Pick must be between 1 and {n}, got {pick}")
    weights = build_weights(n, stats.counts, options.mode_main, options.alpha_main,
                            low=stats.low, eps_floor=KOFN_EPS_FLOOR, eps_cap=KOFN_EPS_CAP)

    def draw():
        return weighted_sample_distinct(pick, weights, rng=rng, low=stats.low)

    def rejected(values):
        return has_consecutive_run(values, 3) or kofn_is_tight(values, n)

    return _retry(draw, rejected, options, f"{pick}-of-{n}")


# ---------------- Cash Pop ----------------
def generate_cash_pop_ticket(stats: StatsResult, options: Optional[TicketOptions] = None,
                             rng: Optional[np.random.Generator] = None) -> int:
    """One value from 1..15."""
    options = options or TicketOptions()
    weights = build_weights(stats.domain_size, stats.counts, options.mode_main, options.alpha_main, low=stats.low)
    return weighted_sample_distinct(1, weights, rng=_rng(rng), low=stats.low)[0]
