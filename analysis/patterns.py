## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Pattern Breakdowns, Odds and Hit-Rate Checks
## Description:
## Descriptive views over a draw history: how long numbers have been absent (recency
## histogram), which exact combinations repeated, how hits spread across number ranges,
## how often each special ball comes around, plus exact jackpot odds per game and a
## back-test of tickets against past draws.

import math
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from config.settings import LOG_LEVEL, LOG_FORMAT
from registry import GameShapeConfig, resolve_shape

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


def _cfg(game) -> GameShapeConfig:
    return game if isinstance(game, GameShapeConfig) else resolve_shape(game)


def recency_histogram(last_seen: Mapping[int, float], domain_size: int, max_draws: int,
                      low: int = 1) -> List[Dict[str, Any]]:
    """
    Bucket every number of the domain by draws since it was last seen.

    Never-seen numbers are placed at `max_draws`. The last bin is open-ended.
    """
    if not domain_size or domain_size <= 0:
        return []

    gaps = []
    for n in range(low, low + domain_size):
        g = last_seen.get(n, math.inf)
        gaps.append(g if math.isfinite(g) else max_draws)

    max_gap = max(max(gaps), 0)
    bin_count = min(12, max(5, math.ceil(domain_size / 8)))
    bin_width = 1 if max_gap == 0 else max(1, math.ceil(max_gap / bin_count))

    bins = []
    for i in range(bin_count):
        start = i * bin_width
        end = math.inf if i == bin_count - 1 else (i + 1) * bin_width - 1
        bins.append({"start": start, "end": end, "count": 0, "members": []})

    for offset, gap in enumerate(gaps):
        capped = min(gap, max_draws)
        idx = min(int(capped // bin_width), bin_count - 1)
        bins[idx]["count"] += 1
        bins[idx]["members"].append(low + offset)

    expected = domain_size / bin_count
    for b in bins:
        if math.isinf(b["end"]):
            b["label"] = f"{b['start']}+"
        elif b["start"] == b["end"]:
            b["label"] = f"{b['start']}"
        else:
            b["label"] = f"{b['start']}-{b['end']}"
        b["expected"] = expected
    return bins


def combo_key(mains: Sequence[int]) -> str:
    return "-".join(str(n) for n in sorted(mains))


def combo_buckets(rows: Sequence, game=None) -> Dict[str, Any]:
    """Group draws by their exact sorted main combination, most repeated first."""
    if not rows:
        return {"buckets": [], "total_combos": None, "distinct_seen": 0}

    groups: Dict[str, Dict[str, Any]] = {}
    for r in rows:
        mains = sorted(r.values)
        key = combo_key(mains)
        if key in groups:
            groups[key]["count"] += 1
            groups[key]["dates"].append(r.date)
        else:
            groups[key] = {"key": key, "mains": mains, "count": 1, "dates": [r.date]}

    buckets = sorted(groups.values(), key=lambda b: (-b["count"], b["key"]))
    total = None
    if game is not None:
        cfg = _cfg(game)
        total = n_choose_k(cfg.main_domain_size, cfg.main_pick_count)
    return {"buckets": buckets, "total_combos": total, "distinct_seen": len(groups)}


def decade_strip(rows: Sequence, game) -> List[Dict[str, Any]]:
    """Hits per range of the main domain against the uniform expectation."""
    if not rows:
        return []
    cfg = _cfg(game)
    n_max, pick = cfg.main_domain_size, cfg.main_pick_count
    seg_size = 10 if n_max >= 70 else math.ceil(n_max / 7)

    segments = []
    start = 1
    while start <= n_max:
        end = min(start + seg_size - 1, n_max)
        segments.append({"start": start, "end": end, "hits": 0})
        start = end + 1

    for r in rows:
        for m in r.values:
            idx = min(max((m - 1) // seg_size, 0), len(segments) - 1)
            segments[idx]["hits"] += 1

    total = len(rows)
    out = []
    for seg in segments:
        prob = (seg["end"] - seg["start"] + 1) / n_max
        expected = total * pick * prob
        out.append({
            "label": f"{seg['start']}-{seg['end']}",
            "hits": seg["hits"],
            "expected": expected,
            "ratio": seg["hits"] / expected if expected > 0 else 1.0,
        })
    return out


def special_ball_cycles(rows: Sequence, game) -> List[Dict[str, Any]]:
    """
    Per special ball: draws since last seen, average gap between appearances and
    times seen. Balls seen at most once get the history length as their average gap.
    Sorted longest-absent first.
    """
    if not rows:
        return []
    cfg = _cfg(game)
    s_max = cfg.special_domain_size
    if not s_max:
        return []

    positions: Dict[int, List[int]] = {s: [] for s in range(1, s_max + 1)}
    for i, r in enumerate(rows):
        if r.special is not None and 1 <= r.special <= s_max:
            positions[r.special].append(i)

    total = len(rows)
    out = []
    for s, idxs in positions.items():
        last_gap = total - 1 - idxs[-1] if idxs else total
        gaps = [b - a for a, b in zip(idxs, idxs[1:])]
        avg_gap = sum(gaps) / len(gaps) if gaps else float(total)
        out.append({"n": s, "last_gap": last_gap, "avg_gap": avg_gap, "seen": len(idxs)})
    return sorted(out, key=lambda d: -d["last_gap"])


# ---------------- Odds ----------------
def n_choose_k(n: int, k: int) -> int:
    if k < 0 or k > n:
        return 0
    return math.comb(n, k)


def quick_draw_odds(spots: int) -> int:
    """Top-prize odds (1 in X) of a Quick Draw ticket with 1-10 spots."""
    if spots < 1 or spots > 10:
        raise ValueError(f"Quick Draw spots must be 1-10, got {spots}")
    return round(n_choose_k(80, spots) / n_choose_k(20, spots))


def jackpot_odds(game) -> Optional[int]:
    """Top-prize odds (1 in X) for the current era. None where it depends on the play."""
    cfg = _cfg(game)
    if cfg.shape in ("five", "six"):
        return n_choose_k(cfg.main_domain_size, cfg.main_pick_count) * max(cfg.special_domain_size, 1)
    if cfg.shape == "digits":
        return 10 ** cfg.main_pick_count
    if cfg.shape == "pick10":
        return round(n_choose_k(80, 10) / n_choose_k(20, 10))
    if cfg.shape == "allornothing":
        # all 12 or none of 12 both win
        return round(n_choose_k(24, 12) / 2)
    if cfg.shape == "cashpop":
        return cfg.main_domain_size
    return None


# ---------------- Back-testing ----------------
def hit_rate_analysis(
    tickets: List[Dict[str, Any]],
    historical_data: Sequence,
) -> Tuple[int, Dict[int, int]]:
    """
    Count how often each ticket would have matched past draws.

    Returns (exact_matches, partial_matches) where partial_matches maps a main-match
    count (from k-2 up to k) to the number of ticket/draw pairs reaching it.
    """
    exact_matches = 0
    if not tickets or not historical_data:
        return exact_matches, {}

    k = max(len(t["mains"]) for t in tickets)
    partial_matches = {m: 0 for m in range(max(1, k - 2), k + 1)}

    for draw in historical_data:
        draw_main = set(draw.values)
        for ticket in tickets:
            matches = len(set(ticket["mains"]) & draw_main)
            if matches in partial_matches:
                partial_matches[matches] += 1
            special = ticket.get("special")
            if matches == len(ticket["mains"]) and (special is None or special == draw.special):
                exact_matches += 1

    logging.debug(f"Hit-rate analysis: exact={exact_matches}, partial={partial_matches}")
    return exact_matches, partial_matches
