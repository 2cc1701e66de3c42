## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Hot/Cold Weighting, Sampling and Recommendations
## Description:
## Builds a probability vector over a number domain from historical counts:
##   - "hot"  favours numbers that have appeared more often,
##   - "cold" favours numbers that have appeared less often,
## blended with a uniform prior by `alpha` (0 = uniform, 1 = fully biased).
## Also holds the roulette sampler used for ticket generation and the dispersion-based
## recommendations for which mode/alpha to use per game.
##
## None of this predicts anything: it is a biased sampler over past draws.

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from config.settings import LOG_LEVEL, LOG_FORMAT
from registry import GameShapeConfig, resolve_shape, resolve_canonical_group
from analysis.stats_engine import StatsResult
from analysis.shapes import LottoStats, compute_game_stats
from analysis.historical import filter_rows_for_era

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

MODES = ("hot", "cold")
MIN_MASS = 1e-12
COLD_FLOOR = 1e-9
RECENCY_WINDOW = 10


def _as_count_array(domain_size: int, counts, low: int = 1) -> np.ndarray:
    if isinstance(counts, Mapping):
        return np.array([float(counts.get(low + i, 0) or 0) for i in range(domain_size)])
    arr = np.asarray(counts if counts is not None else [], dtype=float)
    if arr.size != domain_size:
        raise ValueError(f"Expected {domain_size} counts, got {arr.size}")
    return arr


def build_weights(
    domain_size: int,
    counts: Union[Mapping[int, int], Sequence[float], np.ndarray],
    mode: str = "hot",
    alpha: float = 0.6,
    low: int = 1,
    eps_floor: float = 0.05,
    eps_cap: float = 0.5,
) -> np.ndarray:
    """
    Weighted distribution over a domain, index i standing for number low+i.

    Parameters:
    - domain_size (int): Number of values in the domain.
    - counts: Dict keyed by number, or an array in domain order.
    - mode (str): "hot" or "cold".
    - alpha (float): Blend strength toward the chosen distribution, clipped to [0, 1].
    - eps_floor, eps_cap: Bounds of the additive smoothing prior (0.05*average count).

    Returns:
    - np.ndarray: Non-negative weights summing to 1.
    """
    if domain_size < 1:
        raise ValueError("Domain size must be positive")
    if mode not in MODES:
        raise ValueError(f"Mode must be one of {MODES}, got {mode!r}")
    alpha = float(np.clip(alpha, 0.0, 1.0))

    arr = np.clip(np.nan_to_num(_as_count_array(domain_size, counts, low)), 0, None)
    avg = arr.sum() / domain_size
    eps = min(eps_cap, max(eps_floor, 0.05 * avg))

    smooth = arr + eps
    freq = smooth / smooth.sum()

    if mode == "hot":
        chosen = freq
    else:
        inv = (freq.max() - freq) + COLD_FLOOR
        chosen = inv / inv.sum()

    base = np.full(domain_size, 1.0 / domain_size)
    blended = (1 - alpha) * base + alpha * chosen
    return blended / blended.sum()


def weighted_sample_distinct(
    k: int,
    weights: Sequence[float],
    rng: Optional[np.random.Generator] = None,
    low: int = 1,
) -> List[int]:
    """
    Draw min(k, len(weights)) distinct numbers by cumulative-sum roulette.

    Non-finite or negative weights count as zero. When the remaining mass is
    negligible the draw falls back to uniform among the numbers still available.
    """
    rng = rng if rng is not None else np.random.default_rng()
    w = np.asarray(weights, dtype=float)
    w = np.where(np.isfinite(w) & (w > 0), w, 0.0)
    available = np.ones(w.size, dtype=bool)

    picks = []
    for _ in range(min(max(k, 0), w.size)):
        idxs = np.flatnonzero(available)
        remaining = w[idxs]
        total = remaining.sum()
        if total <= MIN_MASS:
            chosen = idxs[rng.integers(idxs.size)]
        else:
            cum = np.cumsum(remaining)
            pos = int(np.searchsorted(cum, rng.random() * total, side="right"))
            chosen = idxs[min(pos, idxs.size - 1)]
        picks.append(int(chosen) + low)
        available[chosen] = False
    return sorted(picks)


def weighted_sample_one(weights: Sequence[float], rng: Optional[np.random.Generator] = None, low: int = 1) -> int:
    return weighted_sample_distinct(1, weights, rng=rng, low=low)[0]


# ---------------- Alpha clamps ----------------
def clamp_alpha_generic(alpha: float, draws: int, domain_size: int, lo: float, hi: float) -> float:
    """Clamp alpha into [lo, hi]; with less than one domain's worth of draws, hi drops by 0.10."""
    if draws < domain_size:
        hi = max(lo, hi - 0.10)
    return min(hi, max(lo, alpha))


def clamp_alpha_for(cfg: Union[GameShapeConfig, str], domain: str, alpha: float, draws: int) -> float:
    """Era-aware alpha clamp for lotto-style main and special domains."""
    if not isinstance(cfg, GameShapeConfig):
        cfg = resolve_shape(cfg)
    if domain == "main":
        lo, hi = (0.40, 0.70) if cfg.main_domain_size <= 45 else (0.50, 0.75)
    elif domain == "special":
        lo, hi = (0.35, 0.65) if cfg.special_domain_size <= 5 else (0.45, 0.75)
    else:
        raise ValueError(f"Domain must be 'main' or 'special', got {domain!r}")
    # early-era guard keyed on the main domain for both
    if draws < cfg.main_domain_size:
        hi = max(lo, hi - 0.10)
    return min(hi, max(lo, alpha))


# ---------------- Recommendations ----------------
def coef_var(values) -> float:
    """Population coefficient of variation; 0 for empty input or zero mean."""
    arr = np.asarray(list(values) if not isinstance(values, np.ndarray) else values, dtype=float)
    if arr.size == 0:
        return 0.0
    mean = arr.mean()
    if mean == 0:
        return 0.0
    return float(arr.std() / mean)


def _rec(mode: str, alpha: float) -> Dict[str, Any]:
    return {"mode": mode, "alpha": alpha}


def recommend_from_dispersion(cv: float, domain: str) -> Dict[str, Any]:
    if domain == "special":
        if cv >= 0.30:
            return _rec("hot", 0.70)
        if cv <= 0.18:
            return _rec("cold", 0.55)
        return _rec("hot", 0.60)
    if cv >= 0.25:
        return _rec("hot", 0.65)
    if cv <= 0.15:
        return _rec("cold", 0.55)
    return _rec("hot", 0.60)


def recommend_kofn(stats: Optional[StatsResult]) -> Dict[str, Any]:
    """Generic k-of-N tuning (Quick Draw, All or Nothing)."""
    if stats is None:
        return _rec("hot", 0.60)
    cv = coef_var(stats.counts_array())
    if cv >= 0.20:
        rec = _rec("hot", 0.64)
    elif cv <= 0.10:
        rec = _rec("cold", 0.54)
    else:
        rec = _rec("hot", 0.60)
    rec["alpha"] = clamp_alpha_generic(rec["alpha"], stats.total_draws, stats.domain_size, 0.50, 0.70)
    return rec


def recommend_digits(stats: Optional[StatsResult]) -> Dict[str, Any]:
    if stats is None:
        return _rec("hot", 0.55)
    cv = coef_var(stats.counts_array())
    if cv >= 0.18:
        rec = _rec("hot", 0.60)
    elif cv <= 0.10:
        rec = _rec("cold", 0.50)
    else:
        rec = _rec("hot", 0.55)
    rec["alpha"] = clamp_alpha_generic(rec["alpha"], stats.total_draws, 10, 0.45, 0.65)
    return rec


def recommend_pick10(stats: Optional[StatsResult]) -> Dict[str, Any]:
    if stats is None:
        return _rec("hot", 0.60)
    cv = coef_var(stats.counts_array())
    if cv >= 0.22:
        rec = _rec("hot", 0.65)
    elif cv <= 0.12:
        rec = _rec("cold", 0.55)
    else:
        rec = _rec("hot", 0.60)
    rec["alpha"] = clamp_alpha_generic(rec["alpha"], stats.total_draws, 80, 0.50, 0.70)
    return rec


def recommend_cash_pop_alpha(counts) -> float:
    """Scale 0.30..0.70 with the normalized spread of Cash Pop counts; 0.40 with no history."""
    if isinstance(counts, StatsResult):
        counts = counts.counts_array()
    elif isinstance(counts, Mapping):
        counts = [counts[n] for n in sorted(counts)]
    vals = np.asarray(counts, dtype=float)
    if vals.size == 0 or vals.sum() == 0:
        return 0.40
    mean = vals.mean()
    norm = min(1.0, vals.std() / max(1.0, mean)) if mean > 0 else 0.0
    return 0.30 + 0.40 * norm


def _recency_fraction(stats: StatsResult) -> float:
    recent = sum(1 for v in stats.last_seen.values() if v <= RECENCY_WINDOW)
    return recent / stats.domain_size


def analyze_game(rows: Sequence, game_id) -> Dict[str, Any]:
    """
    Current-era summary of a game's history plus recommended weighting.

    Returns a dict with draws, dispersion per domain, the fraction of numbers seen in
    the last 10 draws, clamped recommendations and the era configuration.
    """
    group = resolve_canonical_group(game_id)
    cfg = resolve_shape(group)
    filtered = filter_rows_for_era(rows, group)
    stats = compute_game_stats(filtered, group)

    cv_special = 0.0
    recency_special = 0.0
    rec_special = None

    if isinstance(stats, LottoStats):
        main = stats.main
        cv_main = coef_var(main.counts_array())
        rec_main = recommend_from_dispersion(cv_main, "main")
        rec_main["alpha"] = clamp_alpha_for(cfg, "main", rec_main["alpha"], main.total_draws)
        if stats.special is not None:
            cv_special = coef_var(stats.special.counts_array())
            recency_special = _recency_fraction(stats.special)
            rec_special = recommend_from_dispersion(cv_special, "special")
            rec_special["alpha"] = clamp_alpha_for(cfg, "special", rec_special["alpha"], main.total_draws)
    else:
        main = stats
        cv_main = coef_var(main.counts_array())
        if cfg.shape == "digits":
            rec_main = recommend_digits(main)
        elif cfg.shape == "pick10":
            rec_main = recommend_pick10(main)
        elif cfg.shape == "cashpop":
            rec_main = _rec("hot", recommend_cash_pop_alpha(main))
        else:
            rec_main = recommend_kofn(main)

    result = {
        "game": group,
        "draws": main.total_draws,
        "cv_main": cv_main,
        "cv_special": cv_special,
        "recency_hot_frac_main": _recency_fraction(main),
        "recency_hot_frac_special": recency_special,
        "rec_main": rec_main,
        "rec_special": rec_special,
        "era_start": cfg.era_start,
        "era_cfg": cfg,
    }
    logging.info(f"Analyzed {group}: {main.total_draws} draw(s), cv={cv_main:.3f}, rec={rec_main}")
    return result
