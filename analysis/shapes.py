## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Per-Shape Statistics Adapters
## Description:
## Each game family reduces to the generic k-of-N engine with its own (k, N, low).
## Lotto-style games run it twice: once for the mains and once for the special ball.

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from config.settings import LOG_LEVEL, LOG_FORMAT
from registry import GameShapeConfig, resolve_shape, digit_k_for
from analysis.stats_engine import StatsResult, compute_stats

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

QUICK_DRAW_DRAWN = 20
QUICK_DRAW_DOMAIN = 80
PICK10_DOMAIN = 80
PICK10_TICKET = 10
ALL_OR_NOTHING_PICK = 12
ALL_OR_NOTHING_DOMAIN = 24
CASH_POP_DOMAIN = 15


@dataclass
class LottoStats:
    main: StatsResult
    special: Optional[StatsResult]
    cfg: GameShapeConfig

    @property
    def total_draws(self) -> int:
        return self.main.total_draws


def compute_lotto_stats(rows: Sequence, game_id) -> LottoStats:
    """Mains and (when the game has one) special-ball statistics for a 5/6-ball game."""
    cfg = resolve_shape(game_id)
    if cfg.shape not in ("five", "six"):
        raise ValueError(f"{game_id!r} is not a lotto-style game (shape {cfg.shape!r})")

    main = compute_stats(rows, cfg.main_pick_count, cfg.main_domain_size)
    special = None
    if cfg.has_special:
        specials = [[r.special] if r.special is not None else [] for r in rows]
        special = compute_stats(specials, 1, cfg.special_domain_size)
    return LottoStats(main=main, special=special, cfg=cfg)


def compute_digit_stats(rows: Sequence, k: int) -> StatsResult:
    """Digits 0-9 drawn with replacement, k positions per draw."""
    return compute_stats(rows, k, 10, low=0, allow_repeats=True)


def _modal_length(rows: Sequence) -> int:
    lengths = Counter(len(getattr(r, "values", r)) for r in rows)
    if not lengths:
        return 0
    return lengths.most_common(1)[0][0]


def compute_pick10_stats(rows: Sequence) -> StatsResult:
    """
    Pick 10 statistics over 1..80.

    Result files carry either the 20 numbers drawn or a 10-number layout; the
    draw size is taken from the most common row length.
    """
    k = QUICK_DRAW_DRAWN if _modal_length(rows) == QUICK_DRAW_DRAWN else PICK10_TICKET
    return compute_stats(rows, k, PICK10_DOMAIN)


def compute_quick_draw_stats(rows: Sequence) -> StatsResult:
    return compute_stats(rows, QUICK_DRAW_DRAWN, QUICK_DRAW_DOMAIN)


def compute_all_or_nothing_stats(rows: Sequence) -> StatsResult:
    return compute_stats(rows, ALL_OR_NOTHING_PICK, ALL_OR_NOTHING_DOMAIN)


def compute_cash_pop_stats(rows: Sequence) -> StatsResult:
    return compute_stats(rows, 1, CASH_POP_DOMAIN)


def compute_game_stats(rows: Sequence, game_id) -> Union[LottoStats, StatsResult]:
    """Dispatch on the game's shape."""
    cfg = resolve_shape(game_id)
    if cfg.shape in ("five", "six"):
        return compute_lotto_stats(rows, game_id)
    if cfg.shape == "digits":
        return compute_digit_stats(rows, digit_k_for(game_id))
    if cfg.shape == "pick10":
        return compute_pick10_stats(rows)
    if cfg.shape == "quickdraw":
        return compute_quick_draw_stats(rows)
    if cfg.shape == "allornothing":
        return compute_all_or_nothing_stats(rows)
    return compute_cash_pop_stats(rows)
