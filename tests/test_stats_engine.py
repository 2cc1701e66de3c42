import asyncio
import math

import pytest

from analysis.stats_engine import compute_stats, compute_stats_async
from analysis.shapes import (
    compute_cash_pop_stats,
    compute_digit_stats,
    compute_game_stats,
    compute_lotto_stats,
    compute_pick10_stats,
)
from tests.helpers import make_rows


def test_counts_and_recency():
    rows = make_rows([(1, 2, 3), (2, 3, 4)])
    stats = compute_stats(rows, k=3, n=5)
    assert stats.counts == {1: 1, 2: 2, 3: 2, 4: 1, 5: 0}
    assert stats.last_seen == {1: 1, 2: 0, 3: 0, 4: 0, 5: math.inf}
    assert stats.total_draws == 2
    assert set(stats.z) == {1, 2, 3, 4, 5}


def test_invalid_rows_do_not_advance_recency():
    rows = make_rows([(1, 2, 3), (9, 9, 9), (3, 3, 4), (2, 3, 4)])
    stats = compute_stats(rows, k=3, n=5)
    assert stats.total_draws == 2
    assert stats.invalid_rows == 2
    assert stats.last_seen[1] == 1
    assert sum(stats.counts.values()) == stats.total_draws * 3


def test_digits_allow_repeats():
    rows = make_rows([(7, 7, 7), (0, 1, 2)])
    stats = compute_digit_stats(rows, 3)
    assert stats.domain == range(0, 10)
    assert stats.counts[7] == 3
    assert stats.last_seen[0] == 0
    assert stats.last_seen[7] == 1
    assert stats.last_seen[9] == math.inf


def test_zero_draws():
    stats = compute_stats([], k=5, n=69)
    assert stats.total_draws == 0
    assert stats.z == {}
    assert all(c == 0 for c in stats.counts.values())
    assert all(v == math.inf for v in stats.last_seen.values())
    assert len(stats.counts) == 69


def test_never_drawn_number_has_negative_z():
    pool = [n for n in range(1, 70) if n != 17]
    draws = [[pool[(5 * i + j) % len(pool)] for j in range(5)] for i in range(100)]
    stats = compute_stats(make_rows(draws), k=5, n=69)

    p = 5 / 69
    sd = math.sqrt(100 * p * (1 - p))
    assert stats.counts[17] == 0
    assert stats.last_seen[17] == math.inf
    assert stats.z[17] == pytest.approx((0 - 100 * 5 / 69) / sd)
    assert stats.z[17] < 0
    assert sum(stats.counts.values()) == 500


def test_async_offload_matches():
    rows = make_rows([(1, 2, 3), (2, 3, 4), (1, 4, 5)])
    assert asyncio.run(compute_stats_async(rows, 3, 5)) == compute_stats(rows, 3, 5)


def test_rejects_bad_shape():
    with pytest.raises(ValueError):
        compute_stats([], k=0, n=5)


def test_lotto_stats_split_mains_and_special(powerball_rows):
    stats = compute_lotto_stats(powerball_rows, "multi_powerball")
    assert stats.total_draws == 40
    assert stats.main.domain_size == 69
    assert stats.special.domain_size == 26
    assert stats.special.total_draws == 40
    assert compute_lotto_stats(powerball_rows[:0], "ny_take5").special is None


def test_pick10_uses_modal_row_length():
    twenty = [list(range(i + 1, i + 21)) for i in range(5)]
    assert compute_pick10_stats(make_rows(twenty)).k == 20
    ten = [list(range(i + 1, i + 11)) for i in range(5)]
    assert compute_pick10_stats(make_rows(ten)).k == 10


def test_game_stats_dispatch():
    cash = compute_game_stats(make_rows([(3,), (15,)]), "fl_cashpop")
    assert cash.domain_size == 15
    assert cash.last_seen[15] == 0
    assert compute_cash_pop_stats([]).total_draws == 0
    aon = compute_game_stats([], "tx_all_or_nothing")
    assert (aon.k, aon.domain_size) == (12, 24)
    quick = compute_game_stats([], "ny_quick_draw_rep")
    assert (quick.k, quick.domain_size) == (20, 80)
