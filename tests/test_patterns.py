import math

import pytest

from analysis.patterns import (
    combo_buckets,
    decade_strip,
    hit_rate_analysis,
    jackpot_odds,
    n_choose_k,
    quick_draw_odds,
    recency_histogram,
    special_ball_cycles,
)
from parsers import DrawRow
from tests.helpers import make_rows


def test_jackpot_odds_per_shape():
    assert n_choose_k(69, 5) == 11238513
    assert n_choose_k(5, 6) == 0
    assert jackpot_odds("multi_powerball") == 292201338
    assert jackpot_odds("ny_take5") == 575757
    assert jackpot_odds("ca_daily3") == 1000
    assert jackpot_odds("fl_cashpop") == 15
    assert jackpot_odds("tx_all_or_nothing") == 1352078
    assert jackpot_odds("ny_quick_draw") is None


def test_quick_draw_odds():
    assert quick_draw_odds(1) == 4
    assert quick_draw_odds(10) == 8911711
    with pytest.raises(ValueError):
        quick_draw_odds(0)
    with pytest.raises(ValueError):
        quick_draw_odds(11)


def test_recency_histogram_bins():
    bins = recency_histogram({1: 0, 2: 1, 3: math.inf}, domain_size=3, max_draws=10)
    assert len(bins) == 5
    assert bins[0]["label"] == "0-1"
    assert bins[0]["members"] == [1, 2]
    assert bins[-1]["label"] == "8+"
    assert bins[-1]["members"] == [3]
    assert sum(b["count"] for b in bins) == 3
    assert recency_histogram({}, 0, 10) == []


def test_combo_buckets_most_repeated_first():
    rows = make_rows([(5, 4, 3, 2, 1), (1, 2, 3, 4, 6), (1, 2, 3, 4, 5)])
    result = combo_buckets(rows, "multi_powerball")
    assert result["distinct_seen"] == 2
    assert result["total_combos"] == 11238513
    top = result["buckets"][0]
    assert top["key"] == "1-2-3-4-5"
    assert top["count"] == 2
    assert combo_buckets([])["buckets"] == []


def test_decade_strip():
    strip = decade_strip(make_rows([(1, 2, 3, 4, 5), (61, 62, 63, 64, 69)]), "multi_powerball")
    assert [s["label"] for s in strip][0] == "1-10"
    assert strip[-1]["label"] == "61-69"
    assert strip[0]["hits"] == 5
    assert strip[-1]["hits"] == 5
    assert sum(s["hits"] for s in strip) == 10


def test_special_ball_cycles():
    rows = make_rows([(1, 2, 3, 4, 5)] * 3, specials=[1, 2, 1])
    cycles = special_ball_cycles(rows, "multi_cash4life")
    by_ball = {c["n"]: c for c in cycles}
    assert by_ball[1]["last_gap"] == 0
    assert by_ball[1]["avg_gap"] == 2.0
    assert by_ball[2]["last_gap"] == 1
    assert by_ball[3]["last_gap"] == 3
    assert by_ball[4]["seen"] == 0
    assert cycles[-1]["n"] == 1
    assert special_ball_cycles(rows, "ny_take5") == []


def test_hit_rate_analysis():
    tickets = [{"mains": [1, 2, 3, 4, 5], "special": 6}]
    history = [
        DrawRow("2024-01-01", (1, 2, 3, 4, 5), 6),
        DrawRow("2024-01-02", (1, 2, 3, 10, 11), 1),
    ]
    exact, partial = hit_rate_analysis(tickets, history)
    assert exact == 1
    assert partial == {3: 1, 4: 0, 5: 1}
    assert hit_rate_analysis([], history) == (0, {})
