import numpy as np
import pytest

from analysis.weights import (
    analyze_game,
    build_weights,
    clamp_alpha_for,
    clamp_alpha_generic,
    coef_var,
    recommend_cash_pop_alpha,
    recommend_digits,
    recommend_from_dispersion,
    recommend_kofn,
    weighted_sample_distinct,
)
from analysis.shapes import compute_digit_stats
from tests.helpers import make_rows


@pytest.mark.parametrize("mode", ["hot", "cold"])
@pytest.mark.parametrize("alpha", [0.0, 0.35, 0.6, 1.0])
@pytest.mark.parametrize("counts", [[0] * 10, [5] * 10, list(range(10)), [100] + [0] * 9])
def test_weights_are_a_distribution(mode, alpha, counts):
    w = build_weights(10, counts, mode, alpha)
    assert w.sum() == pytest.approx(1.0)
    assert (w >= 0).all()


def test_equal_counts_give_uniform_weights():
    w = build_weights(5, [10] * 5, "hot", 0.6)
    assert w == pytest.approx([0.2] * 5)


def test_hot_and_cold_pull_in_opposite_directions():
    counts = [50, 0, 0, 0, 0]
    hot = build_weights(5, counts, "hot", 0.6)
    cold = build_weights(5, counts, "cold", 0.6)
    assert hot[0] > hot[1]
    assert cold[0] < cold[1]


def test_dict_counts_with_digit_domain():
    w = build_weights(10, {d: (9 if d == 0 else 1) for d in range(10)}, "hot", 1.0, low=0)
    assert w[0] == w.max()


def test_bad_mode_and_domain():
    with pytest.raises(ValueError):
        build_weights(5, [1] * 5, "warm", 0.5)
    with pytest.raises(ValueError):
        build_weights(5, [1] * 4, "hot", 0.5)


@pytest.mark.parametrize("weights", [np.zeros(10), np.full(10, 0.1), np.array([1.0] + [0.0] * 9)])
def test_sampler_returns_distinct_in_range(weights):
    rng = np.random.default_rng(7)
    picks = weighted_sample_distinct(5, weights, rng=rng)
    assert len(picks) == 5
    assert len(set(picks)) == 5
    assert all(1 <= p <= 10 for p in picks)
    assert picks == sorted(picks)


def test_sampler_caps_at_domain_and_is_seeded():
    assert weighted_sample_distinct(15, np.full(10, 0.1), rng=np.random.default_rng(1)) == list(range(1, 11))
    a = weighted_sample_distinct(3, np.full(40, 1 / 40), rng=np.random.default_rng(42))
    b = weighted_sample_distinct(3, np.full(40, 1 / 40), rng=np.random.default_rng(42))
    assert a == b
    assert weighted_sample_distinct(2, np.full(10, 0.1), rng=np.random.default_rng(3), low=0)[0] >= 0


def test_alpha_clamps():
    assert clamp_alpha_for("multi_powerball", "main", 0.9, 1000) == pytest.approx(0.75)
    assert clamp_alpha_for("multi_powerball", "main", 0.9, 10) == pytest.approx(0.65)
    assert clamp_alpha_for("multi_powerball", "special", 0.1, 1000) == pytest.approx(0.45)
    assert clamp_alpha_for("multi_cash4life", "special", 0.9, 1000) == pytest.approx(0.65)
    assert clamp_alpha_for("ga_fantasy5", "main", 0.2, 1000) == pytest.approx(0.40)
    assert clamp_alpha_generic(0.9, 5, 10, 0.45, 0.65) == pytest.approx(0.55)
    with pytest.raises(ValueError):
        clamp_alpha_for("multi_powerball", "bonus", 0.5, 10)


def test_dispersion_recommendations():
    assert coef_var([]) == 0.0
    assert coef_var([0, 0]) == 0.0
    assert coef_var([3, 3, 3]) == 0.0
    assert recommend_from_dispersion(0.30, "main") == {"mode": "hot", "alpha": 0.65}
    assert recommend_from_dispersion(0.10, "main") == {"mode": "cold", "alpha": 0.55}
    assert recommend_from_dispersion(0.20, "main") == {"mode": "hot", "alpha": 0.60}
    assert recommend_from_dispersion(0.35, "special") == {"mode": "hot", "alpha": 0.70}
    assert recommend_from_dispersion(0.10, "special") == {"mode": "cold", "alpha": 0.55}


def test_shape_recommendations():
    assert recommend_kofn(None) == {"mode": "hot", "alpha": 0.60}
    assert recommend_digits(None) == {"mode": "hot", "alpha": 0.55}
    assert recommend_cash_pop_alpha([]) == pytest.approx(0.40)
    assert recommend_cash_pop_alpha([0] * 15) == pytest.approx(0.40)
    assert recommend_cash_pop_alpha([5] * 15) == pytest.approx(0.30)

    # perfectly even digits: low dispersion, so cold
    stats = compute_digit_stats(make_rows([(d, (d + 1) % 10, (d + 2) % 10) for d in range(10)] * 3), 3)
    assert recommend_digits(stats)["mode"] == "cold"


def test_analyze_game(powerball_rows):
    old = make_rows([(1, 2, 3, 4, 5)], start="2010-01-01", specials=[1])
    result = analyze_game(old + powerball_rows, "multi_powerball")
    assert result["game"] == "multi_powerball"
    assert result["draws"] == 40
    assert result["era_start"] == "2015-10-07"
    assert result["rec_special"] is not None
    assert 0.50 <= result["rec_main"]["alpha"] <= 0.65
    assert 0.0 <= result["recency_hot_frac_main"] <= 1.0

    take5 = analyze_game(make_rows([(1, 2, 3, 4, 5)]), "ny_take5_midday")
    assert take5["game"] == "ny_take5"
    assert take5["rec_special"] is None
