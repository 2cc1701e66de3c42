import pytest

from errors import UnknownGameError
from registry import (
    GameShapeConfig,
    data_path_for,
    digit_k_for,
    has_colored_special,
    is_known_game,
    latest_path_for,
    primary_key_for,
    resolve_canonical_group,
    resolve_shape,
    total_combinations,
    underlying_keys_for,
    validate_registry,
)


def test_period_variants_collapse_to_group():
    assert resolve_canonical_group("ny_take5_midday") == "ny_take5"
    assert resolve_canonical_group("ny_take5_evening") == "ny_take5"
    assert resolve_canonical_group(" NY_TAKE5 ") == "ny_take5"
    assert resolve_canonical_group("ny_nylotto") == "ny_lotto"


def test_resolve_shape_current_era():
    cfg = resolve_shape("multi_powerball")
    assert (cfg.main_domain_size, cfg.main_pick_count, cfg.special_domain_size) == (69, 5, 26)
    assert cfg.era_start == "2015-10-07"
    assert resolve_shape("ca_daily3").min_value == 0
    assert resolve_shape("fl_cashpop_morning") is resolve_shape("fl_cashpop")


def test_unknown_game_is_a_key_error():
    with pytest.raises(UnknownGameError) as exc:
        resolve_shape("zz_nonexistent")
    assert isinstance(exc.value, KeyError)
    assert exc.value.game_id == "zz_nonexistent"
    assert not is_known_game("zz_nonexistent")
    assert is_known_game("tx_pick3_night")


def test_underlying_keys_by_period():
    assert underlying_keys_for("ny_take5") == ["ny_take5_midday", "ny_take5_evening"]
    assert underlying_keys_for("ny_take5", "both") == ["ny_take5_midday", "ny_take5_evening"]
    assert underlying_keys_for("ny_take5", "midday") == ["ny_take5_midday"]
    assert underlying_keys_for("ny_take5", "latenight") == ["ny_take5_midday", "ny_take5_evening"]
    assert underlying_keys_for("multi_powerball") == ["multi_powerball"]
    assert len(underlying_keys_for("fl_cashpop")) == 5


def test_primary_key_prefers_evening():
    assert primary_key_for("ny_take5") == "ny_take5_evening"
    assert primary_key_for("tx_pick3", "morning") == "tx_pick3_morning"
    assert primary_key_for("ny_take5_midday") == "ny_take5_midday"
    assert primary_key_for("multi_powerball") == "multi_powerball"


def test_data_paths():
    assert data_path_for("multi_powerball") == "multi/powerball.csv"
    assert data_path_for("ny_take5_midday") == "ny/take5_midday.csv"
    assert data_path_for("ny_lotto") == "ny/nylotto.csv"
    assert latest_path_for("multi_powerball") == "multi/powerball.latest.csv"


def test_digit_helpers():
    assert digit_k_for("fl_pick4_evening") == 4
    assert digit_k_for("fl_pick5") == 5
    with pytest.raises(ValueError):
        digit_k_for("multi_powerball")


def test_colored_special_and_combinations():
    assert has_colored_special("multi_megamillions")
    assert not has_colored_special("ny_lotto")
    assert not has_colored_special("ny_take5")
    assert total_combinations("ca_daily3") == 1000
    assert total_combinations("ny_take5") == 575757


def test_config_invariants():
    with pytest.raises(ValueError):
        GameShapeConfig("2020-01-01", 5, 6, 0, "bad")
    with pytest.raises(ValueError):
        GameShapeConfig("2020-01-01", 10, 5, 0, "bad", shape="hexagon")


def test_registry_routes_resolve():
    assert validate_registry() == []
