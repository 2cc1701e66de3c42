## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Game Registry (Draw Shapes, Eras and Routing)
## Description:
## Static table mapping every game identifier the project understands onto the draw
## shape of its current era: how many main numbers are drawn, from how large a domain,
## whether a special ball exists and since when the matrix has been stable.
##
## Identifiers come in three flavours:
##   - group keys        ("multi_powerball", "ny_take5")  -> one entry in CURRENT_ERA
##   - underlying keys   ("ny_take5_midday")               -> one file on the data server
##   - aliases           ("ny_nylotto")                    -> legacy spellings of a group
## resolve_canonical_group() collapses all of them onto the group key, so statistics for
## period variants that share one real-world number domain are always pooled.

import math
import re
import logging
from dataclasses import dataclass
from typing import Dict, List

from config.settings import DRAW_DATA_BASE, LOG_LEVEL, LOG_FORMAT
from errors import UnknownGameError

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

SHAPES = ("five", "six", "digits", "pick10", "quickdraw", "allornothing", "cashpop")


@dataclass(frozen=True)
class GameShapeConfig:
    """Current-era draw shape of one game group."""
    era_start: str
    main_domain_size: int
    main_pick_count: int
    special_domain_size: int
    label: str
    description: str = ""
    shape: str = "five"
    min_value: int = 1
    display_name: str = ""
    uses_fireball: bool = False

    def __post_init__(self):
        if self.shape not in SHAPES:
            raise ValueError(f"Unknown draw shape {self.shape!r}")
        if self.main_pick_count < 1 or self.main_pick_count > self.main_domain_size:
            raise ValueError(
                f"Pick count {self.main_pick_count} must be between 1 and domain size {self.main_domain_size}"
            )
        if self.special_domain_size < 0:
            raise ValueError("Special domain size cannot be negative")

    @property
    def max_value(self) -> int:
        return self.min_value + self.main_domain_size - 1

    @property
    def has_special(self) -> bool:
        return self.special_domain_size > 0

    @property
    def allows_repeats(self) -> bool:
        # digit games draw each position independently
        return self.shape == "digits"


def _digits(start, k, name, fireball=False):
    return GameShapeConfig(
        era_start=start, main_domain_size=10, main_pick_count=k, special_domain_size=0,
        label=f"{k} digits (0-9)", description=f"{name}: {k} digits 0-9.",
        shape="digits", min_value=0, display_name=name, uses_fireball=fireball,
    )


# ---------------- Current-era table (one entry per group key) ----------------
CURRENT_ERA: Dict[str, GameShapeConfig] = {
    # ---- Multi-state ----
    "multi_powerball": GameShapeConfig(
        "2015-10-07", 69, 5, 26, "5/69 + 1/26",
        "Current matrix since Oct 7, 2015: 5 mains from 1-69 and Powerball 1-26.",
        display_name="Powerball"),
    "multi_megamillions": GameShapeConfig(
        "2017-10-28", 70, 5, 24, "5/70 + 1/24",
        "5 mains from 1-70 and Mega Ball 1-24.",
        display_name="Mega Millions"),
    "multi_cash4life": GameShapeConfig(
        "2014-06-16", 60, 5, 4, "5/60 + Cash Ball 1/4",
        "5 mains from 1-60 and Cash Ball 1-4. Matrix stable since 2014.",
        display_name="Cash4Life"),
    # ---- Georgia ----
    "ga_fantasy5": GameShapeConfig(
        "2019-04-25", 42, 5, 0, "5/42 (no bonus)",
        "5 mains from 1-42, no bonus ball.", display_name="Fantasy 5 (GA)"),
    # ---- California ----
    "ca_superlotto_plus": GameShapeConfig(
        "2000-06-01", 47, 5, 27, "5/47 + Mega 1/27",
        "5 mains from 1-47 and a Mega number 1-27.", display_name="SuperLotto Plus"),
    "ca_fantasy5": GameShapeConfig(
        "1992-01-01", 39, 5, 0, "5/39 (no bonus)",
        "5 mains from 1-39, no bonus ball.", display_name="Fantasy 5 (CA)"),
    "ca_daily3": _digits("1985-01-01", 3, "Daily 3"),
    "ca_daily4": _digits("2008-05-19", 4, "Daily 4"),
    # ---- New York ----
    "ny_take5": GameShapeConfig(
        "1992-01-17", 39, 5, 0, "5/39 (no bonus)",
        "5 mains from 1-39, drawn twice daily.", display_name="Take 5"),
    "ny_lotto": GameShapeConfig(
        "2001-09-12", 59, 6, 0, "6/59 + Bonus (1-59)",
        "6 mains from 1-59 plus a Bonus ball used only for 2nd prize.",
        shape="six", display_name="New York LOTTO"),
    "ny_numbers": _digits("1980-09-02", 3, "Numbers"),
    "ny_win4": _digits("1981-07-21", 4, "Win 4"),
    "ny_pick10": GameShapeConfig(
        "1987-01-01", 80, 10, 0, "10/80 (Pick 10)",
        "Players pick 10 numbers from 1-80; 20 are drawn.", shape="pick10", display_name="Pick 10"),
    "ny_quick_draw": GameShapeConfig(
        "1995-09-02", 80, 20, 0, "20/80 (Quick Draw)",
        "Keno-style: 20 numbers drawn from 1-80.", shape="quickdraw", display_name="Quick Draw"),
    # ---- Florida ----
    "fl_lotto": GameShapeConfig(
        "1999-10-24", 53, 6, 0, "6/53 (no bonus)",
        "6 mains from 1-53. Double Play rows are excluded.", shape="six", display_name="Florida LOTTO"),
    "fl_jackpot_triple_play": GameShapeConfig(
        "2019-01-30", 46, 6, 0, "6/46 (no bonus)",
        "6 mains from 1-46, no bonus ball.", shape="six", display_name="Jackpot Triple Play"),
    "fl_fantasy5": GameShapeConfig(
        "1999-04-25", 36, 5, 0, "5/36 (no bonus)",
        "5 mains from 1-36. Midday and evening draws.", display_name="Fantasy 5 (FL)"),
    "fl_pick5": _digits("2016-08-24", 5, "Pick 5", fireball=True),
    "fl_pick4": _digits("1991-07-04", 4, "Pick 4", fireball=True),
    "fl_pick3": _digits("1988-05-03", 3, "Pick 3", fireball=True),
    "fl_pick2": _digits("2016-08-24", 2, "Pick 2", fireball=True),
    "fl_cashpop": GameShapeConfig(
        "2022-01-03", 15, 1, 0, "1/15 (Cash Pop)",
        "1 number 1-15; 5 daily periods.", shape="cashpop", display_name="Cash Pop"),
    # ---- Texas ----
    "tx_lotto_texas": GameShapeConfig(
        "2006-04-19", 54, 6, 0, "6/54 (no bonus)",
        "6 mains from 1-54.", shape="six", display_name="Lotto Texas"),
    "tx_cash5": GameShapeConfig(
        "2018-09-23", 35, 5, 0, "5/35 (no bonus)",
        "5 mains from 1-35, drawn daily.", display_name="Cash Five"),
    "tx_texas_two_step": GameShapeConfig(
        "2001-01-01", 35, 4, 35, "4/35 + 1/35",
        "Four mains from 1-35 plus a separate 1-35 Bonus Ball.", display_name="Texas Two Step"),
    "tx_all_or_nothing": GameShapeConfig(
        "2012-09-10", 24, 12, 0, "12/24 (All or Nothing)",
        "12 numbers from 1-24.", shape="allornothing", display_name="All or Nothing"),
    "tx_pick3": _digits("1993-10-25", 3, "Pick 3 (TX)", fireball=True),
    "tx_daily4": _digits("2007-10-01", 4, "Daily 4", fireball=True),
}

# Legacy spellings that are neither a group key nor a period variant of one.
ALIASES: Dict[str, str] = {
    "ny_nylotto": "ny_lotto",
    "ny_quick_draw_rep": "ny_quick_draw",
    "ny_pick10_rep": "ny_pick10",
}

PERIODS = ("all", "both", "midday", "evening", "morning", "matinee", "afternoon", "latenight", "day", "night")
_PERIOD_SUFFIX = re.compile(r"_(midday|evening|morning|matinee|afternoon|latenight|day|night)$")

_TWICE_DAILY = ("midday", "evening")
_TEXAS_FOUR = ("morning", "day", "evening", "night")
_CASH_POP = ("morning", "matinee", "afternoon", "evening", "latenight")

# Logical game -> period -> underlying file keys.
LOGICAL_TO_UNDERLYING: Dict[str, Dict[str, List[str]]] = {}


def _route(logical: str, periods=(), files=None) -> None:
    if not periods:
        LOGICAL_TO_UNDERLYING[logical] = {"all": [files or logical]}
        return
    table = {p: [f"{logical}_{p}"] for p in periods}
    table["all"] = [f"{logical}_{p}" for p in periods]
    LOGICAL_TO_UNDERLYING[logical] = table


for _key in ("multi_powerball", "multi_megamillions", "multi_cash4life", "ga_fantasy5",
             "ca_superlotto_plus", "ca_fantasy5", "ca_daily4", "ny_pick10", "ny_quick_draw",
             "fl_lotto", "fl_jackpot_triple_play", "tx_lotto_texas", "tx_cash5", "tx_texas_two_step"):
    _route(_key)
_route("ny_lotto", files="ny_nylotto")
for _key in ("ny_take5", "ny_numbers", "ny_win4", "ca_daily3",
             "fl_fantasy5", "fl_pick5", "fl_pick4", "fl_pick3", "fl_pick2"):
    _route(_key, _TWICE_DAILY)
for _key in ("tx_all_or_nothing", "tx_pick3", "tx_daily4"):
    _route(_key, _TEXAS_FOUR)
_route("fl_cashpop", _CASH_POP)


# ---------------- Resolution ----------------
def normalize_game_id(game_id) -> str:
    return str(game_id if game_id is not None else "").strip().lower()


def resolve_canonical_group(game_id) -> str:
    """
    Collapse any canonical, logical, underlying or aliased identifier onto its group key.

    Raises:
        UnknownGameError: if the identifier maps onto no known group.
    """
    key = normalize_game_id(game_id)
    if key in CURRENT_ERA:
        return key
    if key in ALIASES:
        return ALIASES[key]
    m = _PERIOD_SUFFIX.search(key)
    if m:
        base = key[: m.start()]
        if base in CURRENT_ERA:
            return base
    raise UnknownGameError(game_id)


def resolve_shape(game_id) -> GameShapeConfig:
    """Return the current-era shape of any known identifier."""
    return CURRENT_ERA[resolve_canonical_group(game_id)]


def is_known_game(game_id) -> bool:
    try:
        resolve_canonical_group(game_id)
    except UnknownGameError:
        return False
    return True


def digit_k_for(game_id) -> int:
    """Digits per draw for a digit game (2, 3, 4 or 5)."""
    cfg = resolve_shape(game_id)
    if cfg.shape != "digits":
        raise ValueError(f"{game_id!r} is not a digit game (shape {cfg.shape!r})")
    return cfg.main_pick_count


def has_colored_special(game_id) -> bool:
    cfg = resolve_shape(game_id)
    return cfg.shape == "five" and cfg.has_special


# ---------------- Period routing ----------------
def underlying_keys_for(logical, period: str = "all") -> List[str]:
    """Underlying file keys for a logical game and draw period."""
    group = resolve_canonical_group(logical)
    table = LOGICAL_TO_UNDERLYING[group]
    p = "all" if period in (None, "both") else period
    if p != "all" and p in table:
        return list(table[p])
    if p != "all" and p not in PERIODS:
        logging.warning(f"Unknown period {period!r} for {group}; using all periods.")
    return list(table["all"])


def primary_key_for(logical, period: str = "all") -> str:
    """One deterministic underlying key for a logical game (evening preferred)."""
    key = normalize_game_id(logical)
    group = resolve_canonical_group(key)
    if key != group:
        # already an underlying or alias key
        return key
    table = LOGICAL_TO_UNDERLYING[group]
    p = "all" if period in (None, "both") else period
    if p != "all" and table.get(p):
        return table[p][0]
    if table.get("evening"):
        return table["evening"][0]
    return table["all"][0]


def data_path_for(game_id) -> str:
    """Relative CSV path ("ny/take5_evening.csv") for a canonical or underlying key."""
    key = primary_key_for(game_id)
    state, _, rest = key.partition("_")
    return f"{state}/{rest}.csv"


def latest_path_for(game_id) -> str:
    """Path of the tiny "latest row" probe file that sits next to the main file."""
    return re.sub(r"\.csv$", ".latest.csv", data_path_for(game_id))


def data_url_for(game_id, base: str = None) -> str:
    return f"{(base or DRAW_DATA_BASE).rstrip('/')}/{data_path_for(game_id)}"


def latest_url_for(game_id, base: str = None) -> str:
    return f"{(base or DRAW_DATA_BASE).rstrip('/')}/{latest_path_for(game_id)}"


# ---------------- Labels ----------------
def display_name_for(game_id) -> str:
    group = resolve_canonical_group(game_id)
    return CURRENT_ERA[group].display_name or group


def era_tooltip(game_id) -> str:
    """Human readable summary of the era that analyses are restricted to."""
    cfg = resolve_shape(game_id)
    return "\n".join([
        f"{display_name_for(game_id)} (current era: {cfg.label})",
        f"Effective date: {cfg.era_start}",
        cfg.description,
        "Analyses and ticket generation include ALL draws since this date and ignore earlier eras.",
    ])


def total_combinations(game_id) -> int:
    """Size of the main-number ticket space of the current era."""
    cfg = resolve_shape(game_id)
    if cfg.allows_repeats:
        return cfg.main_domain_size ** cfg.main_pick_count
    return math.comb(cfg.main_domain_size, cfg.main_pick_count)


def validate_registry() -> List[str]:
    """Check that every routed file resolves back onto its group. Returns problems found."""
    problems = []
    for logical, table in LOGICAL_TO_UNDERLYING.items():
        for keys in table.values():
            for k in keys:
                if not is_known_game(k) or resolve_canonical_group(k) != logical:
                    problems.append(f"{k} does not resolve to {logical}")
    if problems:
        logging.warning("Registry validation issues:\n" + "\n".join(" - " + p for p in problems))
    return problems
