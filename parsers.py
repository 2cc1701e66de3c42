## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Parse Draw History Files
## Description:
## Turns delimited draw-history text into DrawRow records. Two layouts are understood:
##   - fixed schema:    one date column and one numbered column per drawn position
##                      (num1..numK, m1..mK, n1..nK or ball1..ballK) plus an optional
##                      special/bonus column; the game decides K.
##   - variable schema: any number of numbered columns discovered from the header, or a
##                      single free-text "winning_numbers" column, plus an optional bonus.
## Parsing never raises on bad input. A malformed row is dropped; a file whose header
## matches no known layout yields an empty list so the caller's row-count check decides.

import io
import re
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd
from dateutil import parser as date_parser

from config.settings import LOG_LEVEL, LOG_FORMAT
from registry import resolve_shape

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

DATE_COLUMNS = ("draw_date", "date")
VALUE_PREFIXES = ("num", "m", "n", "ball", "value")
SPECIAL_COLUMNS = ("special", "bonus")
FLEX_SPECIAL_COLUMNS = ("special", "bonus", "fb", "fireball", "mega_ball", "cash_ball")
FREE_TEXT_COLUMNS = ("winning_numbers", "numbers", "winning numbers")
MAX_PROBE = 80

_INT_RE = re.compile(r"^[+-]?\d+$")
_TOKEN_SPLIT = re.compile(r"[,;|\-\s]+")


@dataclass(frozen=True)
class DrawRow:
    """One historical draw. `values` keeps drawn order; `special` is the bonus ball, if any."""
    date: str
    values: Tuple[int, ...]
    special: Optional[int] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "values": list(self.values), "special": self.special}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DrawRow":
        special = data.get("special")
        return cls(
            date=str(data["date"]),
            values=tuple(int(v) for v in data.get("values", [])),
            special=int(special) if special is not None else None,
        )


# ---------------- Field helpers ----------------
def safe_parse_date(date_value) -> Optional[str]:
    """
    Coerce any parseable date string to "YYYY-MM-DD".
    Returns None when the value cannot be parsed.
    """
    if date_value is None:
        return None
    date_str = str(date_value).strip()
    if not date_str:
        return None
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").strftime("%Y-%m-%d")
    except ValueError:
        pass
    try:
        return date_parser.parse(date_str).strftime("%Y-%m-%d")
    except (ValueError, OverflowError):
        return None


def _parse_int(raw) -> Optional[int]:
    """Strict integer parse: "07" is 7, "7.5" and "7a" are rejected."""
    s = str(raw).strip() if raw is not None else ""
    if not _INT_RE.match(s):
        return None
    return int(s)


def parse_tokens(text: str) -> List[int]:
    """Split a free-text number list ("01 02-03,04|05") into integers, skipping junk."""
    out = []
    for tok in _TOKEN_SPLIT.split(str(text or "")):
        n = _parse_int(tok)
        if n is not None:
            out.append(n)
    return out


def _strict_tokens(text: str) -> Optional[List[int]]:
    tokens = [t for t in _TOKEN_SPLIT.split(str(text or "").strip()) if t]
    values = [_parse_int(t) for t in tokens]
    if not values or any(v is None for v in values):
        return None
    return values


def _read_table(text: str) -> Optional[pd.DataFrame]:
    """Load CSV text as an all-string frame with normalized (lower-case) headers."""
    if not text or not str(text).strip():
        return None
    try:
        df = pd.read_csv(
            io.StringIO(str(text).strip()),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        logging.warning(f"Unreadable draw file: {e}")
        return None
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def _find_column(columns: Sequence[str], names: Sequence[str]) -> Optional[str]:
    for name in names:
        if name in columns:
            return name
    return None


def _numbered_columns(columns: Sequence[str], prefix: str) -> List[str]:
    """Probe prefix1, prefix2, ... until one is missing."""
    found = []
    for i in range(1, MAX_PROBE + 1):
        name = f"{prefix}{i}"
        if name not in columns:
            break
        found.append(name)
    return found


def _sorted_rows(rows: List[DrawRow]) -> List[DrawRow]:
    # rows may arrive in any order
    return sorted(rows, key=lambda r: r.date)


# ---------------- Fixed schema ----------------
def _resolve_fixed_header(columns: Sequence[str], cfg) -> Optional[Tuple[str, List[str], Optional[str]]]:
    date_col = _find_column(columns, DATE_COLUMNS)
    if date_col is None:
        return None
    special_col = _find_column(columns, SPECIAL_COLUMNS)
    pick = cfg.main_pick_count

    for prefix in VALUE_PREFIXES:
        seq = _numbered_columns(columns, prefix)
        if len(seq) >= pick:
            return date_col, seq[:pick], special_col
        # Six-ball files that keep the sixth main in the "special" column
        if (seq and len(seq) == pick - 1 and not cfg.has_special
                and cfg.shape == "six" and special_col is not None):
            return date_col, seq + [special_col], None
    return None


def parse_fixed_schema(text: str, game_id) -> List[DrawRow]:
    """
    Parse a one-game-per-file CSV with one column per drawn position.

    Parameters:
    - text (str): Raw CSV text including the header line.
    - game_id: Any identifier the registry resolves; it decides pick count and ranges.

    Returns:
    - List[DrawRow]: Valid rows sorted ascending by date. An unrecognized header yields [].
    """
    cfg = resolve_shape(game_id)
    df = _read_table(text)
    if df is None:
        return []

    header = _resolve_fixed_header(list(df.columns), cfg)
    if header is None:
        logging.warning(f"Header not recognized for {game_id}: {list(df.columns)}")
        return []
    date_col, value_cols, special_col = header

    out: List[DrawRow] = []
    dropped = 0
    for record in df.to_dict("records"):
        date = safe_parse_date(record.get(date_col))
        values = [_parse_int(record.get(c)) for c in value_cols]
        if date is None or any(v is None for v in values):
            dropped += 1
            continue
        if any(v < cfg.min_value or v > cfg.max_value for v in values):
            dropped += 1
            continue

        special = None
        raw_special = str(record.get(special_col, "")).strip() if special_col else ""
        if raw_special:
            special = _parse_int(raw_special)
            if special is None:
                dropped += 1
                continue
            if cfg.has_special and not (1 <= special <= cfg.special_domain_size):
                dropped += 1
                continue

        out.append(DrawRow(date=date, values=tuple(values), special=special))

    if dropped:
        logging.debug(f"Dropped {dropped} malformed row(s) while parsing {game_id}.")
    return _sorted_rows(out)


def format_fixed_schema(rows: Sequence[DrawRow], game_id) -> str:
    """Write rows back out in the fixed schema understood by parse_fixed_schema."""
    cfg = resolve_shape(game_id)
    pick = cfg.main_pick_count
    with_special = cfg.has_special or any(r.special is not None for r in rows)

    header = ["draw_date"] + [f"num{i}" for i in range(1, pick + 1)]
    if with_special:
        header.append("special")
    lines = [",".join(header)]
    for r in _sorted_rows(list(rows)):
        cells = [r.date] + [str(v) for v in r.values]
        if with_special:
            cells.append("" if r.special is None else str(r.special))
        lines.append(",".join(cells))
    return "\n".join(lines) + "\n"


# ---------------- Variable schema ----------------
def parse_variable_schema(text: str) -> List[DrawRow]:
    """
    Parse a CSV whose numbered value columns are discovered from the header.

    Recognized layouts, in order: n1..nN, m1..mN, num1..numN, ball1..ballN, value1..valueN,
    then a single free-text winning-numbers column. A bonus is read from any of
    special/bonus/fb/fireball/mega_ball/cash_ball.
    """
    df = _read_table(text)
    if df is None:
        return []
    columns = list(df.columns)

    date_col = _find_column(columns, DATE_COLUMNS)
    if date_col is None:
        logging.warning(f"No date column in flexible file: {columns}")
        return []

    value_cols: List[str] = []
    for prefix in ("n", "m", "num", "ball", "value"):
        value_cols = _numbered_columns(columns, prefix)
        if value_cols:
            break
    free_text_col = None if value_cols else _find_column(columns, FREE_TEXT_COLUMNS)
    if not value_cols and free_text_col is None:
        logging.warning(f"No value columns in flexible file: {columns}")
        return []
    special_col = _find_column(columns, FLEX_SPECIAL_COLUMNS)

    out: List[DrawRow] = []
    dropped = 0
    for record in df.to_dict("records"):
        date = safe_parse_date(record.get(date_col))
        if date is None:
            dropped += 1
            continue

        if value_cols:
            raw = [str(record.get(c, "")).strip() for c in value_cols]
            # ragged files leave trailing cells empty
            while raw and raw[-1] == "":
                raw.pop()
            values = [_parse_int(v) for v in raw]
            if not values or any(v is None for v in values):
                dropped += 1
                continue
        else:
            values = _strict_tokens(record.get(free_text_col, ""))
            if values is None:
                dropped += 1
                continue

        special = None
        raw_special = str(record.get(special_col, "")).strip() if special_col else ""
        if raw_special:
            special = _parse_int(raw_special)
            if special is None:
                dropped += 1
                continue

        out.append(DrawRow(date=date, values=tuple(values), special=special))

    if dropped:
        logging.debug(f"Dropped {dropped} malformed row(s) from flexible file.")
    return _sorted_rows(out)


def latest_date_in(text: str) -> Optional[str]:
    """Date of the last data line of a small CSV (first column), used by freshness probes."""
    lines = [ln for ln in str(text or "").strip().splitlines() if ln.strip()]
    if len(lines) < 2:
        return None
    return safe_parse_date(lines[-1].split(",")[0])
