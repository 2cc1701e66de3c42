## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: To Process Historical Draw Data
## Description:
## First step of every analysis: restrict a parsed draw history to the current era of its
## game, apply the caller's date window and make sure enough rows survive. The cleaned rows
## are stored in the pipeline under "historical_data" for the steps that follow.

import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional, Sequence

from config.settings import LOG_LEVEL, LOG_FORMAT
from errors import DataInsufficientError
from parsers import DrawRow, safe_parse_date
from registry import resolve_shape, resolve_canonical_group

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)


def filter_rows_for_era(rows: Sequence[DrawRow], game_id) -> List[DrawRow]:
    """Keep only draws on or after the era start of the game's current matrix."""
    era_start = resolve_shape(game_id).era_start
    return [r for r in rows if r.date >= era_start]


def apply_filters(
    rows: Sequence[DrawRow],
    since: Optional[str] = None,
    until: Optional[str] = None,
    latest_only: bool = False,
) -> List[DrawRow]:
    """
    Apply a date window to rows sorted ascending by date.

    Parameters:
    - since: Inclusive lower bound (any parseable date).
    - until: Inclusive upper bound; treated as an exclusive bound one day later.
    - latest_only: Return at most the newest surviving row.
    """
    out = list(rows)
    since_iso = safe_parse_date(since) if since else None
    if since_iso:
        out = [r for r in out if r.date >= since_iso]
    until_iso = safe_parse_date(until) if until else None
    if until_iso:
        end = (datetime.strptime(until_iso, "%Y-%m-%d") + timedelta(days=1)).strftime("%Y-%m-%d")
        out = [r for r in out if r.date < end]
    if latest_only:
        out = out[-1:]
    return out


def require_min_rows(rows: Sequence[DrawRow], minimum: int, game_id) -> Sequence[DrawRow]:
    """Raise DataInsufficientError when fewer than `minimum` rows are available."""
    if len(rows) < minimum:
        raise DataInsufficientError(
            f"{resolve_canonical_group(game_id)} has {len(rows)} usable draw(s); at least {minimum} required."
        )
    return rows


def process_historical_data(rows: Sequence[DrawRow], pipeline: Any, game_id, minimum: int = 1) -> List[DrawRow]:
    """
    Validate a draw history and store it in the pipeline.

    Rows outside the current era are discarded. Stores the result under "historical_data"
    and the game key under "game_id".

    Raises:
    - DataInsufficientError: if fewer than `minimum` current-era rows remain.
    """
    valid = filter_rows_for_era(rows, game_id)
    dropped = len(rows) - len(valid)
    if dropped:
        logging.info(f"Discarded {dropped} draw(s) older than the current era of {game_id}.")

    require_min_rows(valid, minimum, game_id)
    pipeline.add_data("game_id", resolve_canonical_group(game_id))
    pipeline.add_data("historical_data", valid)

    logging.info(f"Processed {len(valid)} valid historical draws into the pipeline.")
    return valid
