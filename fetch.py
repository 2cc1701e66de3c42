## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Draw History Fetching with Cache Reconciliation
## Description:
## Returns the parsed draw history of a game, refetching the remote CSV only when needed.
## Per game the cache moves through: empty -> fresh -> stale -> refetching -> fresh.
##   - fresh envelope (same era, refresh time in the future): served with no network calls
##   - stale envelope: the tiny "<file>.latest.csv" is probed; if its latest date matches
##     the cached latest row the cache is kept, otherwise the full file is refetched
##   - no envelope, or one written for a previous era: full fetch
## A failed refresh serves the stale cache when one exists. For the multi-state games the
## NY open-data API can stand in for the primary source (ALLOW_OPEN_DATA_FALLBACK).
## Blocking HTTP runs in worker threads; a caller-supplied asyncio.Event cancels a fetch
## before anything is written or returned.

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

import requests

from config.settings import (
    ALLOW_OPEN_DATA_FALLBACK,
    CACHE_KEY_PREFIX,
    CACHE_TTL_HOURS,
    HTTP_TIMEOUT,
    LOG_FORMAT,
    LOG_LEVEL,
    OPEN_DATA_BASE,
    OPEN_DATA_TOKEN,
)
from errors import DataUnavailableError, FetchCancelled
from data_io import KeyValueStore, MemoryStore
from parsers import (
    DrawRow,
    latest_date_in,
    parse_fixed_schema,
    parse_tokens,
    parse_variable_schema,
    safe_parse_date,
)
from registry import (
    normalize_game_id,
    data_url_for,
    digit_k_for,
    latest_url_for,
    resolve_canonical_group,
    resolve_shape,
    underlying_keys_for,
)
from analysis.historical import apply_filters, filter_rows_for_era

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

OPEN_DATA_DATASETS: Dict[str, Dict[str, Any]] = {
    "multi_powerball": {"id": "d6yy-54nr", "date_field": "draw_date",
                        "winning_field": "winning_numbers", "special_field": None},
    "multi_megamillions": {"id": "5xaw-6ayf", "date_field": "draw_date",
                           "winning_field": "winning_numbers", "special_field": "mega_ball"},
    "multi_cash4life": {"id": "kwxv-fwze", "date_field": "draw_date",
                        "winning_field": "winning_numbers", "special_field": "cash_ball"},
}
OPEN_DATA_LIMIT = 50000

_default_store = MemoryStore()


# ---------------- HTTP ----------------
class HttpSource:
    """Thin synchronous wrapper around a requests.Session. Every failure is a RequestException."""

    def __init__(self, timeout: float = HTTP_TIMEOUT, session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_text(self, url: str) -> str:
        res = self.session.get(url, timeout=self.timeout)
        res.raise_for_status()
        return res.text

    def head(self, url: str) -> Optional[Dict[str, str]]:
        res = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        if not res.ok:
            return None
        return dict(res.headers)

    def get_json(self, url: str, params=None, headers=None) -> Any:
        res = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        res.raise_for_status()
        return res.json()


# ---------------- Cache envelope ----------------
def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat()


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


@dataclass
class CacheEnvelope:
    raw_text: str
    era_start: str
    cached_at: str
    next_refresh: str
    rows: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def create(cls, raw_text: str, era_start: str, now: datetime) -> "CacheEnvelope":
        return cls(
            raw_text=raw_text,
            era_start=era_start,
            cached_at=_iso(now),
            next_refresh=_iso(now + timedelta(hours=CACHE_TTL_HOURS)),
        )

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["CacheEnvelope"]:
        if not isinstance(data, dict):
            return None
        try:
            return cls(
                raw_text=data.get("raw_text") or "",
                era_start=data["era_start"],
                cached_at=data["cached_at"],
                next_refresh=data["next_refresh"],
                rows=list(data.get("rows") or []),
            )
        except KeyError as e:
            logging.warning(f"Discarding malformed cache envelope (missing {e}).")
            return None

    def to_dict(self) -> Dict[str, Any]:
        out = {
            "raw_text": self.raw_text,
            "era_start": self.era_start,
            "cached_at": self.cached_at,
            "next_refresh": self.next_refresh,
        }
        if self.rows:
            out["rows"] = self.rows
        return out

    @property
    def has_data(self) -> bool:
        return bool(self.raw_text.strip()) or bool(self.rows)

    def is_fresh(self, now: datetime) -> bool:
        refresh_at = _parse_ts(self.next_refresh)
        return self.has_data and refresh_at is not None and refresh_at > now


def cache_key_for(game_id) -> str:
    return f"{CACHE_KEY_PREFIX}{normalize_game_id(game_id)}"


# ---------------- Helpers ----------------
def _check_cancel(cancel: Optional[asyncio.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise FetchCancelled("Fetch cancelled by caller")


def _parser_for(key: str, schema: str) -> Callable[[str], List[DrawRow]]:
    if schema == "fixed":
        return lambda text: parse_fixed_schema(text, key)
    if schema == "variable":
        return parse_variable_schema
    raise ValueError(f"Unknown schema {schema!r}")


def _envelope_rows(envelope: CacheEnvelope, parse) -> List[DrawRow]:
    if envelope.raw_text.strip():
        return parse(envelope.raw_text)
    # parsed-row envelopes from older writers
    return sorted((DrawRow.from_dict(r) for r in envelope.rows), key=lambda r: r.date)


def probe_latest(source, game_id) -> Optional[str]:
    """
    Latest-row marker of the remote file: a date from Last-Modified, an ETag token, or the
    date of the last row of "<file>.latest.csv". None when every probe fails.
    """
    url = latest_url_for(game_id)
    try:
        headers = source.head(url)
    except requests.RequestException as e:
        logging.debug(f"HEAD probe failed for {url}: {e}")
        headers = None
    if headers:
        lowered = {str(k).lower(): v for k, v in headers.items()}
        modified = safe_parse_date(lowered.get("last-modified"))
        if modified:
            return modified
        if lowered.get("etag"):
            return lowered["etag"]
    try:
        text = source.get_text(url)
    except requests.RequestException as e:
        logging.debug(f"GET probe failed for {url}: {e}")
        return None
    return latest_date_in(text)


async def _emit(on_event, game_id, outcome, rows, source_name):
    if on_event is not None:
        await asyncio.to_thread(on_event, game_id, outcome, len(rows), source_name)


# ---------------- Open data fallback ----------------
def _build_where(date_field: str, since: Optional[str], until: Optional[str]) -> Optional[str]:
    clauses = []
    since_iso = safe_parse_date(since) if since else None
    until_iso = safe_parse_date(until) if until else None
    if since_iso:
        clauses.append(f"{date_field} >= '{since_iso}'")
    if until_iso:
        end = (datetime.strptime(until_iso, "%Y-%m-%d") + timedelta(days=1)).strftime("%Y-%m-%d")
        clauses.append(f"{date_field} < '{end}'")
    return " AND ".join(clauses) if clauses else None


def _open_data_rows(source, group: str, since, until, latest_only: bool, token: Optional[str]) -> List[DrawRow]:
    ds = OPEN_DATA_DATASETS[group]
    fields = [ds["date_field"], ds["winning_field"]] + ([ds["special_field"]] if ds["special_field"] else [])
    params = {
        "$select": ",".join(fields),
        "$order": f"{ds['date_field']} {'DESC' if latest_only else 'ASC'}",
        "$limit": "1" if latest_only else str(OPEN_DATA_LIMIT),
    }
    where = None if latest_only else _build_where(ds["date_field"], since, until)
    if where:
        params["$where"] = where
    headers = {"X-App-Token": token} if token else None

    records = source.get_json(f"{OPEN_DATA_BASE}/{ds['id']}.json", params=params, headers=headers)
    out = []
    for rec in records or []:
        date = safe_parse_date(rec.get(ds["date_field"]))
        nums = parse_tokens(rec.get(ds["winning_field"]) or "")
        if date is None or len(nums) < 5:
            continue
        raw_special = rec.get(ds["special_field"]) if ds["special_field"] else None
        special_tokens = parse_tokens(str(raw_special)) if raw_special is not None else []
        special = special_tokens[0] if special_tokens else None
        if special is None and len(nums) >= 6:
            special = nums[5]
        if special is None:
            continue
        out.append(DrawRow(date=date, values=tuple(nums[:5]), special=special))
    return sorted(out, key=lambda r: r.date)


async def fetch_open_data(game_id, since=None, until=None, latest_only=False, source=None,
                          token: Optional[str] = OPEN_DATA_TOKEN) -> List[DrawRow]:
    """Rows for a multi-state game from the NY open-data JSON API."""
    group = resolve_canonical_group(game_id)
    if group not in OPEN_DATA_DATASETS:
        raise ValueError(f"No open-data dataset for {group}")
    source = source or HttpSource()
    return await asyncio.to_thread(_open_data_rows, source, group, since, until, latest_only, token)


# ---------------- Reconciler ----------------
async def fetch_rows(
    game_id,
    since: Optional[str] = None,
    until: Optional[str] = None,
    latest_only: bool = False,
    store: Optional[KeyValueStore] = None,
    source=None,
    cancel: Optional[asyncio.Event] = None,
    now: Optional[datetime] = None,
    schema: str = "fixed",
    on_event: Optional[Callable] = None,
    allow_open_data: bool = ALLOW_OPEN_DATA_FALLBACK,
) -> List[DrawRow]:
    """
    Draw history of one game (or one underlying period file), current era only.

    Parameters:
    - game_id: Any identifier the registry knows.
    - since / until / latest_only: Date window applied to the returned rows.
      A latest_only request neither reads nor writes the cache.
    - store: KeyValueStore holding cache envelopes (defaults to a process-wide MemoryStore).
    - source: Object with get_text/head/get_json (defaults to HttpSource).
    - cancel: When set, FetchCancelled is raised before any write or return.
    - schema: "fixed" or "variable" column layout of the remote file.
    - on_event: Callback (game_id, outcome, row_count, source), e.g. a FetchLogger.

    Raises:
    - UnknownGameError: unknown identifier.
    - DataUnavailableError: the fetch failed and no cache could serve.
    - FetchCancelled: the cancel event was set.
    """
    key = normalize_game_id(game_id)
    group = resolve_canonical_group(key)
    cfg = resolve_shape(group)
    store = store if store is not None else _default_store
    source = source if source is not None else HttpSource()
    now = now or datetime.now(timezone.utc)
    parse = _parser_for(key, schema)
    cache_key = cache_key_for(key)

    async def finish(rows: List[DrawRow], outcome: str, source_name: str) -> List[DrawRow]:
        _check_cancel(cancel)
        out = filter_rows_for_era(apply_filters(rows, since, until, latest_only), group)
        await _emit(on_event, key, outcome, out, source_name)
        return out

    envelope = None
    if not latest_only:
        envelope = CacheEnvelope.from_dict(await asyncio.to_thread(store.get, cache_key))
        _check_cancel(cancel)
        if envelope is not None and envelope.era_start != cfg.era_start:
            logging.info(f"Cache for {key} was written for era {envelope.era_start}; ignoring it.")
            envelope = None

    cached_rows: List[DrawRow] = []
    if envelope is not None:
        cached_rows = await asyncio.to_thread(_envelope_rows, envelope, parse)
        _check_cancel(cancel)
        if envelope.is_fresh(now) and cached_rows:
            return await finish(cached_rows, "cache_hit", "cache")

        remote_latest = await asyncio.to_thread(probe_latest, source, key)
        _check_cancel(cancel)
        cached_latest = cached_rows[-1].date if cached_rows else None
        if remote_latest is not None and cached_latest == remote_latest:
            logging.info(f"{key}: remote latest {remote_latest} matches cache; keeping it.")
            renewed = CacheEnvelope.create(envelope.raw_text, cfg.era_start, now)
            renewed.rows = envelope.rows
            _check_cancel(cancel)
            await asyncio.to_thread(store.put, cache_key, renewed.to_dict())
            return await finish(cached_rows, "probe_match", "cache")
        if remote_latest is None:
            logging.info(f"{key}: latest-row probe failed; refetching.")

    url = data_url_for(key)
    try:
        text = await asyncio.to_thread(source.get_text, url)
    except requests.RequestException as e:
        _check_cancel(cancel)
        logging.warning(f"Fetching {url} failed: {e}")

        if allow_open_data and key == group and group in OPEN_DATA_DATASETS:
            try:
                rows = await fetch_open_data(group, since, until, latest_only, source=source)
            except requests.RequestException as e2:
                logging.warning(f"Open-data fallback for {group} failed: {e2}")
            else:
                logging.warning(f"Serving {len(rows)} {group} row(s) from the open-data API.")
                return await finish(rows, "open_data", "open_data")

        if cached_rows:
            logging.warning(f"Serving stale cache for {key} ({len(cached_rows)} rows).")
            return await finish(cached_rows, "stale_served", "cache")

        await _emit(on_event, key, "failed", [], url)
        raise DataUnavailableError(f"Draw history for {key} is unavailable: {e}") from e

    _check_cancel(cancel)
    rows = await asyncio.to_thread(parse, text)
    _check_cancel(cancel)
    if not rows:
        logging.warning(f"{url} yielded no usable rows; cache left as is.")
        if cached_rows:
            return await finish(cached_rows, "stale_served", "cache")
    elif not latest_only:
        await asyncio.to_thread(store.put, cache_key, CacheEnvelope.create(text, cfg.era_start, now).to_dict())
    logging.info(f"Fetched {len(rows)} row(s) for {key}.")
    return await finish(rows, "fetched", url)


# ---------------- Logical games (period routing) ----------------
async def fetch_logical_rows(
    logical,
    period: str = "all",
    since: Optional[str] = None,
    until: Optional[str] = None,
    schema: Optional[str] = None,
    **kwargs,
) -> List[DrawRow]:
    """
    Merge every underlying period file of a logical game into one ascending history.

    A single failing file is skipped; DataUnavailableError is raised only if all fail.
    """
    cfg = resolve_shape(logical)
    if schema is None:
        schema = "fixed" if cfg.shape in ("five", "six") else "variable"
    keys = underlying_keys_for(logical, period)

    results = await asyncio.gather(
        *(fetch_rows(k, since=since, until=until, schema=schema, **kwargs) for k in keys),
        return_exceptions=True,
    )

    merged: List[DrawRow] = []
    failures = []
    for k, res in zip(keys, results):
        if isinstance(res, FetchCancelled):
            raise res
        if isinstance(res, DataUnavailableError):
            logging.warning(f"Skipping {k}: {res}")
            failures.append(res)
            continue
        if isinstance(res, BaseException):
            raise res
        merged.extend(res)

    if keys and len(failures) == len(keys):
        raise DataUnavailableError(f"No period file of {logical} could be fetched.") from failures[0]
    return sorted(merged, key=lambda r: r.date)


async def fetch_digit_rows(logical, period: str = "all", **kwargs) -> List[DrawRow]:
    """Digit-game rows: the first k digits of each draw, Fireball kept as `special` where played."""
    k = digit_k_for(logical)
    cfg = resolve_shape(logical)
    out = []
    for r in await fetch_logical_rows(logical, period, schema="variable", **kwargs):
        digits = r.values[:k]
        if len(digits) != k or any(d < 0 or d > 9 for d in digits):
            continue
        fireball = r.special if cfg.uses_fireball else None
        out.append(DrawRow(date=r.date, values=tuple(digits), special=fireball))
    return out


async def fetch_kofn_rows(logical, period: str = "all", **kwargs) -> List[DrawRow]:
    """
    Pick 10, Quick Draw and All or Nothing rows. Pick 10 keeps up to 20 drawn numbers and
    accepts 10-number files; the others need exactly their draw size.
    """
    cfg = resolve_shape(logical)
    if cfg.shape not in ("pick10", "quickdraw", "allornothing"):
        raise ValueError(f"{logical!r} is not a k-of-N game (shape {cfg.shape!r})")
    drawn = 20 if cfg.shape == "pick10" else cfg.main_pick_count
    minimum = cfg.main_pick_count

    out = []
    for r in await fetch_logical_rows(logical, period, schema="variable", **kwargs):
        values = [v for v in r.values if 1 <= v <= cfg.main_domain_size][:drawn]
        if len(values) < minimum:
            continue
        out.append(DrawRow(date=r.date, values=tuple(values)))
    return out


async def fetch_cash_pop_rows(period: str = "all", logical: str = "fl_cashpop", **kwargs) -> List[DrawRow]:
    """One value 1..15 per draw, pooled across the selected periods."""
    cfg = resolve_shape(logical)
    out = []
    for r in await fetch_logical_rows(logical, period, schema="variable", **kwargs):
        if not r.values or not (1 <= r.values[0] <= cfg.main_domain_size):
            continue
        out.append(DrawRow(date=r.date, values=(r.values[0],)))
    return out


async def fetch_game_rows(game_id, period: str = "all", **kwargs) -> List[DrawRow]:
    """Rows of any game, shaped for its statistics adapter."""
    shape = resolve_shape(game_id).shape
    if shape == "digits":
        return await fetch_digit_rows(game_id, period, **kwargs)
    if shape in ("pick10", "quickdraw", "allornothing"):
        return await fetch_kofn_rows(game_id, period, **kwargs)
    if shape == "cashpop":
        return await fetch_cash_pop_rows(period, logical=game_id, **kwargs)
    return await fetch_logical_rows(game_id, period, **kwargs)
