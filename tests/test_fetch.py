import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import requests

from data_io import MemoryStore
from errors import DataUnavailableError, FetchCancelled, UnknownGameError
from fetch import (
    CacheEnvelope,
    cache_key_for,
    fetch_digit_rows,
    fetch_game_rows,
    fetch_logical_rows,
    fetch_rows,
    probe_latest,
)
from parsers import DrawRow
from registry import data_url_for, latest_url_for, resolve_shape

NOW = datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)

CASH5_CSV = (
    "draw_date,num1,num2,num3,num4,num5\n"
    "2010-05-01,1,2,3,4,5\n"
    "2024-01-01,1,2,3,4,5\n"
    "2024-01-02,6,7,8,9,10\n"
)
CASH5_LATEST = "draw_date,num1,num2,num3,num4,num5\n2024-01-02,6,7,8,9,10\n"


class FakeSource:
    """Records every call; serves configured text/headers/JSON or raises like requests would."""

    def __init__(self, files=None, heads=None, json_records=None, fail=False):
        self.files = files or {}
        self.heads = heads or {}
        self.json_records = json_records
        self.fail = fail
        self.calls = []

    def get_text(self, url):
        self.calls.append(("GET", url))
        if self.fail or url not in self.files:
            raise requests.ConnectionError(f"unreachable: {url}")
        return self.files[url]

    def head(self, url):
        self.calls.append(("HEAD", url))
        if self.fail:
            raise requests.ConnectionError(f"unreachable: {url}")
        return self.heads.get(url)

    def get_json(self, url, params=None, headers=None):
        self.calls.append(("JSON", url))
        if self.json_records is None:
            raise requests.ConnectionError(f"unreachable: {url}")
        return self.json_records


class EventLog(list):
    def __call__(self, game_id, outcome, row_count, source):
        self.append((game_id, outcome, row_count))


def run(coro):
    return asyncio.run(coro)


def cached_store(game_id, text, cached_at, era_start=None):
    store = MemoryStore()
    era = era_start or resolve_shape(game_id).era_start
    store.put(cache_key_for(game_id), CacheEnvelope.create(text, era, cached_at).to_dict())
    return store


def test_first_fetch_parses_filters_and_caches():
    store, events = MemoryStore(), EventLog()
    source = FakeSource(files={data_url_for("tx_cash5"): CASH5_CSV})
    rows = run(fetch_rows("tx_cash5", store=store, source=source, now=NOW, on_event=events))

    assert [r.date for r in rows] == ["2024-01-01", "2024-01-02"]
    envelope = CacheEnvelope.from_dict(store.get(cache_key_for("tx_cash5")))
    assert envelope.raw_text == CASH5_CSV
    assert envelope.era_start == "2018-09-23"
    assert events == [("tx_cash5", "fetched", 2)]


def test_fresh_cache_makes_no_network_calls():
    store = cached_store("tx_cash5", CASH5_CSV, NOW - timedelta(hours=1))
    source, events = FakeSource(fail=True), EventLog()
    rows = run(fetch_rows("tx_cash5", store=store, source=source, now=NOW, on_event=events))

    assert source.calls == []
    assert [r.date for r in rows] == ["2024-01-01", "2024-01-02"]
    assert events == [("tx_cash5", "cache_hit", 2)]


def test_era_change_discards_envelope():
    store = cached_store("tx_cash5", CASH5_CSV, NOW - timedelta(hours=1), era_start="1999-01-01")
    fresh_csv = "draw_date,num1,num2,num3,num4,num5\n2024-01-03,11,12,13,14,15\n"
    source = FakeSource(files={data_url_for("tx_cash5"): fresh_csv})
    rows = run(fetch_rows("tx_cash5", store=store, source=source, now=NOW))

    assert ("GET", data_url_for("tx_cash5")) in source.calls
    assert rows == [DrawRow("2024-01-03", (11, 12, 13, 14, 15))]
    assert CacheEnvelope.from_dict(store.get(cache_key_for("tx_cash5"))).era_start == "2018-09-23"


def test_stale_cache_kept_when_probe_matches():
    store = cached_store("tx_cash5", CASH5_CSV, NOW - timedelta(hours=7))
    source = FakeSource(files={latest_url_for("tx_cash5"): CASH5_LATEST})
    events = EventLog()
    rows = run(fetch_rows("tx_cash5", store=store, source=source, now=NOW, on_event=events))

    assert len(rows) == 2
    assert ("GET", data_url_for("tx_cash5")) not in source.calls
    assert events == [("tx_cash5", "probe_match", 2)]
    renewed = CacheEnvelope.from_dict(store.get(cache_key_for("tx_cash5")))
    assert renewed.is_fresh(NOW)


def test_probe_uses_last_modified_header_first():
    source = FakeSource(heads={latest_url_for("tx_cash5"): {"Last-Modified": "Tue, 02 Jan 2024 22:00:00 GMT"}})
    assert probe_latest(source, "tx_cash5") == "2024-01-02"
    assert source.calls == [("HEAD", latest_url_for("tx_cash5"))]

    source = FakeSource(heads={latest_url_for("tx_cash5"): {"ETag": '"abc"'}})
    assert probe_latest(source, "tx_cash5") == '"abc"'
    assert probe_latest(FakeSource(fail=True), "tx_cash5") is None


def test_stale_cache_refetched_when_probe_differs():
    store = cached_store("tx_cash5", CASH5_CSV, NOW - timedelta(hours=7))
    newer = CASH5_CSV + "2024-01-03,11,12,13,14,15\n"
    source = FakeSource(files={
        latest_url_for("tx_cash5"): "draw_date,num1\n2024-01-03,11\n",
        data_url_for("tx_cash5"): newer,
    })
    rows = run(fetch_rows("tx_cash5", store=store, source=source, now=NOW))

    assert rows[-1].date == "2024-01-03"
    assert CacheEnvelope.from_dict(store.get(cache_key_for("tx_cash5"))).raw_text == newer


def test_failed_refresh_serves_stale_cache():
    store = cached_store("tx_cash5", CASH5_CSV, NOW - timedelta(hours=30))
    events = EventLog()
    rows = run(fetch_rows("tx_cash5", store=store, source=FakeSource(fail=True), now=NOW, on_event=events))

    assert len(rows) == 2
    assert events == [("tx_cash5", "stale_served", 2)]


def test_failure_without_cache_raises():
    events = EventLog()
    with pytest.raises(DataUnavailableError) as exc:
        run(fetch_rows("tx_cash5", store=MemoryStore(), source=FakeSource(fail=True), now=NOW, on_event=events))
    assert isinstance(exc.value.__cause__, requests.RequestException)
    assert events == [("tx_cash5", "failed", 0)]


def test_cancelled_fetch_writes_nothing():
    store = MemoryStore()
    source = FakeSource(files={data_url_for("tx_cash5"): CASH5_CSV})

    async def cancelled():
        cancel = asyncio.Event()
        cancel.set()
        return await fetch_rows("tx_cash5", store=store, source=source, now=NOW, cancel=cancel)

    with pytest.raises(FetchCancelled):
        run(cancelled())
    assert store.data == {}


class CancellingSource(FakeSource):
    def __init__(self, cancel, **kwargs):
        super().__init__(**kwargs)
        self.cancel = cancel

    def get_text(self, url):
        text = super().get_text(url)
        self.cancel.set()
        return text


def test_cancel_during_download_writes_nothing():
    store, events = MemoryStore(), EventLog()

    async def cancelled_midway():
        cancel = asyncio.Event()
        source = CancellingSource(cancel, files={data_url_for("tx_cash5"): CASH5_CSV})
        return await fetch_rows("tx_cash5", store=store, source=source, now=NOW, cancel=cancel, on_event=events)

    with pytest.raises(FetchCancelled):
        run(cancelled_midway())
    assert store.data == {}
    assert events == []


def test_unparseable_refresh_keeps_good_cache():
    store = cached_store("tx_cash5", CASH5_CSV, NOW - timedelta(hours=7))
    source = FakeSource(files={
        latest_url_for("tx_cash5"): "draw_date,num1\n2024-01-03,11\n",
        data_url_for("tx_cash5"): "<html>maintenance</html>\n",
    })
    events = EventLog()
    rows = run(fetch_rows("tx_cash5", store=store, source=source, now=NOW, on_event=events))

    assert [r.date for r in rows] == ["2024-01-01", "2024-01-02"]
    assert events == [("tx_cash5", "stale_served", 2)]
    assert CacheEnvelope.from_dict(store.get(cache_key_for("tx_cash5"))).raw_text == CASH5_CSV

    empty_store = MemoryStore()
    rows = run(fetch_rows("tx_cash5", store=empty_store, source=source, now=NOW))
    assert rows == []
    assert empty_store.data == {}


def test_date_filters_and_latest_only():
    store = MemoryStore()
    source = FakeSource(files={data_url_for("tx_cash5"): CASH5_CSV})
    rows = run(fetch_rows("tx_cash5", since="2024-01-02", store=store, source=source, now=NOW))
    assert [r.date for r in rows] == ["2024-01-02"]
    rows = run(fetch_rows("tx_cash5", until="01/01/2024", store=store, source=source, now=NOW))
    assert [r.date for r in rows] == ["2024-01-01"]

    fresh_store = MemoryStore()
    rows = run(fetch_rows("tx_cash5", latest_only=True, store=fresh_store, source=source, now=NOW))
    assert [r.date for r in rows] == ["2024-01-02"]
    assert fresh_store.data == {}


def test_unknown_game_propagates():
    with pytest.raises(UnknownGameError):
        run(fetch_rows("zz_nothing", store=MemoryStore(), source=FakeSource()))


def test_open_data_fallback_for_multi_state_games():
    records = [{"draw_date": "2024-01-03T00:00:00.000", "winning_numbers": "01 02 03 04 05 06"}]
    source, events = FakeSource(json_records=records), EventLog()
    rows = run(fetch_rows("multi_powerball", store=MemoryStore(), source=source, now=NOW,
                          on_event=events, allow_open_data=True))
    assert rows == [DrawRow("2024-01-03", (1, 2, 3, 4, 5), 6)]
    assert events == [("multi_powerball", "open_data", 1)]

    with pytest.raises(DataUnavailableError):
        run(fetch_rows("multi_powerball", store=MemoryStore(), source=FakeSource(json_records=records),
                       now=NOW, allow_open_data=False))


TAKE5_MIDDAY = "draw_date,num1,num2,num3,num4,num5\n2024-01-01,1,2,3,4,5\n2024-01-02,3,4,5,6,7\n"
TAKE5_EVENING = "draw_date,num1,num2,num3,num4,num5\n2024-01-01,8,9,10,11,12\n"


def test_logical_game_merges_period_files():
    source = FakeSource(files={
        data_url_for("ny_take5_midday"): TAKE5_MIDDAY,
        data_url_for("ny_take5_evening"): TAKE5_EVENING,
    })
    rows = run(fetch_logical_rows("ny_take5", store=MemoryStore(), source=source, now=NOW))
    assert [r.date for r in rows] == ["2024-01-01", "2024-01-01", "2024-01-02"]

    midday = run(fetch_logical_rows("ny_take5", "midday", store=MemoryStore(), source=source, now=NOW))
    assert len(midday) == 2


def test_logical_game_skips_one_failed_period():
    source = FakeSource(files={data_url_for("ny_take5_midday"): TAKE5_MIDDAY})
    rows = run(fetch_logical_rows("ny_take5", store=MemoryStore(), source=source, now=NOW))
    assert len(rows) == 2

    with pytest.raises(DataUnavailableError):
        run(fetch_logical_rows("ny_take5", store=MemoryStore(), source=FakeSource(), now=NOW))


def test_digit_rows_are_shaped():
    text = "draw_date,n1,n2,n3\n2024-01-01,1,2,3\n2024-01-02,4,12,6\n2024-01-03,7,8\n"
    source = FakeSource(files={
        data_url_for("ny_numbers_midday"): text,
        data_url_for("ny_numbers_evening"): "draw_date,n1,n2,n3\n2024-01-04,9,9,9\n",
    })
    rows = run(fetch_digit_rows("ny_numbers", store=MemoryStore(), source=source, now=NOW))
    assert [r.values for r in rows] == [(1, 2, 3), (9, 9, 9)]


def test_game_rows_dispatch_cash_pop():
    text = "draw_date,n1\n2024-01-01,3\n2024-01-02,16\n"
    files = {data_url_for(k): text for k in (
        "fl_cashpop_morning", "fl_cashpop_matinee", "fl_cashpop_afternoon",
        "fl_cashpop_evening", "fl_cashpop_latenight")}
    rows = run(fetch_game_rows("fl_cashpop", "morning", store=MemoryStore(), source=FakeSource(files=files), now=NOW))
    assert rows == [DrawRow("2024-01-01", (3,))]
