## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Main Program Execution
## Description:
## Entry point for the Draw Analytics console. Handles game selection, cached draw-history
## fetching, number statistics, weighted ticket generation and ticket evaluation.
## Fetch decisions are audited to draws.db; the last generated tickets go to current_ticket.json.

# -*- coding: utf-8 -*-

import asyncio
import logging

from config.settings import DB_FILENAME, LOG_LEVEL, LOG_FORMAT
from config.logs import FetchLogger
from errors import DrawDataError
from database import SqliteStore, fetch_recent_events
from data_io import load_current_ticket, save_current_ticket
from pipeline import DataPipeline
from parsers import parse_tokens
from fetch import fetch_game_rows
from registry import (
    CURRENT_ERA,
    LOGICAL_TO_UNDERLYING,
    display_name_for,
    era_tooltip,
    resolve_canonical_group,
    resolve_shape,
)
from analysis.historical import process_historical_data
from analysis.shapes import LottoStats, compute_game_stats
from analysis.weights import analyze_game
from analysis.generate_ticket import (
    generate_cash_pop_ticket,
    generate_digit_ticket,
    generate_from_stats,
    generate_kofn_ticket,
    options_from_analysis,
)
from analysis.hints import (
    filter_hints_for_game,
    play_type_labels,
    ticket_hints,
    ticket_hints_digits,
    ticket_hints_kofn,
    ticket_hints_pick10,
)
from analysis.patterns import hit_rate_analysis, jackpot_odds, quick_draw_odds

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

DEFAULT_GAME = "multi_powerball"
TICKET_LINES = 5


# ============================================================
# Utility Functions
# ============================================================
def format_ticket(line):
    mains = " ".join(f"{n:2d}" for n in line["mains"])
    if line.get("special") is not None:
        return f"{mains} | Special: {line['special']}"
    return mains


def choose_game(pipeline):
    """Prompt for a game group and draw period, then reset the pipeline for it."""
    groups = sorted(CURRENT_ERA)
    print("\n--- Games ---")
    for idx, group in enumerate(groups, 1):
        print(f"{idx:2d}. {display_name_for(group):24s} {CURRENT_ERA[group].label}")
    raw = input(f"Select a game (1-{len(groups)}): ").strip()
    if not raw.isdigit() or not (1 <= int(raw) <= len(groups)):
        print("Invalid game selection.")
        return
    group = groups[int(raw) - 1]

    period = "all"
    periods = [p for p in LOGICAL_TO_UNDERLYING[group] if p != "all"]
    if periods:
        chosen = input(f"Draw period ({', '.join(periods)}) or Enter for all: ").strip().lower()
        if chosen in periods:
            period = chosen

    pipeline.select_game(group, period)
    print(f"\n{era_tooltip(group)}")


def load_history(pipeline, store, fetch_logger):
    """Fetch (or reuse) the selected game's rows and statistics."""
    game_id = pipeline.get_data("game_id") or DEFAULT_GAME
    if pipeline.get_data("historical_data") is not None:
        return pipeline.get_data("historical_data")

    period = pipeline.get_data("period") or "all"
    rows = asyncio.run(fetch_game_rows(game_id, period, store=store, on_event=fetch_logger))
    rows = process_historical_data(rows, pipeline, game_id)
    pipeline.add_data("stats", compute_game_stats(rows, game_id))
    pipeline.add_data("analysis", analyze_game(rows, game_id))
    return rows


def list_last_draws(pipeline, store, fetch_logger):
    rows = load_history(pipeline, store, fetch_logger)
    print(f"\n--- Last 10 Draws: {display_name_for(pipeline.get_data('game_id'))} ---")
    for row in reversed(rows[-10:]):
        special = f" | Special: {row.special}" if row.special is not None else ""
        print(f"Date: {row.date} | Numbers: {list(row.values)}{special}")


def print_domain(title, stats):
    print(f"\n--- {title} ({stats.low}..{stats.low + stats.domain_size - 1}, {stats.total_draws} draws) ---")
    print("Number | Occurrences | Last seen | z-score")
    for n in stats.domain:
        seen = stats.last_seen[n]
        seen_txt = "never" if seen == float("inf") else f"{int(seen)} ago"
        print(f"{n:6d} | {stats.counts[n]:11d} | {seen_txt:>9s} | {stats.z.get(n, 0.0):+6.2f}")


def view_number_stats(pipeline, store, fetch_logger):
    """Display counts, recency and z-scores for every domain of the game."""
    load_history(pipeline, store, fetch_logger)
    game_id = pipeline.get_data("game_id")
    stats = pipeline.require("stats")

    if isinstance(stats, LottoStats):
        print_domain("Main Numbers", stats.main)
        if stats.special is not None:
            print_domain("Special Ball", stats.special)
    else:
        print_domain("Numbers", stats)

    analysis = pipeline.require("analysis")
    rec = analysis.get("rec_main") or {}
    print(f"\nRecommended weighting: {rec.get('mode')} (alpha {rec.get('alpha')})")
    odds = jackpot_odds(game_id)
    if odds:
        print(f"Top prize odds: 1 in {odds:,}")


def make_tickets(pipeline, count, spots=None):
    """Generate `count` lines for the selected game from the cached statistics."""
    game_id = pipeline.get_data("game_id")
    cfg = resolve_shape(game_id)
    stats = pipeline.get_data("stats")
    options = options_from_analysis(pipeline.require("analysis"), avoid_common=True)

    lines = []
    for _ in range(count):
        if cfg.shape in ("five", "six"):
            lines.append(generate_from_stats(stats, options))
        elif cfg.shape == "digits":
            lines.append({"mains": generate_digit_ticket(stats, options), "special": None})
        elif cfg.shape == "cashpop":
            lines.append({"mains": [generate_cash_pop_ticket(stats, options)], "special": None})
        else:
            pick = spots or (12 if cfg.shape == "allornothing" else 10)
            lines.append({"mains": generate_kofn_ticket(stats, pick, options), "special": None})
    return lines


def hints_for(pipeline, line):
    game_id = pipeline.get_data("game_id")
    cfg = resolve_shape(game_id)
    stats = pipeline.get_data("stats")
    if cfg.shape in ("five", "six"):
        return filter_hints_for_game(game_id, ticket_hints(line["mains"], line.get("special"), stats))
    if cfg.shape == "digits":
        return ticket_hints_digits(line["mains"], stats) + play_type_labels(line["mains"])
    if cfg.shape == "pick10":
        return ticket_hints_pick10(line["mains"], stats)
    if cfg.shape in ("quickdraw", "allornothing"):
        return ticket_hints_kofn(line["mains"], cfg.main_domain_size)
    return ["Balanced"]


def generate_and_save(pipeline, store, fetch_logger):
    rows = load_history(pipeline, store, fetch_logger)
    game_id = pipeline.get_data("game_id")
    cfg = resolve_shape(game_id)

    raw = input(f"How many lines? (Enter for {TICKET_LINES}): ").strip()
    count = int(raw) if raw.isdigit() and int(raw) > 0 else TICKET_LINES
    spots = None
    if cfg.shape == "quickdraw":
        raw = input("Spots to play (1-10): ").strip()
        spots = int(raw) if raw.isdigit() else 10
        print(f"Odds of hitting all {spots}: 1 in {quick_draw_odds(spots):,}")

    lines = make_tickets(pipeline, count, spots)
    print(f"\nNew {display_name_for(game_id)} ticket:")
    for idx, line in enumerate(lines, 1):
        print(f"Line {idx}: {format_ticket(line)} | {', '.join(hints_for(pipeline, line))}")

    exact, partial = hit_rate_analysis(lines, rows)
    print(f"Past draws matched exactly: {exact} | Partial matches: {partial}")
    save_current_ticket(lines, game_id)
    pipeline.add_data("current_ticket", lines)


def evaluate_ticket(pipeline, store, fetch_logger):
    """Read a ticket from the user and print its pattern hints."""
    load_history(pipeline, store, fetch_logger)
    game_id = pipeline.get_data("game_id")
    cfg = resolve_shape(game_id)

    values = parse_tokens(input(f"Enter numbers ({cfg.label}): "))
    special = None
    if cfg.has_special:
        extra = parse_tokens(input(f"Enter special (1-{cfg.special_domain_size}): "))
        special = extra[0] if extra else None

    if cfg.shape in ("five", "six"):
        if len(values) != cfg.main_pick_count or len(set(values)) != len(values):
            raise ValueError(f"Exactly {cfg.main_pick_count} distinct numbers required.")
        if any(v < cfg.min_value or v > cfg.max_value for v in values):
            raise ValueError(f"Numbers must be between {cfg.min_value} and {cfg.max_value}.")
        values = sorted(values)

    line = {"mains": values, "special": special}
    print(f"\nTicket: {format_ticket(line)}")
    print(f"Hints: {', '.join(hints_for(pipeline, line))}")


def show_current_ticket():
    data = load_current_ticket()
    current_ticket = data.get("current_ticket", [])
    if not current_ticket:
        print("No current ticket. Generate one first.")
        return
    print(f"\n--- Current Ticket ({data.get('game')}) ---")
    for idx, line in enumerate(current_ticket, 1):
        print(f"Line {idx}: {format_ticket(line)}")


def show_fetch_log(game_id=None):
    events = fetch_recent_events(10, game_id=game_id)
    if not events:
        print("No fetch events recorded.")
        return
    print("\n--- Recent Fetches ---")
    for e in events:
        print(f"{e['created_at']} | {e['game_id']} | {e['outcome']} | {e['row_count']} rows | {e['source']}")


# ============================================================
# Safe Execution Wrapper
# ============================================================
def safe_run(step_fn, pipeline, name, *args):
    """Run a menu action; data and input errors are reported instead of ending the session."""
    try:
        step_fn(pipeline, *args)
    except (DrawDataError, ValueError) as e:
        print(f"[ERROR] {name} failed: {e}")


# ============================================================
# Main Program Loop
# ============================================================
def main():
    store = SqliteStore(DB_FILENAME)
    fetch_logger = FetchLogger(DB_FILENAME)
    pipeline = DataPipeline(resolve_canonical_group(DEFAULT_GAME))

    while True:
        print(f"\n--- Draw Analytics Menu [{display_name_for(pipeline.get_data('game_id'))}] ---")
        print("1. Choose Game")
        print("2. List Last 10 Draws")
        print("3. Number Stats")
        print("4. Generate Tickets")
        print("5. Evaluate a Ticket")
        print("6. Display Current Ticket")
        print("7. Recent Fetch Log")
        print("8. Refresh Draw Data")
        print("9. Exit")

        choice = input("Enter your choice (1-9): ").strip()

        if choice == "1":
            choose_game(pipeline)
        elif choice == "2":
            safe_run(list_last_draws, pipeline, "List Draws", store, fetch_logger)
        elif choice == "3":
            safe_run(view_number_stats, pipeline, "Number Stats", store, fetch_logger)
        elif choice == "4":
            safe_run(generate_and_save, pipeline, "Ticket Generation", store, fetch_logger)
        elif choice == "5":
            safe_run(evaluate_ticket, pipeline, "Ticket Evaluation", store, fetch_logger)
        elif choice == "6":
            show_current_ticket()
        elif choice == "7":
            show_fetch_log(pipeline.get_data("game_id"))
        elif choice == "8":
            pipeline.invalidate()
            safe_run(list_last_draws, pipeline, "Refresh", store, fetch_logger)
        elif choice == "9":
            print("Exiting.")
            break
        else:
            print("Invalid choice. Select 1-9.")


if __name__ == "__main__":
    main()
