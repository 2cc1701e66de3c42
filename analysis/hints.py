## Modified By: Callam
## Project: Draw Analytics
## Purpose of File: Ticket Pattern Detectors and Hint Labels
## Description:
## Short descriptive labels for a ticket ("3-in-a-row", "Birthday-heavy", "Hot mains", ...).
## The same detectors drive the "avoid common patterns" rejection in generate_ticket.py.
## Labels describe the ticket relative to history; they are not a quality score.

import math
from collections import Counter
from typing import List, Optional, Sequence

from registry import has_colored_special
from analysis.stats_engine import StatsResult
from analysis.shapes import LottoStats

BIRTHDAY_MAX = 31
HOT_Z = 1.0
COLD_Z = -1.0


# ---------------- Set-game detectors ----------------
def has_consecutive_run(values: Sequence[int], run_len: int) -> bool:
    a = sorted(values)
    for i in range(run_len - 1, len(a)):
        if all(a[i - j] + j == a[i] for j in range(1, run_len)):
            return True
    return False


def is_arithmetic_sequence(values: Sequence[int]) -> bool:
    a = sorted(values)
    if len(a) < 3:
        return False
    d = a[1] - a[0]
    return all(a[i] - a[i - 1] == d for i in range(2, len(a)))


def birthday_count(values: Sequence[int]) -> int:
    return sum(1 for n in values if n <= BIRTHDAY_MAX)


def is_birthday_heavy(values: Sequence[int], threshold: int = 4) -> bool:
    return birthday_count(values) >= threshold


def span_of(values: Sequence[int]) -> int:
    return max(values) - min(values) if values else 0


def is_tightly_clustered(values: Sequence[int], domain_size: int) -> bool:
    """Span no wider than ceil(domain/7)."""
    if not values:
        return False
    return span_of(values) <= math.ceil(domain_size / 7)


def looks_too_common(mains: Sequence[int], domain_size: int) -> bool:
    """True when a set of mains matches any pattern players pick disproportionately often."""
    if not mains:
        return False
    return (
        has_consecutive_run(mains, 4)
        or has_consecutive_run(mains, 3)
        or is_birthday_heavy(mains)
        or is_arithmetic_sequence(mains)
        or is_tightly_clustered(mains, domain_size)
    )


def ticket_hints(mains: Sequence[int], special: Optional[int], stats: LottoStats) -> List[str]:
    """Hint labels for a lotto-style ticket. Defaults to ["Balanced"]."""
    hints = []
    domain = stats.cfg.main_domain_size

    if has_consecutive_run(mains, 4):
        hints.append("4-in-a-row")
    elif has_consecutive_run(mains, 3):
        hints.append("3-in-a-row")
    if is_arithmetic_sequence(mains):
        hints.append("Arithmetic sequence")
    if is_birthday_heavy(mains):
        hints.append("Birthday-heavy")
    if is_tightly_clustered(mains, domain):
        hints.append("Tight span")
    if not hints and looks_too_common(mains, domain):
        hints.append("Common pattern")

    counts = stats.main.counts
    z_main = stats.main.z
    if sum(1 for n in mains if counts.get(n, 0) <= 1) >= 3:
        hints.append("Cold mains")
    if sum(1 for n in mains if z_main.get(n, 0.0) > HOT_Z) >= 3:
        hints.append("Hot mains")

    if stats.special is not None and special is not None:
        special_z = stats.special.z.get(special, 0.0)
        if special_z > HOT_Z:
            hints.append("Hot special")
        if special_z < COLD_Z:
            hints.append("Cold special")

    if not hints:
        hints.append("Balanced")
    return hints


def filter_hints_for_game(game_id, labels: Sequence[str]) -> List[str]:
    """Drop special-ball hints for games without a colored special ball."""
    if has_colored_special(game_id):
        return list(labels)
    return [h for h in labels if h not in ("Hot special", "Cold special")]


# ---------------- Digit games ----------------
def is_palindrome(digits: Sequence[int]) -> bool:
    return list(digits) == list(reversed(digits))


def longest_run_len(digits: Sequence[int]) -> int:
    """Longest stretch of neighbouring positions that step by +1 or -1."""
    if not digits:
        return 0
    best = cur = 1
    for prev, d in zip(digits, digits[1:]):
        if abs(d - prev) == 1:
            cur += 1
            best = max(best, cur)
        else:
            cur = 1
    return best


def max_multiplicity(digits: Sequence[int]) -> int:
    return max(Counter(digits).values()) if digits else 0


def is_sum_outlier(digits: Sequence[int]) -> bool:
    lo, hi = (6, 21) if len(digits) == 3 else (8, 28)
    total = sum(digits)
    return total <= lo or total >= hi


def multiset_permutations_count(digits: Sequence[int]) -> int:
    denom = 1
    for c in Counter(digits).values():
        denom *= math.factorial(c)
    return math.factorial(len(digits)) // denom


def play_type_labels(digits: Sequence[int]) -> List[str]:
    """"Straight" when every digit is the same, otherwise the "<N>-Way Box" variant."""
    if not digits:
        return []
    ways = multiset_permutations_count(digits)
    if ways <= 1:
        return ["Straight"]
    return [f"{ways}-Way Box"]


def ticket_hints_digits(digits: Sequence[int], stats: Optional[StatsResult]) -> List[str]:
    if stats is None:
        return ["Insufficient data"]
    k = stats.k
    if len(digits) != k:
        return ["Invalid"]

    hints = []
    mult = max_multiplicity(digits)
    if mult == 4:
        hints.append("Quad")
    elif mult == 3:
        hints.append("Triple")
    elif mult == 2:
        hints.append("Pair")

    if is_palindrome(digits):
        hints.append("Palindrome")
    if longest_run_len(digits) >= 3:
        hints.append("Sequential digits")
    if is_sum_outlier(digits):
        hints.append("Sum outlier")

    side = math.ceil(k * 2 / 3)
    if sum(1 for d in digits if d <= 4) >= side:
        hints.append("Low-heavy")
    if sum(1 for d in digits if d >= 5) >= side:
        hints.append("High-heavy")

    half = math.ceil(k / 2)
    if sum(1 for d in digits if stats.z.get(d, 0.0) > HOT_Z) >= half:
        hints.append("Hot digits")
    if sum(1 for d in digits if stats.z.get(d, 0.0) < COLD_Z) >= half:
        hints.append("Cold digits")

    if not hints:
        hints.append("Balanced")
    return hints


# ---------------- k-of-N games ----------------
def kofn_is_tight(values: Sequence[int], domain_size: int = 80) -> bool:
    """Span threshold scales with ticket size: looser for many spots."""
    if not values:
        return False
    limit = math.ceil(domain_size / max(8, len(values) + 2))
    return span_of(values) <= limit


def ticket_hints_pick10(values: Sequence[int], stats: Optional[StatsResult]) -> List[str]:
    if len(values) != 10:
        return ["Invalid"]
    hints = []
    if span_of(values) <= 80 / 10:
        hints.append("Tight span")
    if has_consecutive_run(values, 3):
        hints.append("3-in-a-row")
    if is_birthday_heavy(values, threshold=6):
        hints.append("Birthday-heavy")

    z = stats.z if stats is not None else {}
    if sum(1 for n in values if z.get(n, 0.0) > HOT_Z) >= 5:
        hints.append("Hot mains")
    if sum(1 for n in values if z.get(n, 0.0) < COLD_Z) >= 5:
        hints.append("Cold mains")

    if not hints:
        hints.append("Balanced")
    return hints


def ticket_hints_kofn(values: Sequence[int], domain_size: int = 80) -> List[str]:
    """Light flags for Quick Draw and All or Nothing selections."""
    hints = []
    if has_consecutive_run(values, 3):
        hints.append("3-in-a-row")
    if kofn_is_tight(values, domain_size):
        hints.append("Tight span")
    if not hints:
        hints.append("Balanced")
    return hints
