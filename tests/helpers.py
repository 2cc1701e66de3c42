from datetime import date, timedelta

from parsers import DrawRow


def make_rows(values_list, start="2020-01-01", specials=None):
    """Consecutive daily draws starting at `start`, oldest first."""
    first = date.fromisoformat(start)
    rows = []
    for i, values in enumerate(values_list):
        special = specials[i] if specials is not None else None
        rows.append(DrawRow((first + timedelta(days=i)).isoformat(), tuple(values), special))
    return rows
