from datetime import datetime
from typing import List, Literal, Optional


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = list(map(_cell, headers))
    rows = [list(map(_cell, row)) for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def _cell(val) -> str:
    # pipes and newlines would break the table layout
    return str(val).replace("|", "\\|").replace("\n", " ")


def money(amount: float) -> str:
    return f"${amount:,.2f}"


def short_id(object_id: str) -> str:
    """First 8 characters, upper-cased, the way order numbers are shown."""
    return object_id[:8].upper()


def fmt_ts(ts: Optional[datetime], missing: str = "Estimated") -> str:
    if ts is None:
        return missing
    return ts.astimezone().strftime("%Y-%m-%d at %H:%M")


def stars(rating: float) -> str:
    full = int(rating)
    return "★" * full + "☆" * (5 - full)
