"""Terminal prompts for the abiregistry CLI."""

from typing import Callable, List, Sequence


def confirm(message: str, input_func: Callable[[str], str] = input) -> bool:
    """
    Ask the user for confirmation.

    Returns:
        True if the answer is y or yes (case-insensitive), False otherwise
        (including end of input)
    """
    try:
        answer = input_func(f"{message} (y/N): ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    """Render rows as a box-drawn table."""
    widths = [
        max([len(header)] + [len(row[i]) if i < len(row) else 0 for row in rows])
        for i, header in enumerate(headers)
    ]

    def line(cells: Sequence[str]) -> str:
        padded = [
            (cells[i] if i < len(cells) else "").ljust(width) for i, width in enumerate(widths)
        ]
        return "│ " + " │ ".join(padded) + " │"

    header_row = line(headers)
    rule = "─" * (len(header_row) - 2)
    lines: List[str] = [f"┌{rule}┐", header_row, f"├{rule}┤"]
    lines.extend(line(row) for row in rows)
    lines.append(f"└{rule}┘")
    return "\n".join(lines)
