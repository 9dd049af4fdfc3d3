"""Head/tail truncation of captured output lines."""

SINGLE_LINE_NOTICE = "... (output truncated, only 1 line allowed)"


def truncation_marker(omitted: int) -> str:
    """Marker line standing in for ``omitted`` dropped lines."""
    return f"... ({omitted} lines truncated) ..."


def truncate_lines(lines: list[str], max_lines: int) -> list[str]:
    """Bound ``lines`` to ``max_lines``, keeping the first and last lines.

    Rules:
    - ``max_lines <= 0``: unlimited, lines returned unchanged
    - ``len(lines) <= max_lines``: returned unchanged
    - ``max_lines == 1``: a single truncation notice
    - otherwise: ``max_lines // 2`` head lines, a marker stating how many
      lines were omitted, then the remaining ``max_lines - head`` tail lines

    The truncated result therefore has ``max_lines + 1`` elements.

    Args:
        lines: Lines to bound (already noise-filtered)
        max_lines: Line limit

    Returns:
        New list; the input is never modified.
    """
    if max_lines <= 0 or len(lines) <= max_lines:
        return list(lines)
    if max_lines == 1:
        return [SINGLE_LINE_NOTICE]

    head_count = max_lines // 2
    tail_count = max_lines - head_count
    omitted = len(lines) - head_count - tail_count
    return [*lines[:head_count], truncation_marker(omitted), *lines[-tail_count:]]
