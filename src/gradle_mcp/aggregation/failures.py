"""Failure selection and formatting for individual tests.

A failed test can report several failures, e.g. an assertion error plus
an exception thrown while cleaning up. Only one is reported: the first
that looks like an assertion/comparison/exception failure, else the first
one reported. Nested causes count towards a failure's rank and supply its
message when the failure itself has none.
"""

from collections.abc import Iterator, Sequence

from gradle_mcp.contracts.events import FailureRecord

UNKNOWN_FAILURE_REASON = "Unknown test failure reason"
NO_MESSAGE = "No specific error message."

MAX_FAILURE_MESSAGE_CHARS = 2048
MAX_DESCRIPTION_LINES = 5
# Leading characters of the description checked against the message.
_DESCRIPTION_MATCH_CHARS = 50

FAILURE_KEYWORDS: tuple[str, ...] = (
    "assertionfailed",
    "assertionerror",
    "comparisonfailure",
    "asserterror",
    "exception",
    "failed",
)


def with_causes(record: FailureRecord) -> Iterator[FailureRecord]:
    """``record`` and its nested causes, depth first, outermost first."""
    stack = [record]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.causes))


def failure_rank(record: FailureRecord) -> int:
    """Rank a failure record for primary-failure selection (lower wins).

    0 when the message or description of the record, or of any nested
    cause, mentions one of FAILURE_KEYWORDS (case-insensitive), 1 otherwise.
    """
    haystack = "\n".join(f"{r.message or ''}\n{r.description or ''}" for r in with_causes(record)).lower()
    return 0 if any(keyword in haystack for keyword in FAILURE_KEYWORDS) else 1


def select_primary_failure(records: Sequence[FailureRecord]) -> FailureRecord | None:
    """Pick the failure to report; ties go to the earliest record."""
    if not records:
        return None
    return min(enumerate(records), key=lambda item: (failure_rank(item[1]), item[0]))[1]


def _description_lines(description: str | None) -> list[str]:
    if not description:
        return []
    return [stripped for stripped in (line.strip() for line in description.splitlines()) if stripped]


def format_failure(record: FailureRecord) -> str:
    """Render one failure record as a bounded, human-readable message.

    The message's first line is used verbatim (`` ...`` marks a multi-line
    message). When the description adds something the message does not
    already say, up to MAX_DESCRIPTION_LINES of it are appended, indented.
    A record without a message borrows the first message among its causes.
    """
    message = next((r.message for r in with_causes(record) if r.message and r.message.strip()), None)
    message_lines = (message or "").splitlines()
    if message_lines and message_lines[0].strip():
        text = message_lines[0]
        if len(message_lines) > 1:
            text += " ..."
    else:
        text = NO_MESSAGE

    description = _description_lines(record.description)
    if description and description[0][:_DESCRIPTION_MATCH_CHARS] not in (message or ""):
        text += "\n  ...\n  " + "\n  ".join(description[:MAX_DESCRIPTION_LINES])
        if len(description) > MAX_DESCRIPTION_LINES:
            text += "\n  ..."

    return text[:MAX_FAILURE_MESSAGE_CHARS]


def summarize_failures(records: Sequence[FailureRecord]) -> str:
    """Failure message for a failed test, from all of its failure records."""
    primary = select_primary_failure(records)
    if primary is None:
        return UNKNOWN_FAILURE_REASON
    return format_failure(primary)
