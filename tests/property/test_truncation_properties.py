# tests/property/test_truncation_properties.py
"""Property tests for output truncation.

TRUNCATION INVARIANTS:
1. Unlimited (<= 0) or short input is returned unchanged
2. Truncated output has exactly limit + 1 lines (limit > 1)
3. Head and tail are verbatim prefix and suffix of the input
4. The marker accounts for every dropped line
"""

import re

from hypothesis import HealthCheck, assume, given, settings
from hypothesis import strategies as st

from gradle_mcp.aggregation.truncation import SINGLE_LINE_NOTICE, truncate_lines
from tests.property.settings import STANDARD_SETTINGS

lines_strategy = st.lists(st.text(max_size=20), max_size=60)
_MARKER = re.compile(r"^\.\.\. \((\d+) lines truncated\) \.\.\.$")


@given(lines=lines_strategy, limit=st.integers(min_value=-5, max_value=0))
@STANDARD_SETTINGS
def test_non_positive_limit_is_identity(lines: list[str], limit: int) -> None:
    assert truncate_lines(lines, limit) == lines


@given(lines=lines_strategy, limit=st.integers(min_value=1, max_value=80))
@STANDARD_SETTINGS
def test_short_input_is_identity(lines: list[str], limit: int) -> None:
    assume(len(lines) <= limit)

    assert truncate_lines(lines, limit) == lines


@given(lines=lines_strategy, limit=st.integers(min_value=2, max_value=40))
@settings(STANDARD_SETTINGS, suppress_health_check=[HealthCheck.filter_too_much])
def test_truncated_shape(lines: list[str], limit: int) -> None:
    assume(len(lines) > limit)

    result = truncate_lines(lines, limit)
    head = limit // 2
    tail = limit - head

    assert len(result) == limit + 1
    assert result[:head] == lines[:head]
    assert result[head + 1 :] == lines[-tail:]
    match = _MARKER.match(result[head])
    assert match is not None
    assert int(match.group(1)) == len(lines) - limit


@given(lines=st.lists(st.text(max_size=5), min_size=2, max_size=30))
@STANDARD_SETTINGS
def test_limit_one_is_single_notice(lines: list[str]) -> None:
    assert truncate_lines(lines, 1) == [SINGLE_LINE_NOTICE]
