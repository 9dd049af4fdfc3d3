"""Noise filtering for captured test output.

Test JVMs print a lot of chatter that never helps explain a failure:
annotation-processor round timings, cache statistics, compiler module
loading notices, blank lines. The rules below match whole prefixed lines
(``[stdout] ...`` / ``[stderr] ...``) and are applied in order; a line
matching any rule is dropped.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

_PREFIX = r"^\[(?:stdout|stderr)\]"


@dataclass(frozen=True, slots=True)
class NoiseRule:
    """A named pattern for one category of noise."""

    category: str
    pattern: re.Pattern[str]

    def matches(self, line: str) -> bool:
        return self.pattern.fullmatch(line) is not None


def _rule(category: str, body: str) -> NoiseRule:
    return NoiseRule(category, re.compile(_PREFIX + body, re.IGNORECASE))


NOISE_RULES: tuple[NoiseRule, ...] = (
    _rule(
        "ksp-progress",
        r"\s*i: \[ksp\] \[Anvil\] \[.*?\]"
        r"( Starting round \d+| Round \d+ took \d+ms| Computing triggers took \d+ms"
        r"| Loading previous contributions took \d+ms| Compute contributions took \d+ms"
        r"| Compute pending events took \d+ms| Total processing time after \d+ round\(s\) took \d+ms)",
    ),
    _rule("ksp-property-cache", r"\s*i: \[ksp\] \[Anvil\] \[ClassScannerKsp\] Generated Property Cache"),
    _rule("cache-statistics", r"\s+(Size:|Hits:|Misses:|Fidelity:)\s+\d+%?"),
    _rule("module-loading", r"\s*v: Loading modules:.*"),
    _rule("blank", r"\s*"),
    _rule("classpath-inheritance", r"\s*logging: Inheriting classpaths:\s.*"),
)


def is_noise(line: str) -> bool:
    """Whether ``line`` matches any noise rule."""
    return any(rule.matches(line) for rule in NOISE_RULES)


def filter_noise(lines: Iterable[str]) -> list[str]:
    """Drop noise lines, keeping the rest unchanged and in order."""
    return [line for line in lines if not is_noise(line)]


def noise_categories() -> list[str]:
    """Category names of the active rules, in evaluation order."""
    return [rule.category for rule in NOISE_RULES]
