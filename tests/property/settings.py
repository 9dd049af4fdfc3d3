# tests/property/settings.py
"""Standardized Hypothesis settings profiles for property tests.

Usage:
    from tests.property.settings import STANDARD_SETTINGS

    @given(lines=st.lists(st.text()))
    @STANDARD_SETTINGS
    def test_something(lines):
        ...

Tiers:
- DETERMINISM_SETTINGS: 300 examples - result tree must not depend on event order
- STANDARD_SETTINGS: 100 examples - Regular property tests
- QUICK_SETTINGS: 20 examples - Fast validation tests
"""

from hypothesis import HealthCheck, settings

DETERMINISM_SETTINGS = settings(max_examples=300, suppress_health_check=[HealthCheck.too_slow])

STANDARD_SETTINGS = settings(max_examples=100)

QUICK_SETTINGS = settings(max_examples=20)
