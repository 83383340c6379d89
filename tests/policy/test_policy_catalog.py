from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.attendance_reconciler.attendance_reconciler.core.exceptions import ConfigurationError
from src.attendance_reconciler.attendance_reconciler.policy.model import PolicyConfiguration
from src.attendance_reconciler.attendance_reconciler.policy.service import PolicyCatalog
from tests.fakes import InMemoryPolicies

V1 = PolicyConfiguration(version=1, effective_from=date(2025, 1, 1))
V2 = PolicyConfiguration(version=2, effective_from=date(2025, 3, 15), grace_period_minutes=15)


def test_lookup_uses_version_effective_on_the_date():
    catalog = PolicyCatalog(InMemoryPolicies([V2, V1]))

    assert catalog.effective_on(date(2025, 3, 14)).version == 1
    assert catalog.effective_on(date(2025, 3, 15)).version == 2
    assert catalog.effective_on(date(2026, 1, 1)).version == 2


def test_date_before_first_version_is_configuration_error():
    catalog = PolicyCatalog(InMemoryPolicies([V1]))

    with pytest.raises(ConfigurationError):
        catalog.effective_on(date(2024, 12, 31))


def test_add_version_rejects_duplicate_and_refreshes():
    catalog = PolicyCatalog(InMemoryPolicies([V1]))

    catalog.add_version(V2)
    assert catalog.effective_on(date(2025, 4, 1)).grace_period_minutes == 15

    with pytest.raises(ConfigurationError):
        catalog.add_version(V2)


@pytest.mark.parametrize(
    "minutes, level",
    [(30, None), (31, 1), (60, 1), (61, 2), (120, 2), (121, 3), (600, 3)],
)
def test_default_tier_boundaries(minutes, level):
    tier = V1.tier_for(minutes)
    assert (tier.level if tier else None) == level


def test_occurrence_hours_cap_at_last_value():
    tier = V1.tier_for(45)
    assert [tier.hours_for(n) for n in (1, 2, 3, 4, 9)] == [
        Decimal("0"),
        Decimal("0.5"),
        Decimal("1.0"),
        Decimal("1.0"),
        Decimal("1.0"),
    ]
