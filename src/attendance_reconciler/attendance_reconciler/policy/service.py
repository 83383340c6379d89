from __future__ import annotations

import bisect
import logging
import threading
from datetime import date
from typing import Optional, Sequence

from ..core.exceptions import ConfigurationError
from .model import PolicyConfiguration
from .repository import PolicyRepository

logger = logging.getLogger(__name__)


class PolicyCatalog:
    """Effective-dated policy lookup.

    Versions are loaded once per run by `refresh()`; a failure there is a
    batch-level error and propagates. Lookups always go by the work/incident
    date, never by the current date.
    """

    def __init__(self, policies: PolicyRepository):
        self._policies = policies
        self._lock = threading.Lock()
        self._versions: Optional[list[PolicyConfiguration]] = None
        self._dates: list[date] = []

    def refresh(self) -> int:
        versions = sorted(self._policies.list_versions(), key=lambda p: (p.effective_from, p.version))
        with self._lock:
            self._versions = versions
            self._dates = [p.effective_from for p in versions]
        logger.debug("Loaded %d policy versions", len(versions))
        return len(versions)

    def versions(self) -> Sequence[PolicyConfiguration]:
        if self._versions is None:
            self.refresh()
        return tuple(self._versions or ())

    def effective_on(self, day: date) -> PolicyConfiguration:
        if self._versions is None:
            self.refresh()
        with self._lock:
            index = bisect.bisect_right(self._dates, day) - 1
            if index < 0:
                raise ConfigurationError(f"No policy configuration effective on {day.isoformat()}")
            return self._versions[index]

    def add_version(self, policy: PolicyConfiguration) -> int:
        if policy.version in {p.version for p in self.versions()}:
            raise ConfigurationError(f"Policy version {policy.version} already exists")
        version = self._policies.add_version(policy)
        self.refresh()
        return version
