from __future__ import annotations

from typing import Protocol, Sequence

from .model import PolicyConfiguration


class PolicyRepository(Protocol):
    def list_versions(self) -> Sequence[PolicyConfiguration]:
        """All versions, any order."""

        raise NotImplementedError

    def add_version(self, policy: PolicyConfiguration) -> int:
        raise NotImplementedError
