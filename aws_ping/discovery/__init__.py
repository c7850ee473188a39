"""Membership discovery package: capability Protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import MemberAddress


@runtime_checkable
class MembershipSource(Protocol):
    """Protocol that every membership source handed to the host framework must satisfy."""

    def resolve_members(self, cluster_name: str) -> list[MemberAddress]:
        """Return the current member addresses for ``cluster_name``."""
        ...

    def is_dynamic(self) -> bool:
        """True when membership must be re-queried every round."""
        ...

    def supports_parallel_discovery(self) -> bool:
        """True when rounds may be issued concurrently."""
        ...
