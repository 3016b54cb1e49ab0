"""Selection of the implementations a suite runs against."""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .registry import ROLES, Implementation


@dataclass(frozen=True)
class MatrixPartition:
    """Result of filtering a registry by tag.

    ``match`` and ``non_match`` are disjoint, together cover the registry, and
    both keep registry order.
    """

    match: tuple[Implementation, ...]
    non_match: tuple[Implementation, ...]

    @property
    def implemented(self) -> list[str]:
        return [impl.name for impl in self.match]

    @property
    def not_implemented(self) -> list[str]:
        return [impl.name for impl in self.non_match]


def implementation_matches(
    implementation: Implementation,
    tags: Iterable[str],
    role: Optional[str] = None,
) -> bool:
    """Check whether any endpoint for the role carries every required tag.

    Args:
        implementation: Implementation to check
        tags: Required tags
        role: Role to look at; None considers every role

    Returns:
        True if a single endpoint carries all of ``tags``
    """
    required = frozenset(tags)
    roles = ROLES if role is None else (role,)
    for r in roles:
        for endpoint in implementation.endpoints_for(r):
            if required <= endpoint.tags:
                return True
    return False


def filter_by_tag(
    registry: Iterable[Implementation],
    tags: Iterable[str],
    role: Optional[str] = None,
) -> MatrixPartition:
    """Partition a registry into implementations that support ``tags`` and the rest.

    Args:
        registry: Implementations in registry order
        tags: Tags every matching endpoint must carry
        role: Restrict matching to one role (e.g. ``issuers``)

    Returns:
        MatrixPartition with ``match`` and ``non_match``
    """
    required = tuple(tags)
    match: list[Implementation] = []
    non_match: list[Implementation] = []
    for implementation in registry:
        if implementation_matches(implementation, required, role):
            match.append(implementation)
        else:
            non_match.append(implementation)
    return MatrixPartition(tuple(match), tuple(non_match))
