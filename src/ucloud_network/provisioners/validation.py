"""Validation of CIDR block set changes on a VPC."""

from dataclasses import dataclass
from typing import AbstractSet, FrozenSet

from ucloud_network.utils.errors import ValidationError, ErrorContext


@dataclass(frozen=True)
class NetworkChange:
    """One-directional change to a VPC's CIDR block set."""
    added: FrozenSet[str]
    removed: FrozenSet[str]

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.removed


def validate_network_change(old: AbstractSet[str], new: AbstractSet[str]) -> NetworkChange:
    """Check that a CIDR block change only adds or only removes blocks.

    The remote API can append networks or overwrite the whole list, but a
    single apply cannot do both.

    Args:
        old: Previously applied CIDR blocks
        new: Proposed CIDR blocks

    Returns:
        The accepted change

    Raises:
        ValidationError: If the change adds and removes blocks at once
    """
    added = frozenset(new) - frozenset(old)
    removed = frozenset(old) - frozenset(new)

    if added and removed:
        raise ValidationError(
            "expected only create or delete operation for network, could not "
            "apply both of them, please apply delete first, and then apply create",
            context=ErrorContext(
                resource_type='vpc',
                operation='validate',
                additional_info={
                    'added': sorted(added),
                    'removed': sorted(removed),
                }
            ),
            suggestions=[
                f"Remove {', '.join(sorted(removed))} and apply",
                f"Then add {', '.join(sorted(added))} and apply again",
            ]
        )

    return NetworkChange(added=added, removed=removed)
