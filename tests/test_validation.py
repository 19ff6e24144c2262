"""
Tests for CIDR block change validation.
"""

import itertools

import pytest

from ucloud_network.provisioners.validation import NetworkChange, validate_network_change
from ucloud_network.utils.errors import ErrorCategory, ValidationError

BLOCKS = ["10.0.0.0/8", "10.1.0.0/16", "172.16.0.0/12", "192.168.0.0/16"]


def all_subsets(items):
    for size in range(len(items) + 1):
        for combo in itertools.combinations(items, size):
            yield frozenset(combo)


@pytest.mark.parametrize("old", list(all_subsets(BLOCKS)))
def test_rejects_exactly_when_both_directions_change(old):
    for new in all_subsets(BLOCKS):
        should_reject = bool(old - new) and bool(new - old)
        if should_reject:
            with pytest.raises(ValidationError):
                validate_network_change(old, new)
        else:
            change = validate_network_change(old, new)
            assert change.added == new - old
            assert change.removed == old - new


def test_addition_only():
    change = validate_network_change({"10.0.0.0/8"}, {"10.0.0.0/8", "10.1.0.0/16"})
    assert change == NetworkChange(added=frozenset({"10.1.0.0/16"}), removed=frozenset())


def test_removal_only():
    change = validate_network_change({"10.0.0.0/8", "10.1.0.0/16"}, {"10.0.0.0/8"})
    assert change.added == frozenset()
    assert change.removed == frozenset({"10.1.0.0/16"})


def test_no_change():
    assert validate_network_change({"10.0.0.0/8"}, {"10.0.0.0/8"}).is_empty


def test_rejection_tells_operator_to_split_the_change():
    with pytest.raises(ValidationError) as exc_info:
        validate_network_change({"10.0.0.0/8"}, {"10.1.0.0/16"})

    error = exc_info.value
    assert error.category == ErrorCategory.VALIDATION
    assert "apply delete first, and then apply create" in error.message
    assert error.context.additional_info == {
        'added': ['10.1.0.0/16'],
        'removed': ['10.0.0.0/8'],
    }
    assert len(error.suggestions) == 2
