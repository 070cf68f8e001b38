import pytest

from src.attendance_payroll.attendance_payroll.core.exceptions import PolicyNotConfigured
from src.attendance_payroll.attendance_payroll.policy.store import PolicyStore
from tests.fakes import StaticPolicies, make_policy


class Ticker:
    def __init__(self):
        self.t = 1000.0

    def __call__(self) -> float:
        return self.t


def test_policy_is_cached_until_ttl_expires():
    repo = StaticPolicies(make_policy(1))
    clock = Ticker()
    store = PolicyStore(repo, ttl_seconds=60, clock=clock)

    store.get(1)
    store.get(1)
    assert repo.loads == 1

    clock.t += 61
    store.get(1)
    assert repo.loads == 2


def test_invalidate_forces_reload():
    repo = StaticPolicies(make_policy(1))
    store = PolicyStore(repo, ttl_seconds=60, clock=Ticker())
    store.get(1)

    store.invalidate(1)
    store.get(1)

    assert repo.loads == 2


def test_zero_ttl_always_reads_through():
    repo = StaticPolicies(make_policy(1))
    store = PolicyStore(repo, ttl_seconds=0)

    store.get(1)
    store.get(1)

    assert repo.loads == 2


def test_unknown_company_has_no_policy():
    store = PolicyStore(StaticPolicies(), ttl_seconds=60)

    with pytest.raises(PolicyNotConfigured):
        store.get(42)
