from __future__ import annotations

import logging
import threading
import time as _time
from typing import Callable

from ..core.constants import DEFAULT_POLICY_CACHE_TTL_SECONDS
from ..core.exceptions import PolicyNotConfigured
from .model import Policy
from .repository import PolicyRepository

logger = logging.getLogger(__name__)


class PolicyStore:
    """Read-through cache over :class:`PolicyRepository` with a bounded TTL.

    Each operation asks for a fresh snapshot; edits become visible once the
    cached entry expires or is invalidated.
    """

    def __init__(
        self,
        policies: PolicyRepository,
        *,
        ttl_seconds: int = DEFAULT_POLICY_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = _time.monotonic,
    ):
        self._policies = policies
        self._ttl = max(0, int(ttl_seconds))
        self._clock = clock
        self._cache: dict[int, tuple[float, Policy]] = {}
        self._lock = threading.Lock()

    def get(self, company_id: int) -> Policy:
        company_id = int(company_id)
        now = self._clock()
        with self._lock:
            entry = self._cache.get(company_id)
            if entry and entry[0] > now:
                return entry[1]

        policy = self._policies.load(company_id)
        if policy is None:
            raise PolicyNotConfigured(f"No attendance policy for company {company_id}")

        if self._ttl:
            with self._lock:
                self._cache[company_id] = (now + self._ttl, policy)
        return policy

    def invalidate(self, company_id: int | None = None) -> None:
        with self._lock:
            if company_id is None:
                self._cache.clear()
            else:
                self._cache.pop(int(company_id), None)
        logger.debug("policy cache invalidated company=%s", company_id)
