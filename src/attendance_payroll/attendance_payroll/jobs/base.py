from __future__ import annotations

import logging
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Sequence

from ..core.constants import DEFAULT_JOB_CHUNK_SIZE, DEFAULT_JOB_MAX_WORKERS
from ..users.company_model import Company

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    processed: int = 0
    errors: list[str] = field(default_factory=list)
    tenants: int = 0

    def merge(self, other: "BatchResult") -> None:
        self.processed += other.processed
        self.errors.extend(other.errors)
        self.tenants += other.tenants

    def to_dict(self) -> dict:
        return {"processed": self.processed, "errors": list(self.errors)}


def run_per_tenant(
    job_name: str,
    companies: Sequence[Company],
    work: Callable[[Company], BatchResult],
    *,
    chunk_size: int = DEFAULT_JOB_CHUNK_SIZE,
    max_workers: int = DEFAULT_JOB_MAX_WORKERS,
) -> BatchResult:
    """Run ``work`` for every tenant; one tenant's failure never stops the rest."""
    started = time.monotonic()
    result = BatchResult()

    def guarded(company: Company) -> BatchResult:
        try:
            partial = work(company)
            partial.tenants = 1
            return partial
        except Exception as exc:
            logger.exception("job=%s tenant=%s failed", job_name, company.company_id)
            return BatchResult(errors=[f"company {company.company_id}: {exc}"], tenants=1)

    workers = max(1, int(max_workers))
    # Tenants start as soon as a worker frees up; the window only bounds queued work.
    window = max(workers, int(chunk_size))
    pending_companies = iter(companies)
    in_flight = set()
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=job_name) as pool:
        for company in pending_companies:
            in_flight.add(pool.submit(guarded, company))
            if len(in_flight) >= window:
                break
        while in_flight:
            done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                result.merge(future.result())
                company = next(pending_companies, None)
                if company is not None:
                    in_flight.add(pool.submit(guarded, company))

    logger.info(
        "job=%s processed=%d errors=%d tenants=%d duration_ms=%d",
        job_name,
        result.processed,
        len(result.errors),
        result.tenants,
        int((time.monotonic() - started) * 1000),
    )
    return result
