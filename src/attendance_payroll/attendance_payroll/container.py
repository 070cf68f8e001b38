from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .attendance.factory import ApprovalRuleFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_JOB_CHUNK_SIZE, DEFAULT_JOB_MAX_WORKERS, DEFAULT_POLICY_CACHE_TTL_SECONDS
from .corrections.mysql_correction_repository import MySQLCorrectionRepository
from .corrections.service import CorrectionService
from .database.connection import DBConfig, DatabaseConnection
from .integrations.audit import MySQLAuditLog
from .integrations.notifications import LoggingNotifier, Notifier
from .jobs.auto_punch_out import AutoPunchOutJob
from .jobs.mark_absent import MarkAbsentJob
from .jobs.salary_generation import SalaryGenerationJob
from .payroll.aggregator import PayrollAggregator
from .payroll.lifecycle import SalaryLifecycle
from .payroll.mysql_salary_repository import MySQLSalaryRepository
from .payroll.service import SalaryService
from .policy.mysql_policy_repository import MySQLPolicyRepository
from .policy.store import PolicyStore
from .users.mysql_company_repository import MySQLCompanyRepository
from .users.mysql_employee_repository import MySQLEmployeeRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    companies_repo: MySQLCompanyRepository
    employees_repo: MySQLEmployeeRepository
    attendance_repo: MySQLAttendanceRepository
    corrections_repo: MySQLCorrectionRepository
    salaries_repo: MySQLSalaryRepository
    audit_log: MySQLAuditLog
    notifier: Notifier
    policy_store: PolicyStore

    attendance_service: AttendanceService
    correction_service: CorrectionService
    payroll_aggregator: PayrollAggregator
    salary_service: SalaryService
    salary_lifecycle: SalaryLifecycle

    auto_punch_out_job: AutoPunchOutJob
    mark_absent_job: MarkAbsentJob
    salary_generation_job: SalaryGenerationJob


def build_container(
    *,
    db_config: dict,
    policy_cache_ttl_seconds: int = DEFAULT_POLICY_CACHE_TTL_SECONDS,
    job_chunk_size: int = DEFAULT_JOB_CHUNK_SIZE,
    job_max_workers: int = DEFAULT_JOB_MAX_WORKERS,
    notifier: Optional[Notifier] = None,
) -> Container:
    # Three jobs may run at once, each with a full worker pool.
    config = DBConfig.from_mapping(db_config)
    config = replace(config, pool_size=max(config.pool_size, 3 * int(job_max_workers) + 2))
    conn = DatabaseConnection(config)

    companies_repo = MySQLCompanyRepository(conn)
    employees_repo = MySQLEmployeeRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)
    corrections_repo = MySQLCorrectionRepository(conn)
    salaries_repo = MySQLSalaryRepository(conn)
    audit_log = MySQLAuditLog(conn)
    notifier = notifier or LoggingNotifier()
    policy_store = PolicyStore(MySQLPolicyRepository(conn), ttl_seconds=policy_cache_ttl_seconds)

    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        policy_store,
        audit=audit_log,
        notifier=notifier,
        approval_rules=ApprovalRuleFactory(),
    )
    payroll_aggregator = PayrollAggregator(attendance_repo, policy_store)
    salary_service = SalaryService(
        salaries_repo,
        employees_repo,
        companies_repo,
        policy_store,
        payroll_aggregator,
        audit=audit_log,
    )
    salary_lifecycle = SalaryLifecycle(salaries_repo, salary_service, audit=audit_log, notifier=notifier)
    correction_service = CorrectionService(
        corrections_repo,
        attendance_repo,
        employees_repo,
        policy_store,
        audit=audit_log,
        notifier=notifier,
        salaries=salary_service,
    )

    jobs = {"chunk_size": job_chunk_size, "max_workers": job_max_workers}
    auto_punch_out_job = AutoPunchOutJob(
        companies_repo, attendance_repo, policy_store, audit=audit_log, notifier=notifier, **jobs
    )
    mark_absent_job = MarkAbsentJob(
        companies_repo, employees_repo, attendance_repo, policy_store, audit=audit_log, **jobs
    )
    salary_generation_job = SalaryGenerationJob(
        companies_repo, employees_repo, salary_service, notifier=notifier, **jobs
    )

    return Container(
        conn=conn,
        companies_repo=companies_repo,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        corrections_repo=corrections_repo,
        salaries_repo=salaries_repo,
        audit_log=audit_log,
        notifier=notifier,
        policy_store=policy_store,
        attendance_service=attendance_service,
        correction_service=correction_service,
        payroll_aggregator=payroll_aggregator,
        salary_service=salary_service,
        salary_lifecycle=salary_lifecycle,
        auto_punch_out_job=auto_punch_out_job,
        mark_absent_job=mark_absent_job,
        salary_generation_job=salary_generation_job,
    )
