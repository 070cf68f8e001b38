from __future__ import annotations

from types import SimpleNamespace

import pytest
from flask import Flask

from src.attendance_payroll.attendance_payroll.core.exceptions import PolicyNotConfigured
from src.attendance_payroll.attendance_payroll.jobs.base import BatchResult
from src.attendance_payroll.attendance_payroll.jobs.controller import register
from src.attendance_payroll.attendance_payroll.main import register_error_handlers

TOKEN = "test-cron-token"


class StubJob:
    def __init__(self):
        self.calls = []

    def run(self, *args):
        self.calls.append(args)
        return BatchResult(processed=3, errors=["company 2: boom"])


@pytest.fixture()
def jobs():
    return SimpleNamespace(
        auto_punch_out_job=StubJob(),
        mark_absent_job=StubJob(),
        salary_generation_job=StubJob(),
    )


@pytest.fixture()
def client(jobs):
    app = Flask(__name__)
    app.config["CRON_TOKEN"] = TOKEN
    register_error_handlers(app)
    register(app, jobs)
    return app.test_client()


def test_cron_requires_token(client, jobs):
    resp = client.post("/api/cron/auto-punch-out")

    assert resp.status_code == 401
    assert jobs.auto_punch_out_job.calls == []


def test_cron_rejects_wrong_token(client):
    resp = client.post("/api/cron/mark-absent", headers={"X-Cron-Token": "nope"})

    assert resp.status_code == 401


def test_cron_runs_job_and_reports_counts(client, jobs):
    resp = client.post("/api/cron/mark-absent", headers={"Authorization": f"Bearer {TOKEN}"})

    assert resp.status_code == 200
    assert resp.get_json() == {"processed": 3, "errors": ["company 2: boom"]}
    assert jobs.mark_absent_job.calls == [()]


def test_salary_generate_passes_period(client, jobs):
    resp = client.post("/api/cron/salary-generate", headers={"X-Cron-Token": TOKEN}, json={"month": 4, "year": 2025})

    assert resp.status_code == 200
    assert jobs.salary_generation_job.calls == [(4, 2025)]


def test_salary_generate_rejects_half_a_period(client):
    resp = client.post("/api/cron/salary-generate", headers={"X-Cron-Token": TOKEN}, json={"month": 4})

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "ValidationError"


def test_salary_generate_rejects_bad_month(client):
    resp = client.post("/api/cron/salary-generate", headers={"X-Cron-Token": TOKEN}, json={"month": 13, "year": 2025})

    assert resp.status_code == 400


def test_empty_token_disables_cron():
    app = Flask(__name__)
    app.config["CRON_TOKEN"] = ""
    register(app, SimpleNamespace(auto_punch_out_job=StubJob(), mark_absent_job=StubJob(), salary_generation_job=StubJob()))

    resp = app.test_client().post("/api/cron/auto-punch-out", headers={"X-Cron-Token": ""})

    assert resp.status_code == 401


def test_domain_error_from_a_job_becomes_a_typed_failure(client, jobs):
    def refuse(*args):
        raise PolicyNotConfigured("No attendance policy for company 3")

    jobs.mark_absent_job.run = refuse

    resp = client.post("/api/cron/mark-absent", headers={"X-Cron-Token": TOKEN})

    assert resp.status_code == 422
    assert resp.get_json() == {"ok": False, "error": "No attendance policy for company 3", "code": "PolicyNotConfigured"}


def test_salary_generate_without_period_uses_job_default(client, jobs):
    resp = client.post("/api/cron/salary-generate", headers={"X-Cron-Token": TOKEN})

    assert resp.status_code == 200
    assert jobs.salary_generation_job.calls == [()]
