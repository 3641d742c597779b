"""
Tests for the smoke runner's pure helpers.
"""
from __future__ import annotations

from app.domain.requests import CheckCreateRequest, parse_phone, parse_request
from runner.types import StepResult
from runner.utils import random_phone, sample_check, summarize


def test_random_phone_is_accepted_by_the_api():
    assert parse_phone(random_phone())


def test_sample_checks_are_valid_payloads():
    for i in range(6):
        parse_request(CheckCreateRequest, sample_check(i), max_timeout_seconds=5)


def test_summarize():
    summary, code = summarize([StepResult("signup", True, 200), StepResult("login", False, 500, "x")])
    assert code == 1
    assert summary["passed"] == 1
    assert summary["failures"] == [{"step": "login", "status_code": 500, "detail": "x"}]

    assert summarize([StepResult("signup", True, 200)])[1] == 0
    assert summarize([])[1] == 1


def test_summarize_reports_leftover_checks():
    steps = [StepResult("cleanup", True, 200)]

    summary, code = summarize(steps, leftover_checks=["c1", "c2"])
    assert code == 0
    assert summary["leftover_checks"] == ["c1", "c2"]
    assert "tools.reconcile --apply" in summary["hint"]

    assert "leftover_checks" not in summarize(steps)[0]
