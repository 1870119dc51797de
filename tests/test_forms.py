from __future__ import annotations

from datetime import datetime, timezone

import pytest

from tailorboard.core.errors import ValidationError
from tailorboard.core.forms import (
    JobDraft,
    validate_job_draft,
    validate_login,
    validate_proposed_budget,
    validate_signup,
)

NOW = datetime(2026, 5, 1, tzinfo=timezone.utc)


def _draft(**overrides: object) -> JobDraft:
    values: dict[str, object] = {
        "title": " Blouse batch ",
        "description": "Forty blouses, boat neck",
        "budget_min": "12000",
        "budget_max": 20000,
        "location": " Jaipur ",
        "deadline": "2026-06-15",
        "job_type": "part_time",
    }
    values.update(overrides)
    return JobDraft(**values)


def test_valid_draft_becomes_create_payload() -> None:
    payload = validate_job_draft(_draft(), posted_by="user-1", now=NOW)

    assert payload.title == "Blouse batch"
    assert (payload.budget_min, payload.budget_max) == (12000, 20000)
    assert payload.location == "Jaipur"
    assert payload.deadline == datetime(2026, 6, 15, tzinfo=timezone.utc)
    assert payload.boutique_id == "user-1"
    assert payload.status == "open"


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"title": "  "}, "Job title is required"),
        ({"description": ""}, "Job description is required"),
        ({"budget_max": ""}, "Budget range is required"),
        ({"budget_min": "12k"}, "Budget must be a whole number"),
        ({"budget_min": "-1"}, "Budget cannot be negative"),
        ({"budget_min": "30000"}, "Minimum budget cannot be greater than maximum budget"),
        ({"location": ""}, "Location is required"),
        ({"deadline": ""}, "Application deadline is required"),
        ({"deadline": "next week"}, "Application deadline must be a valid date"),
        ({"deadline": "2026-04-01"}, "Application deadline must be in the future"),
        ({"job_type": "gig"}, "Job type must be one of"),
    ],
)
def test_invalid_drafts_are_rejected(overrides: dict[str, object], message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        validate_job_draft(_draft(**overrides), posted_by="user-1", now=NOW)


def test_equal_budget_bounds_are_allowed() -> None:
    payload = validate_job_draft(_draft(budget_min="20000"), posted_by="user-1", now=NOW)
    assert payload.budget_min == payload.budget_max == 20000


def test_login_and_signup_checks() -> None:
    validate_login("meera@example.in", "secret123")
    validate_signup("meera@example.in", "secret123", "secret123")

    with pytest.raises(ValidationError, match="Please fill in all fields"):
        validate_login(" ", "secret123")
    with pytest.raises(ValidationError, match="Passwords do not match"):
        validate_signup("meera@example.in", "secret123", "secret321")
    with pytest.raises(ValidationError, match="at least 6 characters"):
        validate_signup("meera@example.in", "abc", "abc")


def test_proposed_budget_is_optional_but_never_negative() -> None:
    assert validate_proposed_budget(None) is None
    assert validate_proposed_budget("") is None
    assert validate_proposed_budget(" 18000 ") == 18000
    with pytest.raises(ValidationError, match="Budget cannot be negative"):
        validate_proposed_budget(-5)
    with pytest.raises(ValidationError, match="whole number"):
        validate_proposed_budget("about 5k")
