from __future__ import annotations

import subprocess
import sys
from pathlib import Path


SCRIPT_PATH = Path(__file__).resolve().parents[1] / "scripts" / "bootstrap_admin.py"


def _run_script(*args: str) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        [sys.executable, str(SCRIPT_PATH), *args],
        check=False,
        capture_output=True,
        text=True,
    )


def test_bootstrap_script_defaults_to_admin_for_user_id_target() -> None:
    user_id = "00000000-0000-0000-0000-000000000123"
    output = _run_script("--user-id", user_id).stdout

    assert "update public.users" in output
    assert "set role = 'admin', updated_at = now()" in output
    assert f"where id = '{user_id}'::uuid;" in output


def test_bootstrap_script_sets_tier_for_email_target() -> None:
    output = _run_script("--email", "meera@example.in", "--tier", "premium").stdout

    assert "set subscription_status = 'premium', updated_at = now()" in output
    assert "role =" not in output
    assert "where email = 'meera@example.in';" in output


def test_bootstrap_script_quotes_values() -> None:
    output = _run_script("--email", "o'brien@example.in", "--role", "tailor").stdout

    assert "where email = 'o''brien@example.in';" in output


def test_bootstrap_script_rejects_unknown_role() -> None:
    completed = _run_script("--email", "meera@example.in", "--role", "moderator")

    assert completed.returncode != 0
    assert "invalid choice" in completed.stderr
