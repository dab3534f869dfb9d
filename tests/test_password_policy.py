"""
Password policy tests.
"""
from __future__ import annotations

import pytest

from app.core.security import password_policy_violations, validate_password_strength


def test_strong_password_passes() -> None:
    assert validate_password_strength("StridePass1") == "StridePass1"
    assert password_policy_violations("StridePass1") == []


def test_every_broken_rule_is_reported_in_order() -> None:
    assert password_policy_violations("abc") == [
        "at least 8 characters",
        "one uppercase letter",
        "one number",
    ]


def test_missing_lowercase() -> None:
    assert password_policy_violations("ALLUPPER123") == ["one lowercase letter"]


def test_error_names_missing_rules() -> None:
    with pytest.raises(ValueError, match="Password must contain one number"):
        validate_password_strength("NoDigitsHere")
