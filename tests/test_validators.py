from __future__ import annotations

import pytest

from learnapi.domain.validators import is_valid_email, is_valid_name, normalize_email


@pytest.mark.parametrize("value", ["newemail@example.com", "jane.doe+tag@school.org"])
def test_valid_emails(value):
    assert is_valid_email(value)


@pytest.mark.parametrize("value", ["", None, "invalidemail", "a@b", "two@@example.com", "with space@example.com", 42])
def test_invalid_emails(value):
    assert not is_valid_email(value)


def test_normalize_email():
    assert normalize_email("  Jane@Example.COM ") == "jane@example.com"


@pytest.mark.parametrize("value", ["Jane", "newFirstName", "María José", "O'Neil", "Jean-Luc"])
def test_valid_names(value):
    assert is_valid_name(value)


@pytest.mark.parametrize("value", ['AASD!==#¤("DSN:_;>:', "", "   ", "R2D2", "x" * 51, None])
def test_invalid_names(value):
    assert not is_valid_name(value)
