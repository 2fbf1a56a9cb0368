import pytest

from pgprovision.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error(
        "weak_password",
        label="PostgreSQL",
        min_length="8",
        option="--postgres-password",
    )

    assert "PostgreSQL password must be at least 8 characters long." in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_code():
    with pytest.raises(KeyError):
        actionable_error("does_not_exist")
