import pytest

from stackpilot.errors_catalog import actionable_error


def test_actionable_error_formats_message_with_suggested_action():
    message = actionable_error("runtime_timeout", seconds="300")

    assert "Timeout waiting for Docker after 300 seconds." in message
    assert "Suggested action:" in message


def test_actionable_error_rejects_unknown_key():
    with pytest.raises(KeyError):
        actionable_error("no_such_error")
