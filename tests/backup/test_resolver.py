"""Tests for table selection."""

from unittest.mock import patch

from dev_tool.backup.resolver import resolve_tables


def test_special_tables_resolve_case_insensitively():
    """Configured names matching a live table take its canonical casing."""
    result = resolve_tables(["User", "Channel"], ["user"])
    assert sorted(result) == ["Channel", "User"]


def test_unknown_special_tables_are_kept():
    """Special names with no live match are included literally."""
    result = resolve_tables(["user"], ["GuildConfig", "guildconfig"])
    assert result == ["user", "GuildConfig"]


def test_empty_inputs():
    assert resolve_tables([], []) == []
    assert resolve_tables([], [], requested=["user"]) == []


def test_requested_subset_filters_unknown():
    """Requested names are matched case-insensitively; misses are warned about and dropped."""
    with patch("dev_tool.backup.resolver.logger") as mock_logger:
        result = resolve_tables(["User", "channel", "message"], requested=["user", "missing", "CHANNEL", "User"])

    assert result == ["User", "channel"]
    mock_logger.warning.assert_called_once()
    assert "missing" in mock_logger.warning.call_args[0][0]


def test_requested_prefers_exact_match():
    """An exact match wins over a case-insensitive one."""
    result = resolve_tables(["Data", "data"], requested=["data"])
    assert result == ["data"]
