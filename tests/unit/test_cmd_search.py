"""Unit tests for the search command."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from click.testing import CliRunner, Result

from chat_archive.cli import cli


def _invoke(config: Path, *args: str) -> Result:
    runner = CliRunner()
    return runner.invoke(cli, ["--config", str(config), "-q", "--no-pager", *args])


def _search_json(config: Path, *args: str) -> dict[str, Any]:
    result = _invoke(config, "search", "--format", "json", *args)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def _ids(data: dict[str, Any]) -> list[int]:
    return [m["id"] for m in data["messages"]]


class TestSearchJson:
    def test_text_search(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "dinner")
        assert _ids(data) == [3, 2, 1]
        assert data["total_count"] == 3
        assert data["diagnostics"] == []

    def test_query_words_joined(self, archive_config: Path) -> None:
        assert _ids(_search_json(archive_config, "book", "club")) == [8]

    def test_directives_in_query(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "FROM:4155550100 AFTER:2024-03-01")
        assert _ids(data) == [7]

    def test_sender_names_from_contacts(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "FROM:+14155550100")
        assert {m["sender"] for m in data["messages"]} == {"Jane Doe"}

    def test_from_and_email_options(self, archive_config: Path) -> None:
        data = _search_json(
            archive_config, "--from", "+44 20 7123 4567", "--email", "ALICE@example.com"
        )
        assert _ids(data) == [6, 5, 4]
        assert data["messages"][0]["sender"] == "Acme Corp"
        assert data["messages"][1]["sender"] == "Alice Liddell"

    def test_date_options(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "--after", "2024-02-01", "--before", "2024-03-05")
        assert _ids(data) == [7, 6, 5, 4]

    def test_flags(self, archive_config: Path) -> None:
        assert _ids(_search_json(archive_config, "--mine")) == [8, 3]
        assert _ids(_search_json(archive_config, "--with-attachments")) == [5, 4]
        assert _ids(_search_json(archive_config, "--kind", "group")) == [8, 7, 6]

    def test_conversation_option(self, archive_config: Path) -> None:
        assert _ids(_search_json(archive_config, "--conversation", "2")) == [5, 4]

    def test_sort_and_limit(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "--sort", "asc", "--limit", "2")
        assert _ids(data) == [1, 2]

    def test_config_defaults_apply(self, archive_config: Path) -> None:
        with archive_config.open("a") as f:
            f.write('\n[search]\nlimit = 3\ndefault_sort = "asc"\n')
        assert _ids(_search_json(archive_config)) == [1, 2, 3]

    def test_message_fields(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "--conversation", "2", "--sort", "asc")
        first, second = data["messages"]
        assert first == {
            "id": 4,
            "text": "Photos from the trip",
            "date": 1706788800,
            "is_from_me": False,
            "conversation_id": "2",
            "sender": "Alice Liddell",
            "attachment": "IMG_0001.jpeg",
        }
        assert second["text"] == "[Attachment or empty message]"

    def test_invalid_date_reported(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "AFTER:soon dinner")
        assert _ids(data) == [3, 2, 1]
        assert [d["code"] for d in data["diagnostics"]] == ["invalid-date"]
        assert data["diagnostics"][0]["value"] == "soon"

    def test_invalid_conversation_matches_nothing(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "CONVERSATION:abc")
        assert data["messages"] == []
        assert [d["code"] for d in data["diagnostics"]] == ["invalid-conversation"]

    def test_no_results(self, archive_config: Path) -> None:
        data = _search_json(archive_config, "zebra")
        assert data == {"messages": [], "total_count": 0, "diagnostics": []}


class TestSearchExitCodes:
    def test_limit_below_one(self, archive_config: Path) -> None:
        result = _invoke(archive_config, "search", "--limit", "0", "hi")
        assert result.exit_code == 1

    def test_missing_database(self, archive_config: Path, temp_dir: Path) -> None:
        result = _invoke(archive_config, "--db", str(temp_dir / "missing.db"), "search", "hi")
        assert result.exit_code == 3

    def test_fail_closed_needs_no_database(self, archive_config: Path, temp_dir: Path) -> None:
        result = _invoke(
            archive_config, "--db", str(temp_dir / "missing.db"), "search", "CONVERSATION:x"
        )
        assert result.exit_code == 0

    def test_unreadable_database(self, archive_config: Path, temp_dir: Path) -> None:
        broken = temp_dir / "broken.db"
        broken.write_bytes(b"this is not a database" * 100)
        result = _invoke(archive_config, "--db", str(broken), "search", "hi")
        assert result.exit_code == 2

    def test_wrong_schema(self, archive_config: Path, sample_contacts_db: Path) -> None:
        result = _invoke(archive_config, "--db", str(sample_contacts_db), "search", "hi")
        assert result.exit_code == 2

    def test_invalid_config(self, temp_dir: Path) -> None:
        config_path = temp_dir / "broken.toml"
        config_path.write_text("[search\n")
        result = _invoke(config_path, "search", "hi")
        assert result.exit_code == 1

    def test_broken_contacts_only_lose_names(
        self, archive_config: Path, sample_chat_db: Path
    ) -> None:
        result = _invoke(
            archive_config,
            "--contacts-db",
            str(sample_chat_db),
            "search",
            "--format",
            "json",
            "FROM:4155550100",
        )
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert {m["sender"] for m in data["messages"]} == {"(415) 555-0100"}


class TestSearchTable:
    def test_table_output(self, archive_config: Path) -> None:
        result = _invoke(archive_config, "search", "--conversation", "3")
        assert result.exit_code == 0
        assert "See you at book club" in result.output
        assert "Jane Doe" in result.output
        assert "me" in result.output

    def test_no_results_exit_zero(self, archive_config: Path) -> None:
        result = _invoke(archive_config, "search", "zebra")
        assert result.exit_code == 0
        assert "Date" not in result.output
