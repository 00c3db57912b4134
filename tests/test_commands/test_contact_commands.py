"""Tests for ``resend contacts`` and CSV parsing."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from resendcli.commands.contacts import ContactRow, parse_contacts_csv
from resendcli.exceptions import InvalidUsageError, ResendCliError


class TestParseContactsCsv:
    def test_basic(self) -> None:
        parsed = parse_contacts_csv(
            "email,first_name,last_name\n"
            "ada@example.com,Ada,Lovelace\n"
            "alan@example.com,,\n"
        )
        assert parsed.contacts == [
            ContactRow(email="ada@example.com", first_name="Ada", last_name="Lovelace"),
            ContactRow(email="alan@example.com"),
        ]
        assert parsed.skipped == 0

    def test_header_case_and_aliases(self) -> None:
        parsed = parse_contacts_csv("Company, EMAIL ,FirstName,LastName\nAcme,g@example.com,Grace,Hopper\n")
        assert parsed.contacts == [
            ContactRow(email="g@example.com", first_name="Grace", last_name="Hopper")
        ]

    def test_quoted_fields(self) -> None:
        parsed = parse_contacts_csv('email,first_name\nq@example.com,"Smith, Jr."\n')
        assert parsed.contacts[0].first_name == "Smith, Jr."

    def test_invalid_and_blank_rows(self) -> None:
        parsed = parse_contacts_csv(
            "email\n"
            "ok@example.com\n"
            "\n"
            "not-an-email\n"
            ",\n"
            "also@example.com\n"
        )
        assert [c.email for c in parsed.contacts] == ["ok@example.com", "also@example.com"]
        assert parsed.skipped == 1

    def test_short_row_counts_as_skipped(self) -> None:
        parsed = parse_contacts_csv("first_name,email\nBob\n")
        assert parsed.contacts == []
        assert parsed.skipped == 1

    def test_missing_email_column(self) -> None:
        with pytest.raises(InvalidUsageError, match='must have an "email" column'):
            parse_contacts_csv("name\nBob\n")

    def test_empty(self) -> None:
        parsed = parse_contacts_csv("")
        assert parsed.contacts == []
        assert parsed.skipped == 0


class TestContactCommands:
    def test_create_keeps_audience_out_of_body(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"object": "contact", "id": "c_1"})

        result = invoke(
            "contacts", "create", "aud_1", "--email", "ada@example.com", "--first-name", "Ada"
        )

        assert result.exit_code == 0, result.output
        assert mock_api.last.url.path == "/audiences/aud_1/contacts"
        assert mock_api.last_json() == {"email": "ada@example.com", "first_name": "Ada"}

    def test_create_rejects_bad_email(self, invoke, mock_api) -> None:
        result = invoke("contacts", "create", "aud_1", "-e", "nope")

        assert isinstance(result.exception, InvalidUsageError)
        assert mock_api.requests == []

    def test_list(self, invoke, mock_api) -> None:
        mock_api.queue(
            200,
            {"data": [{"id": "c_1", "email": "ada@example.com", "unsubscribed": False}]},
        )

        result = invoke("contacts", "list", "aud_1")

        assert result.exit_code == 0, result.output
        assert "c_1\tada@example.com\t-\t-\tno" in result.output

    def test_update_unsubscribe(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"object": "contact", "id": "c_1"})

        result = invoke("contacts", "update", "aud_1", "c_1", "--unsubscribe")

        assert result.exit_code == 0, result.output
        assert mock_api.last.method == "PATCH"
        assert mock_api.last.url.path == "/audiences/aud_1/contacts/c_1"
        assert mock_api.last_json() == {"unsubscribed": True}

    def test_update_needs_an_option(self, invoke, mock_api) -> None:
        result = invoke("contacts", "update", "aud_1", "c_1")

        assert isinstance(result.exception, InvalidUsageError)
        assert mock_api.requests == []

    def test_delete_by_email_is_escaped(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"object": "contact", "id": "c_1", "deleted": True})

        result = invoke("contacts", "delete", "aud_1", "a/b@example.com", "--force")

        assert result.exit_code == 0, result.output
        assert mock_api.last.method == "DELETE"
        assert mock_api.last.url.raw_path.decode().endswith("/contacts/a%2Fb%40example.com")


class TestImport:
    def _csv(self, tmp_path: Path, content: str) -> Path:
        path = tmp_path / "contacts.csv"
        path.write_text(content, encoding="utf-8")
        return path

    def test_imports_each_row_in_order(self, invoke, mock_api, tmp_path: Path) -> None:
        path = self._csv(tmp_path, "email,first_name\na@example.com,A\nb@example.com,B\n")
        mock_api.queue(200, {"object": "contact", "id": "c_1"})
        mock_api.queue(200, {"object": "contact", "id": "c_2"})

        result = invoke("contacts", "import", "aud_1", str(path))

        assert result.exit_code == 0, result.output
        sent = [json.loads(r.content) for r in mock_api.requests]
        assert sent == [
            {"email": "a@example.com", "first_name": "A"},
            {"email": "b@example.com", "first_name": "B"},
        ]
        assert "Imported 2 of 2 contact(s)." in result.output

    def test_failed_row_recorded_and_import_continues(
        self, invoke, mock_api, tmp_path: Path
    ) -> None:
        path = self._csv(tmp_path, "email\na@example.com\nb@example.com\nc@example.com\n")

        def handler(request: httpx.Request) -> httpx.Response:
            if json.loads(request.content)["email"] == "b@example.com":
                return httpx.Response(422, json={"message": "Contact already exists"})
            return httpx.Response(200, json={"object": "contact", "id": "c"})

        mock_api.handler = handler

        result = invoke("--json", "-q", "contacts", "import", "aud_1", str(path))

        assert len(mock_api.requests) == 3
        assert json.loads(result.stdout) == {
            "imported": 2,
            "failed": 1,
            "skipped": 0,
            "errors": [
                {"email": "b@example.com", "error": "Contact already exists", "status": 422}
            ],
        }
        assert isinstance(result.exception, ResendCliError)
        assert result.exception.message == "1 of 3 contact(s) failed to import"

    def test_failures_listed_as_warnings(self, invoke, mock_api, tmp_path: Path) -> None:
        path = self._csv(tmp_path, "email\na@example.com\n")
        mock_api.queue(400, {"message": "Bad contact"})

        result = invoke("contacts", "import", "aud_1", str(path))

        assert "Imported 0 of 1 contact(s)." in result.output
        assert "Warning: a@example.com: Bad contact" in result.output
        assert isinstance(result.exception, ResendCliError)

    def test_skipped_rows_warned(self, invoke, mock_api, tmp_path: Path) -> None:
        path = self._csv(tmp_path, "email\nbad\na@example.com\n")
        mock_api.queue(200, {"object": "contact", "id": "c_1"})

        result = invoke("contacts", "import", "aud_1", str(path))

        assert result.exit_code == 0, result.output
        assert "Warning: Skipped 1 row(s) without a valid email." in result.output

    def test_no_valid_rows(self, invoke, mock_api, tmp_path: Path) -> None:
        path = self._csv(tmp_path, "email\nbad\n")

        result = invoke("contacts", "import", "aud_1", str(path))

        assert isinstance(result.exception, InvalidUsageError)
        assert result.exception.message == "No valid contacts found in CSV file"
        assert mock_api.requests == []

    def test_missing_file(self, invoke, mock_api, tmp_path: Path) -> None:
        result = invoke("contacts", "import", "aud_1", str(tmp_path / "nope.csv"))

        assert isinstance(result.exception, InvalidUsageError)
        assert result.exception.message.startswith("CSV file not found")
