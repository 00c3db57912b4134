"""Tests for ``resend emails``."""

from __future__ import annotations

import base64
import json
from pathlib import Path

from resendcli.exceptions import APIError, InvalidUsageError

FUTURE = "2999-01-01T00:00:00Z"

SEND_ARGS = [
    "emails", "send",
    "--from", "me@example.com",
    "--to", "you@example.com",
    "--subject", "Hi",
    "--text", "Hello",
]


class TestSend:
    def test_sends_wire_body(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"id": "em_1"})

        result = invoke(*SEND_ARGS)

        assert result.exit_code == 0, result.output
        request = mock_api.last
        assert request.method == "POST"
        assert request.url.path == "/emails"
        assert mock_api.last_json() == {
            "from": "me@example.com",
            "to": ["you@example.com"],
            "subject": "Hi",
            "text": "Hello",
        }
        assert "Email sent." in result.output
        assert "id\tem_1" in result.output

    def test_json_output(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"id": "em_1"})

        result = invoke("--json", "-q", *SEND_ARGS)

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"id": "em_1"}

    def test_all_options(self, invoke, mock_api, tmp_path: Path) -> None:
        html_file = tmp_path / "body.html"
        html_file.write_text("<p>Hi</p>", encoding="utf-8")
        attachment = tmp_path / "report.txt"
        attachment.write_bytes(b"report")
        mock_api.queue(200, {"id": "em_2"})

        result = invoke(
            "emails", "send",
            "--from", "me@example.com",
            "--to", "a@example.com", "--to", "b@example.com",
            "-s", "Report",
            "--html-file", str(html_file),
            "--cc", "c@example.com",
            "--bcc", "d@example.com",
            "--reply-to", "e@example.com",
            "--tag", "campaign:spring",
            "--attachment", str(attachment),
            "--scheduled-at", FUTURE,
        )

        assert result.exit_code == 0, result.output
        body = mock_api.last_json()
        assert body["to"] == ["a@example.com", "b@example.com"]
        assert body["html"] == "<p>Hi</p>"
        assert body["cc"] == ["c@example.com"]
        assert body["bcc"] == ["d@example.com"]
        assert body["reply_to"] == ["e@example.com"]
        assert body["tags"] == [{"name": "campaign", "value": "spring"}]
        assert body["attachments"] == [
            {"filename": "report.txt", "content": base64.b64encode(b"report").decode()}
        ]
        assert body["scheduled_at"] == FUTURE
        assert f"Email scheduled for {FUTURE}." in result.output

    def test_default_from_used(self, invoke, mock_api, monkeypatch) -> None:
        monkeypatch.setenv("RESEND_DEFAULT_FROM", "team@example.com")
        mock_api.queue(200, {"id": "em_1"})

        result = invoke("emails", "send", "--to", "you@example.com", "-s", "Hi", "--text", "x")

        assert result.exit_code == 0, result.output
        assert mock_api.last_json()["from"] == "team@example.com"

    def test_all_validation_errors_reported_together(self, invoke, mock_api) -> None:
        result = invoke("emails", "send", "--to", "nope", "--cc", "bad", "--tag", "x")

        assert isinstance(result.exception, InvalidUsageError)
        assert result.exception.exit_code == 2
        message = result.exception.message
        assert message.startswith("Validation errors:")
        assert "Sender email (--from) is required" in message
        assert "Invalid recipient email(s): nope" in message
        assert "Subject (--subject) is required" in message
        assert "Either --text or --html/--html-file is required" in message
        assert "Invalid CC email(s): bad" in message
        assert "Invalid tag 'x': expected name:value" in message
        assert mock_api.requests == []

    def test_past_schedule_rejected(self, invoke, mock_api) -> None:
        result = invoke(*SEND_ARGS, "--scheduled-at", "2000-01-01T00:00:00Z")

        assert isinstance(result.exception, InvalidUsageError)
        assert result.exception.message == "Scheduled time must be in the future"

    def test_missing_html_file(self, invoke, mock_api, tmp_path: Path) -> None:
        missing = tmp_path / "missing.html"
        result = invoke(*SEND_ARGS, "--html-file", str(missing))

        assert isinstance(result.exception, InvalidUsageError)
        assert result.exception.message == f"HTML file not found: {missing}"

    def test_api_error_propagates(self, invoke, mock_api) -> None:
        mock_api.queue(422, {"message": "Invalid `to` field"})

        result = invoke(*SEND_ARGS)

        assert isinstance(result.exception, APIError)
        assert result.exception.message == "Invalid `to` field"
        assert result.exception.status_code == 422
        assert len(mock_api.requests) == 1

    def test_server_error_retried(self, invoke, mock_api) -> None:
        mock_api.queue(503, {})
        mock_api.queue(200, {"id": "em_1"})

        result = invoke(*SEND_ARGS)

        assert result.exit_code == 0, result.output
        assert len(mock_api.requests) == 2


class TestSendBatch:
    def _write(self, tmp_path: Path, data: object) -> Path:
        path = tmp_path / "batch.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_sends_array(self, invoke, mock_api, tmp_path: Path) -> None:
        entry = {"from": "me@example.com", "to": "you@example.com", "subject": "Hi", "text": "x"}
        path = self._write(tmp_path, [entry, {**entry, "to": ["them@example.com"]}])
        mock_api.queue(200, {"data": [{"id": "a"}, {"id": "b"}]})

        result = invoke("emails", "send-batch", str(path))

        assert result.exit_code == 0, result.output
        assert mock_api.last.url.path == "/emails/batch"
        body = mock_api.last_json()
        assert isinstance(body, list)
        assert [item["to"] for item in body] == ["you@example.com", ["them@example.com"]]
        assert "Batch of 2 emails sent." in result.output

    def test_invalid_json(self, invoke, mock_api, tmp_path: Path) -> None:
        path = tmp_path / "batch.json"
        path.write_text("[{", encoding="utf-8")

        result = invoke("emails", "send-batch", str(path))

        assert isinstance(result.exception, InvalidUsageError)
        assert "Invalid JSON format" in result.exception.message

    def test_entry_errors(self, invoke, mock_api, tmp_path: Path) -> None:
        path = self._write(tmp_path, [{"from": "me@example.com", "to": "x", "subject": "Hi"}])

        result = invoke("emails", "send-batch", str(path))

        assert isinstance(result.exception, InvalidUsageError)
        assert "Email 1: Invalid recipient email(s): x" in result.exception.message
        assert "Email 1: Must have either text or html content" in result.exception.message
        assert mock_api.requests == []

    def test_too_many(self, invoke, mock_api, tmp_path: Path) -> None:
        entry = {"from": "me@example.com", "to": "you@example.com", "subject": "Hi", "text": "x"}
        path = self._write(tmp_path, [entry] * 101)

        result = invoke("emails", "send-batch", str(path))

        assert isinstance(result.exception, InvalidUsageError)
        assert mock_api.requests == []


class TestGetAndList:
    def test_get(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"id": "em_1", "from": "me@example.com", "to": ["a@b.co"]})

        result = invoke("--json", "-q", "emails", "get", "em_1")

        assert result.exit_code == 0, result.output
        assert mock_api.last.url.path == "/emails/em_1"
        assert json.loads(result.stdout)["from"] == "me@example.com"

    def test_list_table(self, invoke, mock_api) -> None:
        mock_api.queue(
            200,
            {
                "object": "list",
                "has_more": True,
                "next_cursor": "cur_2",
                "data": [
                    {
                        "id": "em_1",
                        "to": ["a@b.co"],
                        "subject": "Hi",
                        "last_event": "delivered",
                        "created_at": "2024-01-01",
                    }
                ],
            },
        )

        result = invoke("emails", "list")

        assert result.exit_code == 0, result.output
        assert mock_api.last.url.params["limit"] == "20"
        assert "cursor" not in mock_api.last.url.params
        assert "ID\tTo\tSubject\tStatus\tCreated" in result.output
        assert "em_1\ta@b.co\tHi\tdelivered\t2024-01-01" in result.output
        assert "→ More results available." in result.output
        assert "→ Next page: resend emails list --cursor cur_2" in result.output

    def test_list_json_is_raw_page(self, invoke, mock_api) -> None:
        page = {"object": "list", "data": [{"id": "em_1", "to": []}], "has_more": False}
        mock_api.queue(200, page)

        result = invoke("--json", "-q", "emails", "list", "--limit", "5", "--cursor", "c1")

        assert result.exit_code == 0, result.output
        assert mock_api.last.url.params["limit"] == "5"
        assert mock_api.last.url.params["cursor"] == "c1"
        assert json.loads(result.stdout)["data"][0]["id"] == "em_1"

    def test_list_empty(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"object": "list", "data": []})

        result = invoke("emails", "list")

        assert result.exit_code == 0, result.output
        assert "No emails found." in result.output

    def test_limit_out_of_range(self, invoke, mock_api) -> None:
        result = invoke("emails", "list", "--limit", "101")

        assert isinstance(result.exception, InvalidUsageError)
        assert result.exception.message == "Limit must be between 1 and 100"
        assert mock_api.requests == []


class TestUpdateAndCancel:
    def test_update(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"object": "email", "id": "em_1"})

        result = invoke("emails", "update", "em_1", "--scheduled-at", FUTURE)

        assert result.exit_code == 0, result.output
        assert mock_api.last.method == "PATCH"
        assert mock_api.last_json() == {"scheduled_at": FUTURE}

    def test_cancel_declined(self, invoke, mock_api) -> None:
        result = invoke("emails", "cancel", "em_1", input="n\n")

        assert result.exit_code == 0, result.output
        assert "Cancel scheduled email em_1?" in result.output
        assert "Cancelled." in result.output
        assert mock_api.requests == []

    def test_cancel_confirmed(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"object": "email", "id": "em_1"})

        result = invoke("emails", "cancel", "em_1", input="y\n")

        assert result.exit_code == 0, result.output
        assert mock_api.last.method == "POST"
        assert mock_api.last.url.path == "/emails/em_1/cancel"
        assert "Email em_1 cancelled." in result.output

    def test_cancel_root_force_skips_prompt(self, invoke, mock_api) -> None:
        mock_api.queue(200, {"object": "email", "id": "em_1"})

        result = invoke("-f", "emails", "cancel", "em_1")

        assert result.exit_code == 0, result.output
        assert "Cancel scheduled email" not in result.output
        assert len(mock_api.requests) == 1
