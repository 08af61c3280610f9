import json

import ui.log_utils as log_utils
from core.request_types import UploadedFile


def test_sensitive_headers_are_masked():
    redacted = log_utils._redact_headers(
        {
            "x-access-token": "abcdef1234567890",
            "authorization": "short",
            "cookie": "session=abcdefghijkl",
            "accept": "application/json",
        }
    )

    assert redacted == {
        "x-access-token": "abcdef...7890",
        "authorization": "***",
        "cookie": "sessio...ijkl",
        "accept": "application/json",
    }


def test_incoming_log_summarizes_files(isolated_logs):
    files = {"paper": UploadedFile("paper.docx", "application/msword", b"12345")}

    path = log_utils.write_incoming_log("POST", "/admin/formatPaperFile/upload", {}, {"title": "t"}, files=files)

    logged = json.loads(path.read_text())
    assert path.parent == isolated_logs / "incoming"
    assert logged["body"] == {"title": "t"}
    assert logged["files"] == {
        "paper": {"filename": "paper.docx", "content_type": "application/msword", "size": 5}
    }


def test_raw_bodies_are_decoded_or_summarized():
    assert log_utils.summarize_body(b'{"a": 1}') == {"a": 1}
    assert log_utils.summarize_body(b"\xff\xfe") == "<2 bytes>"
    assert log_utils.summarize_body(None) is None


def test_cli_log_appends_lines(isolated_logs):
    log_utils.write_cli_log("FORWARD", "/user/list", method="GET", status=200)

    line = (isolated_logs / "gateway.log").read_text()
    assert "FORWARD: /user/list method=GET status=200" in line


def test_clear_logs_removes_previous_requests(isolated_logs):
    log_utils.write_incoming_log("GET", "/admin/a", {}, None)
    log_utils.write_incoming_log("GET", "/admin/b", {}, None)

    assert log_utils.clear_logs() == 2
    assert list((isolated_logs / "incoming").glob("*.json")) == []
