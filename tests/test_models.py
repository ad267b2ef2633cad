import pytest
from pydantic import ValidationError

from fileflow.models import (
    LANGUAGE_OPTIONS,
    Attachment,
    FilesTransferRequest,
    GatewayResult,
    get_language,
    is_plain_text,
    language_extension,
    language_label,
)


def test_attachment_from_bytes():
    att = Attachment.from_bytes("a.png", b"1234", "image/png")
    assert att.original_size == 4
    assert att.compressed_size is None
    assert att.final_size == 4
    assert att.is_image is True
    assert "raw_bytes" not in repr(att)


def test_attachment_is_frozen():
    att = Attachment.from_bytes("a.txt", b"x")
    with pytest.raises(ValidationError):
        att.filename = "b.txt"


def test_attachment_requires_filename():
    with pytest.raises(ValidationError):
        Attachment.from_bytes("", b"x")


def test_files_request_needs_recipients_and_attachments():
    with pytest.raises(ValidationError):
        FilesTransferRequest(recipients=[], attachments=[Attachment.from_bytes("a", b"a")])
    with pytest.raises(ValidationError):
        FilesTransferRequest(recipients=["a@b.com"], attachments=[])


def test_gateway_result_alias():
    result = GatewayResult.model_validate({"success": True, "message": "ok", "compressionRatio": 42})
    assert result.compression_ratio == 42
    assert result.model_dump(by_alias=True)["compressionRatio"] == 42


def test_language_table():
    values = [option.value for option in LANGUAGE_OPTIONS]
    assert values[0] == "plaintext"
    assert len(values) == len(set(values)) == 16
    assert get_language("csharp").extension == "cs"
    assert get_language("cobol") is None


def test_language_helpers():
    assert language_extension("shell") == "sh"
    assert language_extension("unknown") == "txt"
    assert language_label("cpp") == "C++"
    assert language_label("unknown") == "unknown"
    assert is_plain_text("plaintext") and is_plain_text("text")
    assert not is_plain_text("python")
