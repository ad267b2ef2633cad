import asyncio
import gzip

import pytest

from fileflow.errors import TransportError
from fileflow.models import Attachment, GatewayResult
from fileflow.recipients import AddOutcome
from fileflow.submission import FileSubmission, TextSubmission

MIB = 1024 * 1024


class FakeGateway:
    def __init__(self, result=None, error=None):
        self.result = result or GatewayResult(success=True, message="ok")
        self.error = error
        self.files_requests = []
        self.text_requests = []

    async def send_files(self, request):
        self.files_requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result

    async def send_text(self, request):
        self.text_requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


class BlockingGateway(FakeGateway):
    def __init__(self):
        super().__init__()
        self.release = asyncio.Event()

    async def send_files(self, request):
        self.files_requests.append(request)
        await self.release.wait()
        return self.result


def _file(name="a.txt", data=b"hello", mime="text/plain"):
    return Attachment.from_bytes(name, data, mime)


def test_oversized_file_rejected_at_intake():
    gateway = FakeGateway()
    submission = FileSubmission(gateway)
    big = Attachment(filename="movie.mp4", mime_type="video/mp4", raw_bytes=b"x", original_size=25 * MIB)

    added = submission.add_files([big, _file()])

    assert [att.filename for att in added] == ["a.txt"]
    assert [att.filename for att in submission.attachments] == ["a.txt"]
    notice = submission.notices[-1]
    assert notice.is_error
    assert notice.title == "File too large"
    assert "movie.mp4 exceeds the 20MB limit" in notice.description


@pytest.mark.asyncio
async def test_oversized_file_never_submitted():
    gateway = FakeGateway()
    submission = FileSubmission(gateway)
    submission.add_files(
        [Attachment(filename="movie.mp4", mime_type="video/mp4", raw_bytes=b"x", original_size=25 * MIB)]
    )
    submission.add_recipient("a@b.com")

    result = await submission.submit()

    assert result is None
    assert gateway.files_requests == []
    assert submission.notices[-1].title == "No files selected"


def test_add_paths_checks_size_before_reading(tmp_path, monkeypatch):
    small = tmp_path / "small.txt"
    small.write_bytes(b"abc")
    big = tmp_path / "big.bin"
    with open(big, "wb") as handle:
        handle.truncate(21 * MIB)

    submission = FileSubmission(FakeGateway())
    added = submission.add_paths([small, big])

    assert [att.filename for att in added] == ["small.txt"]
    assert added[0].mime_type == "text/plain"
    assert submission.notices[-1].title == "File too large"


@pytest.mark.asyncio
async def test_submit_without_recipients_makes_no_call():
    gateway = FakeGateway()
    submission = FileSubmission(gateway)
    submission.add_files([_file()])

    assert await submission.submit() is None
    assert gateway.files_requests == []
    assert submission.notices[-1].title == "Recipients required"
    assert submission.busy is False


@pytest.mark.asyncio
async def test_files_success_clears_form():
    gateway = FakeGateway()
    submission = FileSubmission(gateway)
    submission.add_files([_file("a.txt", b"a" * 200), _file("doc.pdf", b"%PDF" + b"0" * 200, "application/pdf")])
    submission.paste_recipients("a@b.com, c@d.com")

    result = await submission.submit(compress=True)

    assert result.success is True
    request = gateway.files_requests[0]
    assert request.compressed is True
    assert [att.filename for att in request.attachments] == ["a.txt.gz", "doc.pdf"]
    assert request.recipients == ["a@b.com", "c@d.com"]
    notice = submission.notices[-1]
    assert notice.title == "Files sent successfully!"
    assert notice.description == "2 file(s) have been sent to 2 recipients (0 images optimized, 1 PDF compressed)"
    assert submission.attachments == []
    assert len(submission.recipients) == 0


@pytest.mark.asyncio
async def test_files_without_compression_sends_originals():
    gateway = FakeGateway()
    submission = FileSubmission(gateway)
    submission.add_files([_file("a.txt", b"abc")])
    submission.add_recipient("a@b.com")

    await submission.submit(compress=False)

    att = gateway.files_requests[0].attachments[0]
    assert att.filename == "a.txt"
    assert att.raw_bytes == b"abc"
    assert submission.notices[-1].description == "1 file(s) have been sent to a@b.com"


@pytest.mark.asyncio
async def test_gateway_error_returns_to_idle_without_retry():
    gateway = FakeGateway(error=TransportError("SMTP relay unavailable", status=500))
    submission = FileSubmission(gateway)
    submission.add_files([_file()])
    submission.add_recipient("a@b.com")

    result = await submission.submit()

    assert result is None
    assert len(gateway.files_requests) == 1
    assert submission.busy is False
    assert submission.compressing is False
    notice = submission.notices[-1]
    assert notice.is_error
    assert notice.title == "Upload failed"
    assert notice.description == "SMTP relay unavailable"
    # form is kept so the user can resubmit
    assert len(submission.attachments) == 1
    assert "a@b.com" in submission.recipients


@pytest.mark.asyncio
async def test_unexpected_error_becomes_notice():
    gateway = FakeGateway(error=RuntimeError("socket exploded"))
    submission = TextSubmission(gateway)
    submission.add_text("hello")
    submission.add_recipient("a@b.com")

    assert await submission.submit() is None
    assert submission.notices[-1].title == "Send failed"
    assert submission.notices[-1].description == "socket exploded"
    assert submission.busy is False


@pytest.mark.asyncio
async def test_concurrent_submit_is_refused():
    gateway = BlockingGateway()
    submission = FileSubmission(gateway)
    submission.add_files([_file()])
    submission.add_recipient("a@b.com")

    first = asyncio.create_task(submission.submit(compress=False))
    while not gateway.files_requests:
        await asyncio.sleep(0)
    assert submission.busy is True

    assert await submission.submit(compress=False) is None
    assert submission.notices[-1].title == "Submission in progress"

    gateway.release.set()
    assert (await first).success is True
    assert len(gateway.files_requests) == 1
    assert submission.busy is False


def test_recipient_notices():
    submission = FileSubmission(FakeGateway())

    assert submission.add_recipient("A@B.com") is AddOutcome.ADDED
    assert submission.add_recipient("a@b.com ") is AddOutcome.DUPLICATE
    assert submission.notices[-1].title == "Duplicate email"
    assert submission.add_recipient("bad") is AddOutcome.INVALID
    assert submission.notices[-1].title == "Invalid email format"


def test_pasted_files_notice():
    submission = FileSubmission(FakeGateway())
    submission.add_pasted_files([_file("clip.png", b"png", "image/png")])
    assert submission.notices[-1].title == "Files added from clipboard"


def test_remove_file_and_total_size():
    submission = FileSubmission(FakeGateway())
    submission.add_files([_file("a.txt", b"aaa"), _file("b.txt", b"bb")])
    assert submission.total_size == 5
    submission.remove_file(0)
    submission.remove_file(7)
    assert [att.filename for att in submission.attachments] == ["b.txt"]


@pytest.mark.asyncio
async def test_python_text_without_filename():
    gateway = FakeGateway()
    submission = TextSubmission(gateway)
    submission.add_text("print('hi')")
    submission.language = "python"
    submission.add_recipient("dev@example.com")

    await submission.submit(compress=False)

    request = gateway.text_requests[0]
    assert request.filename == "shared-code.py"
    assert request.compressed is False
    assert submission.notices[-1].description == "Your code has been sent to dev@example.com"
    assert submission.content == ""
    assert submission.language == "plaintext"


@pytest.mark.asyncio
async def test_compressed_text_reports_ratio():
    gateway = FakeGateway(result=GatewayResult(success=True, message="ok", compression_ratio=92))
    submission = TextSubmission(gateway)
    submission.add_text("lorem ipsum " * 400)
    submission.add_recipient("a@b.com")

    await submission.submit(compress=True)

    request = gateway.text_requests[0]
    assert request.compressed is True
    assert gzip.decompress(request.compressed_payload).decode() == "lorem ipsum " * 400
    assert request.filename == "shared-text.txt"
    assert submission.notices[-1].description == "Your text has been sent to a@b.com (92% smaller)"


@pytest.mark.asyncio
async def test_text_without_compressor_sends_plain():
    from fileflow.compression import CompressionEngine

    gateway = FakeGateway()
    submission = TextSubmission(gateway, engine=CompressionEngine(compressor=None))
    submission.add_text("hello")
    submission.add_recipient("a@b.com")

    await submission.submit(compress=True)

    assert gateway.text_requests[0].compressed is False


@pytest.mark.asyncio
async def test_blank_text_is_rejected():
    gateway = FakeGateway()
    submission = TextSubmission(gateway)
    assert submission.add_text("   ") is False
    submission.add_recipient("a@b.com")

    assert await submission.submit() is None
    assert submission.notices[-1].title == "Content required"
    assert gateway.text_requests == []


def test_paste_text_notice():
    submission = TextSubmission(FakeGateway())
    assert submission.paste_text("x = 1") is True
    assert submission.notices[-1].title == "Text added from clipboard"


def test_on_notice_callback_receives_every_notice():
    seen = []
    submission = FileSubmission(FakeGateway(), on_notice=seen.append)
    submission.add_recipient("bad")
    submission.add_recipient("bad2")
    assert [notice.title for notice in seen] == ["Invalid email format", "Invalid email format"]
