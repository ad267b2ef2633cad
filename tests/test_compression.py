import gzip
import io

import pytest
from PIL import Image

from fileflow.compression import (
    AttachmentKind,
    CompressionEngine,
    classify,
    get_compression_ratio,
)
from fileflow.compression.image import fit_within, jpeg_filename, quality_for_size
from fileflow.models import Attachment

MIB = 1024 * 1024


def _image_bytes(size, mode="RGB", fmt="PNG", color=(200, 30, 30)):
    if mode == "RGBA":
        color = color + (128,)
    buffer = io.BytesIO()
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def save_spy(monkeypatch):
    calls = []
    original_save = Image.Image.save

    def spy(self, fp, format=None, **params):
        calls.append({"format": format, "size": self.size, **params})
        return original_save(self, fp, format=format, **params)

    monkeypatch.setattr(Image.Image, "save", spy)
    return calls


@pytest.mark.parametrize(
    "mime,kind",
    [
        ("image/png", AttachmentKind.IMAGE),
        ("image/jpeg", AttachmentKind.IMAGE),
        ("application/pdf", AttachmentKind.PDF),
        ("text/plain", AttachmentKind.GENERIC),
        ("", AttachmentKind.GENERIC),
        (None, AttachmentKind.GENERIC),
    ],
)
def test_classify(mime, kind):
    assert classify(mime) is kind


def test_compression_ratio():
    assert get_compression_ratio(0, 0) == 0
    assert get_compression_ratio(1000, 250) == 75
    assert get_compression_ratio(3, 1) == 67
    assert get_compression_ratio(200, 199) == 1
    assert get_compression_ratio(100, 120) == -20


def test_quality_thresholds():
    assert quality_for_size(6 * MIB) == 0.6
    assert quality_for_size(3 * MIB) == 0.7
    assert quality_for_size(2 * MIB) == 0.8
    assert quality_for_size(100) == 0.8


def test_fit_within_never_upscales():
    assert fit_within(800, 600) == (800, 600)
    assert fit_within(3840, 2160) == (1920, 1080)
    assert fit_within(4000, 1000) == (1920, 480)
    assert fit_within(1000, 3000) == (360, 1080)


def test_jpeg_filename():
    assert jpeg_filename("photo.png") == "photo.jpg"
    assert jpeg_filename("archive.tar.webp") == "archive.tar.jpg"
    assert jpeg_filename("noext") == "noext.jpg"


@pytest.mark.asyncio
async def test_large_image_uses_low_quality_and_fits_box(save_spy):
    raw = _image_bytes((3840, 2160))
    att = Attachment(
        filename="holiday.png",
        mime_type="image/png",
        raw_bytes=raw,
        original_size=6 * MIB,
    )

    result = await CompressionEngine().compress(att)

    jpeg_saves = [call for call in save_spy if call["format"] == "JPEG"]
    assert jpeg_saves[-1]["quality"] == 60
    assert result.filename == "holiday.jpg"
    assert result.mime_type == "image/jpeg"
    assert result.original_size == 6 * MIB
    assert result.compressed_size == len(result.raw_bytes)
    assert result.original_filename == "holiday.png"
    assert result.original_mime_type == "image/png"
    with Image.open(io.BytesIO(result.raw_bytes)) as img:
        assert img.format == "JPEG"
        assert img.size == (1920, 1080)


@pytest.mark.asyncio
async def test_small_image_is_not_upscaled(save_spy):
    raw = _image_bytes((120, 80))
    att = Attachment.from_bytes("icon.png", raw, "image/png")

    result = await CompressionEngine().compress(att)

    assert save_spy[-1]["quality"] == 80
    with Image.open(io.BytesIO(result.raw_bytes)) as img:
        assert img.size == (120, 80)


@pytest.mark.asyncio
async def test_image_with_alpha_is_flattened_to_rgb():
    raw = _image_bytes((64, 64), mode="RGBA")
    att = Attachment.from_bytes("logo.png", raw, "image/png")

    result = await CompressionEngine().compress(att)

    with Image.open(io.BytesIO(result.raw_bytes)) as img:
        assert img.mode == "RGB"


@pytest.mark.asyncio
async def test_undecodable_image_falls_back_to_gzip():
    att = Attachment.from_bytes("broken.png", b"definitely not a png" * 10, "image/png")

    result = await CompressionEngine().compress(att)

    assert result.filename == "broken.png.gz"
    assert result.mime_type == "application/gzip"
    assert gzip.decompress(result.raw_bytes) == att.raw_bytes


@pytest.mark.asyncio
async def test_pdf_keeps_name_and_mime():
    raw = b"%PDF-1.4\n" + b"0" * 4096
    att = Attachment.from_bytes("report.pdf", raw, "application/pdf")

    result = await CompressionEngine().compress(att)

    assert result.filename == "report.pdf"
    assert result.mime_type == "application/pdf"
    assert gzip.decompress(result.raw_bytes) == raw
    assert result.final_size < att.original_size


@pytest.mark.asyncio
async def test_generic_file_gets_gzip_suffix():
    raw = b"line of log output\n" * 500
    att = Attachment.from_bytes("server.log", raw, "text/plain")

    result = await CompressionEngine().compress(att)

    assert result.filename == "server.log.gz"
    assert result.mime_type == "application/gzip"
    assert result.original_size == len(raw)
    assert get_compression_ratio(result.original_size, result.final_size) > 50


@pytest.mark.asyncio
async def test_missing_compressor_passes_through():
    engine = CompressionEngine(compressor=None)
    att = Attachment.from_bytes("data.bin", b"\x00\x01\x02", "application/octet-stream")

    result = await engine.compress(att)

    assert result.filename == "data.bin"
    assert result.mime_type == "application/octet-stream"
    assert result.raw_bytes == att.raw_bytes
    assert result.compressed_size == 3


@pytest.mark.asyncio
async def test_failing_compressor_degrades_to_original_bytes():
    def boom(data):
        raise RuntimeError("compressor crashed")

    engine = CompressionEngine(compressor=boom)
    att = Attachment.from_bytes("notes.txt", b"hello", "text/plain")

    result = await engine.compress(att)

    assert result.raw_bytes == b"hello"
    assert result.filename == "notes.txt"


@pytest.mark.asyncio
async def test_compress_all_keeps_selection_order():
    attachments = [
        Attachment.from_bytes("a.txt", b"a" * 100, "text/plain"),
        Attachment.from_bytes("b.pdf", b"b" * 100, "application/pdf"),
        Attachment.from_bytes("c.csv", b"c" * 100, "text/csv"),
    ]

    result = await CompressionEngine().compress_all(attachments)

    assert [att.filename for att in result] == ["a.txt.gz", "b.pdf", "c.csv.gz"]


@pytest.mark.asyncio
async def test_compress_text():
    text = "print('hello world')\n" * 200

    result = await CompressionEngine().compress_text(text)

    assert result.compressed is True
    assert result.mime_type == "application/gzip"
    assert gzip.decompress(result.payload).decode("utf-8") == text
    assert result.original_size == len(text.encode("utf-8"))
    assert result.ratio > 50


@pytest.mark.asyncio
async def test_compress_text_without_compressor_is_plain():
    result = await CompressionEngine(compressor=None).compress_text("ciao")

    assert result.compressed is False
    assert result.mime_type == "text/plain"
    assert result.payload == b"ciao"
    assert result.ratio == 0
