import pytest

from fileflow.models import Attachment
from fileflow.preview import PreviewManager


def _image(name="photo.png", data=b"\x89PNG fake"):
    return Attachment.from_bytes(name, data, "image/png")


def test_open_writes_temp_file(tmp_path):
    manager = PreviewManager(directory=tmp_path)

    path = manager.open(_image())

    assert path.exists()
    assert path.suffix == ".png"
    assert path.read_bytes() == b"\x89PNG fake"
    assert manager.current_name == "photo.png"


def test_replace_releases_previous_file(tmp_path):
    manager = PreviewManager(directory=tmp_path)
    first = manager.open(_image("one.png"))

    second = manager.replace(_image("two.jpg"))

    assert not first.exists()
    assert second.exists()
    assert manager.current == second


def test_non_image_is_refused_and_releases_previous(tmp_path):
    notices = []
    manager = PreviewManager(directory=tmp_path, on_notice=notices.append)
    first = manager.open(_image())

    assert manager.open(Attachment.from_bytes("doc.pdf", b"%PDF", "application/pdf")) is None
    assert not first.exists()
    assert manager.current is None
    assert notices[0].title == "Preview not available"


def test_close_is_idempotent(tmp_path):
    manager = PreviewManager(directory=tmp_path)
    path = manager.open(_image())
    path.unlink()

    manager.close()
    manager.close()
    assert manager.current is None


def test_context_manager_releases_on_error(tmp_path):
    with pytest.raises(RuntimeError):
        with PreviewManager(directory=tmp_path) as manager:
            path = manager.open(_image())
            raise RuntimeError("viewer crashed")

    assert not path.exists()
    assert list(tmp_path.iterdir()) == []
