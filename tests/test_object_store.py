from io import BytesIO

import pytest
from PIL import Image

from lostlink.errors import ValidationError
from lostlink.integrations.storage import ObjectStore
from lostlink.integrations.storage.object_store import make_thumbnail


def _png(size=(1200, 800)):
    buf = BytesIO()
    Image.new("RGBA", size, (200, 30, 30, 255)).save(buf, format="PNG")
    return buf.getvalue()


def test_thumbnail_fits_bounds():
    thumb = make_thumbnail(_png(), ".png")
    assert Image.open(BytesIO(thumb)).size == (480, 320)


def test_thumbnail_of_garbage_is_none():
    assert make_thumbnail(b"not an image", ".jpg") is None


def test_local_store_writes_image_and_thumb(tmp_path):
    store = ObjectStore({"UPLOAD_FOLDER": str(tmp_path)})

    stored = store.put_image(_png(), "Wallet.PNG", "image/png", "found-items")

    assert stored.url.startswith("/uploads/found-items/") and stored.url.endswith(".png")
    assert stored.thumb_url.startswith("/uploads/found-items/thumbs/")
    assert stored.vision_url.startswith("data:image/png;base64,")
    name = stored.url.rsplit("/", 1)[1]
    assert (tmp_path / "found-items" / name).exists()
    assert (tmp_path / "found-items" / "thumbs" / name).exists()


def test_empty_upload_rejected(tmp_path):
    with pytest.raises(ValidationError):
        ObjectStore({"UPLOAD_FOLDER": str(tmp_path)}).put_image(b"", "a.jpg", "image/jpeg", "lost-items")
