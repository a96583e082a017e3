import re

import pytest

from lostlink import create_app
from lostlink.extensions import db as _db
from lostlink.integrations.openai import ImageAnalysis
from lostlink.integrations.storage import StoredImage
from lostlink.models import FoundItem, LostItem

# One axis per keyword; texts about the same object point the same way.
AXES = ["wallet", "leather", "black", "red", "stripe", "phone", "keys", "umbrella"]

WALLET_ANALYSIS = ImageAnalysis(
    title="Black leather wallet",
    description="black leather bifold wallet, red stripe, worn corners",
    tags=["wallet", "leather", "black", "red stripe"],
)


def keyword_vector(text: str) -> list[float]:
    words = re.findall(r"[a-z]+", text.lower())
    return [float(words.count(axis)) for axis in AXES]


class FakeAI:
    def __init__(self):
        self.analysis = WALLET_ANALYSIS
        self.embedded = []
        self.described = []
        self.single_image_calls = 0
        self.fail_embedding = False

    def embed_text(self, text):
        if self.fail_embedding:
            from lostlink.errors import UpstreamServiceError

            raise UpstreamServiceError("embedding down", service="embedding")
        self.embedded.append(text)
        return keyword_vector(text)

    def describe_image(self, image_url):
        self.single_image_calls += 1
        return self.describe_images([image_url])

    def describe_images(self, image_urls):
        self.described.append(list(image_urls))
        return self.analysis


class FakeObjectStore:
    def __init__(self):
        self.stored = []

    def put_image(self, file_bytes, filename, mimetype, folder):
        self.stored.append((folder, filename, len(file_bytes)))
        url = f"https://cdn.test/{folder}/{filename}"
        return StoredImage(url=url, thumb_url=None, vision_url=url)


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        _db.create_all()
        app.extensions["lostlink"]["ai"] = FakeAI()
        app.extensions["lostlink"]["objects"] = FakeObjectStore()
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def fake_ai(app):
    return app.extensions["lostlink"]["ai"]


@pytest.fixture
def make_found(app):
    def _make(embedding, **kw):
        fields = dict(
            image_urls=["https://cdn.test/found-items/a.jpg"],
            auto_title="Black leather wallet",
            auto_description="black leather bifold wallet, red stripe",
            tags=["wallet", "leather"],
            location="Central Park",
            contact_info="finder@example.com",
            claimed=False,
        )
        fields.update(kw)
        item = FoundItem(embedding=embedding, **fields)
        _db.session.add(item)
        _db.session.commit()
        return item

    return _make


@pytest.fixture
def make_lost(app):
    counter = {"n": 0}

    def _make(embedding, **kw):
        counter["n"] += 1
        alert = kw.pop("alert_enabled", True)
        fields = dict(
            description="black leather wallet with red stripe",
            location="Central Park",
            contact_info="owner@example.com",
            alert_enabled=alert,
            notification_token=f"token-{counter['n']}" if alert else None,
            status="active",
        )
        fields.update(kw)
        item = LostItem(embedding=embedding, **fields)
        _db.session.add(item)
        _db.session.commit()
        return item

    return _make
