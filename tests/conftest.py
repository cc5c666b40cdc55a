"""Pytest configuration and shared fixtures for Card Catalog tests."""

import base64

import pytest

from card_catalog.core.types import ImageInput, TransportFailure
from card_catalog.store.collection import CollectionStore


class FakeRecognitionClient:
    """Stands in for RecognitionClient; replies per endpoint.

    Endpoints without a configured reply fail like an HTTP 500.
    """

    def __init__(self, responses=None, token="test-token"):
        self.responses = dict(responses or {})
        self.token = token
        self.calls = []

    def resolve_token(self):
        from card_catalog.utils.validation import validate_token
        return validate_token(self.token)

    async def call(self, endpoint, payload):
        self.resolve_token()
        self.calls.append((endpoint, payload))
        reply = self.responses.get(endpoint, TransportFailure(endpoint.name, "HTTP 500", 500))
        if isinstance(reply, Exception):
            raise reply
        return reply

    @property
    def endpoints(self):
        return [endpoint for endpoint, _ in self.calls]

    def payload_for(self, endpoint):
        for called, payload in self.calls:
            if called is endpoint:
                return payload
        return None


@pytest.fixture
def fake_client():
    """Factory for fake recognition clients."""
    def _make(responses=None, token="test-token"):
        return FakeRecognitionClient(responses, token)
    return _make


@pytest.fixture
def make_response():
    """Build a recognition response around a list of objects."""
    def _make(objects, code=200):
        return {"records": [{"_status": {"code": code, "text": "OK" if code == 200 else "Error"},
                             "_objects": objects}]}
    return _make


@pytest.fixture
def card_object():
    """Build a recognized object with identification and tags."""
    def _make(best=None, alternatives=None, name="Card", tags=None):
        obj = {"name": name, "_identification": {}}
        if best is not None:
            obj["_identification"]["best_match"] = best
        if alternatives is not None:
            obj["_identification"]["alternatives"] = alternatives
        if tags is not None:
            obj["_tags"] = tags
        return obj
    return _make


@pytest.fixture
def image_b64():
    """A plausible base64 image payload."""
    return base64.b64encode(b"\xff\xd8\xff\xe0" + b"card-image-bytes" * 20).decode("ascii")


@pytest.fixture
def image_input(image_b64):
    return ImageInput.from_base64(image_b64, image_uri="file:///tmp/front.jpg")


@pytest.fixture
def sample_best_match():
    """Sample sports card best match."""
    return {
        "name": "Michael Jordan",
        "full_name": "Michael Jordan 1986 Fleer #57",
        "year": 1986,
        "set_name": "Fleer",
        "card_number": "57",
        "subcategory": "Basketball",
        "team": "Chicago Bulls",
        "company": "Fleer",
        "links": {"ebay.com": "https://www.ebay.com/sch/i.html?_nkw=jordan+fleer"},
        "pricing": {
            "list": [
                {"item_id": "1", "item_link": "https://ebay.com/itm/1", "name": "Jordan Fleer 57",
                 "price": 100.0, "currency": "USD", "country_code": "US", "source": "ebay",
                 "date_of_creation": "2024-01-01", "date_of_sale": "2024-01-05"},
                {"item_id": "2", "price": 200.0, "currency": "USD", "source": "ebay"},
                {"item_id": "3", "price": 300.0, "currency": "USD", "source": "ebay"},
            ]
        },
    }


@pytest.fixture
def collection_store(tmp_path):
    """Collection store backed by a temporary database."""
    return CollectionStore(tmp_path / "collection.db")


# Configure pytest options
def pytest_configure(config):
    """Configure pytest with custom options."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "integration" in item.name.lower() or "Integration" in str(item.cls):
            item.add_marker(pytest.mark.integration)

        if not item.get_closest_marker('integration') and not item.get_closest_marker('slow'):
            item.add_marker(pytest.mark.unit)
