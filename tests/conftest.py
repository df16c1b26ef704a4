import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import pytest
import requests
from firebase_admin import firestore

from civic_reporter.config import firebase
from civic_reporter.core.settings import settings
from civic_reporter.services import issue_service, profile_service, session as session_module
from civic_reporter.services.geocoding import resolver


# --------------------------------------------------------------------------
# In-memory Firestore
# --------------------------------------------------------------------------

_ids = itertools.count(1)


class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, collection: "FakeCollection", doc_id: str):
        self.collection = collection
        self.id = doc_id

    def _resolve(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            key: (self.collection.db.clock() if value is firestore.SERVER_TIMESTAMP else value)
            for key, value in data.items()
        }

    def set(self, data: Dict[str, Any]) -> None:
        self.collection.docs[self.id] = self._resolve(data)

    def update(self, data: Dict[str, Any]) -> None:
        if self.id not in self.collection.docs:
            raise KeyError(f"No document to update: {self.id}")
        self.collection.docs[self.id].update(self._resolve(data))

    def get(self) -> FakeSnapshot:
        return FakeSnapshot(self.id, self.collection.docs.get(self.id))


class FakeQuery:
    def __init__(self, collection: "FakeCollection", filters=None, order=None, limit=None):
        self.collection = collection
        self.filters = filters or []
        self.order = order
        self._limit = limit

    def where(self, field, op, value):
        assert op == "=="
        return FakeQuery(self.collection, self.filters + [(field, value)], self.order, self._limit)

    def order_by(self, field, direction="ASCENDING"):
        return FakeQuery(self.collection, self.filters, (field, direction), self._limit)

    def limit(self, count):
        return FakeQuery(self.collection, self.filters, self.order, count)

    def stream(self):
        if self.collection.db.fail_reads:
            raise RuntimeError("backend unavailable")
        items = [
            (doc_id, data) for doc_id, data in self.collection.docs.items()
            if all(data.get(f) == v for f, v in self.filters)
        ]
        if self.order:
            field, direction = self.order
            items.sort(key=lambda item: item[1].get(field), reverse=direction == firestore.Query.DESCENDING)
        if self._limit is not None:
            items = items[: self._limit]
        return iter([FakeSnapshot(doc_id, data) for doc_id, data in items])


class FakeCollection(FakeQuery):
    def __init__(self, db: "FakeFirestore", name: str):
        self.db = db
        self.id = name
        self.docs: Dict[str, Dict[str, Any]] = {}
        super().__init__(self)

    def document(self, doc_id: Optional[str] = None) -> FakeDocumentRef:
        return FakeDocumentRef(self, doc_id or f"doc{next(_ids)}")


class FakeFirestore:
    def __init__(self):
        self._collections: Dict[str, FakeCollection] = {}
        self.fail_reads = False
        self._now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

    def clock(self) -> datetime:
        self._now += timedelta(minutes=1)
        return self._now

    def collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(self, name)
        return self._collections[name]

    def collections(self):
        return list(self._collections.values())


# --------------------------------------------------------------------------
# Fake Cloud Storage
# --------------------------------------------------------------------------

class FakeBlob:
    def __init__(self, bucket: "FakeBucket", path: str):
        self.bucket = bucket
        self.path = path
        self.public = False

    def upload_from_string(self, data, content_type=None):
        self.bucket.objects[self.path] = (data, content_type)

    def make_public(self):
        self.public = True

    @property
    def public_url(self) -> str:
        return f"https://storage.googleapis.com/{self.bucket.name}/{self.path}"


class FakeBucket:
    def __init__(self, name: str = "test-bucket"):
        self.name = name
        self.objects: Dict[str, Any] = {}

    def blob(self, path: str) -> FakeBlob:
        return FakeBlob(self, path)


# --------------------------------------------------------------------------
# Fake Google Maps / Nominatim HTTP
# --------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeMapsApi:
    """Routes requests.get by URL; unknown inputs behave like ZERO_RESULTS."""

    def __init__(self):
        self.geocode: Dict[str, Dict] = {}
        self.reverse: Dict[str, Dict] = {}
        self.predictions: Dict[str, List[Dict]] = {}
        self.details: Dict[str, Dict] = {}
        self.nominatim: Dict[str, str] = {}
        self.network_down = False
        self.calls: List[str] = []

    def add_place(self, place_id: str, description: str, lat: float, lng: float, address: Optional[str] = None):
        self.details[place_id] = {
            "geometry": {"location": {"lat": lat, "lng": lng}},
            "formatted_address": address or description,
        }

    def add_geocode(self, query: str, address: str, lat: float, lng: float, place_id: str = "geo-1"):
        self.geocode[query] = {
            "formatted_address": address,
            "geometry": {"location": {"lat": lat, "lng": lng}},
            "place_id": place_id,
        }

    def calls_to(self, fragment: str) -> List[str]:
        return [c for c in self.calls if fragment in c]

    def __call__(self, url, params=None, headers=None, timeout=None):
        params = params or {}
        self.calls.append(f"{url}?{urlencode(params)}")
        if self.network_down:
            raise requests.ConnectionError("network unreachable")

        if "geocode/json" in url:
            if "address" in params:
                hit = self.geocode.get(params["address"])
            else:
                hit = self.reverse.get(params["latlng"])
            if hit is None:
                return FakeResponse({"status": "ZERO_RESULTS", "results": []})
            return FakeResponse({"status": "OK", "results": [hit]})

        if "place/autocomplete" in url:
            preds = self.predictions.get(params["input"], [])
            return FakeResponse({"status": "OK" if preds else "ZERO_RESULTS", "predictions": preds})

        if "place/details" in url:
            hit = self.details.get(params["place_id"])
            if hit is None:
                return FakeResponse({"status": "NOT_FOUND"})
            return FakeResponse({"status": "OK", "result": hit})

        if "nominatim" in url:
            name = self.nominatim.get(f"{params['lat']},{params['lon']}")
            if name is None:
                return FakeResponse({"error": "Unable to geocode"})
            return FakeResponse({"display_name": name})

        raise AssertionError(f"Unexpected URL {url}")


# --------------------------------------------------------------------------
# Fixtures
# --------------------------------------------------------------------------

@pytest.fixture
def fake_db(monkeypatch):
    db = FakeFirestore()
    monkeypatch.setattr(firebase, "db", db)
    monkeypatch.setattr(issue_service, "_issue_service", None)
    monkeypatch.setattr(profile_service, "_profile_service", None)
    return db


@pytest.fixture
def maps_api(monkeypatch):
    api = FakeMapsApi()
    monkeypatch.setattr(requests, "get", api)
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", "test-key")
    resolver.reset_providers()
    yield api
    resolver.reset_providers()


@pytest.fixture
def no_maps_key(monkeypatch):
    api = FakeMapsApi()
    monkeypatch.setattr(requests, "get", api)
    monkeypatch.setattr(settings, "GOOGLE_MAPS_API_KEY", None)
    resolver.reset_providers()
    yield api
    resolver.reset_providers()


@pytest.fixture
def auth_tokens(monkeypatch):
    """Bearer tokens are the user id itself. Returns the revoked user ids."""
    revoked = []
    monkeypatch.setattr(
        session_module,
        "verify_id_token",
        lambda token: {"uid": token, "email": f"{token}@example.com"},
    )
    monkeypatch.setattr(session_module, "initialize_app_once", lambda: None)
    monkeypatch.setattr(session_module.auth, "revoke_refresh_tokens", revoked.append)
    return revoked


def seed_profile(db: FakeFirestore, user_id: str, role: str = "user", name: Optional[str] = None):
    db.collection(settings.PROFILES_COLLECTION).document(user_id).set(
        {"email": f"{user_id}@example.com", "role": role, "name": name, "is_complete": True}
    )


def seed_issue(db: FakeFirestore, **fields) -> str:
    ref = db.collection(settings.ISSUES_COLLECTION).document(fields.pop("id", None))
    data = {
        "title": "Pothole",
        "description": "",
        "category": "Infrastructure",
        "priority": "medium",
        "status": "open",
        "location_text": "",
        "latitude": None,
        "longitude": None,
        "reporter_name": None,
        "created_at": firestore.SERVER_TIMESTAMP,
    }
    data.update(fields)
    ref.set(data)
    return ref.id
