# tests/test_store_providers.py

import base64
from urllib.parse import unquote
import pytest
import requests

from caseledger_core.errors import StoreReadFailed, StoreWriteFailed
from caseledger_core.store import HTTPStore, InMemoryStore, SQLiteStore, load_store
from caseledger_core.store.providers import http_provider

from conftest import make_registry


@pytest.fixture(params=["memory", "sqlite"])
def cas_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStore()
    return SQLiteStore(str(tmp_path / "kv.db"))


def test_absent_key_reads_empty(cas_store):
    assert cas_store.get("nope") == b""


def test_set_then_get(cas_store):
    cas_store.set("k", b"\x00\x01value")
    assert cas_store.get("k") == b"\x00\x01value"
    cas_store.set("k", b"other")
    assert cas_store.get("k") == b"other"


def test_compare_and_set(cas_store):
    assert cas_store.supports_cas
    assert cas_store.compare_and_set("k", b"", b"v1")
    assert not cas_store.compare_and_set("k", b"", b"v2")
    assert not cas_store.compare_and_set("k", b"stale", b"v2")
    assert cas_store.compare_and_set("k", b"v1", b"v2")
    assert cas_store.get("k") == b"v2"


def test_sqlite_empty_value_counts_as_absent_for_compare_and_set(tmp_path):
    s = SQLiteStore(str(tmp_path / "kv.db"))
    s.set("k", b"")
    assert s.get("k") == b""
    assert s.compare_and_set("k", b"", b"v")
    assert s.get("k") == b"v"
    assert not s.compare_and_set("k", b"", b"w")


def test_sqlite_persists_across_connections(tmp_path):
    path = str(tmp_path / "nested" / "kv.db")
    s = SQLiteStore(path)
    s.set("case_keys", b'["a"]')
    s.close()
    assert SQLiteStore(path).get("case_keys") == b'["a"]'


def test_registry_over_sqlite(tmp_path):
    store = SQLiteStore(str(tmp_path / "kv.db"))
    reg = make_registry(store)
    rec = reg.create_record("Contract", b"x", "0xAAA")
    reg.analyze(rec.key, "0xAAA")
    assert reg.list_records()[0].outcome is not None
    assert store.healthz()["status"] == "ok"


def test_sqlite_closed_connection_reports_store_errors(tmp_path):
    s = SQLiteStore(str(tmp_path / "kv.db"))
    s.close()
    with pytest.raises(StoreReadFailed):
        s.get("k")
    with pytest.raises(StoreWriteFailed):
        s.set("k", b"v")


# ---------------------------------------------------------------------------
# HTTP gateway
# ---------------------------------------------------------------------------

class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300
        self._body = body
        self.text = str(body)

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeGateway:
    """In-process stand-in for the HTTP gateway to the key-value contract."""

    def __init__(self):
        self.data = {}
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(("GET", url, headers))
        if url.endswith("/available"):
            return FakeResponse(200, {"available": True})
        key = unquote(url.split("/data/", 1)[1])
        if key not in self.data:
            return FakeResponse(404, {"error": "absent"})
        return FakeResponse(200, {"value": self.data[key]})

    def put(self, url, json=None, headers=None, timeout=None):
        self.calls.append(("PUT", url, headers))
        key = unquote(url.split("/data/", 1)[1])
        self.data[key] = json["value"]
        return FakeResponse(200, {"ok": True})


@pytest.fixture
def gateway(monkeypatch):
    gw = FakeGateway()
    monkeypatch.setattr(http_provider.requests, "get", gw.get)
    monkeypatch.setattr(http_provider.requests, "put", gw.put)
    return gw


def test_http_get_absent_and_set_roundtrip(gateway):
    store = HTTPStore("http://gw.local/")
    assert store.get("record:k1") == b""

    store.set("record:k1", b"\xffbytes")
    assert gateway.data["record:k1"] == base64.b64encode(b"\xffbytes").decode()
    assert store.get("record:k1") == b"\xffbytes"
    # key is path-quoted
    assert gateway.calls[-1][1] == "http://gw.local/data/record%3Ak1"


def test_http_grant_is_sent_as_bearer(gateway):
    store = HTTPStore("http://gw.local")
    store.set_grant("tok")
    store.set("k", b"v")
    assert gateway.calls[-1][2]["Authorization"] == "Bearer tok"


def test_http_rejected_write(monkeypatch):
    monkeypatch.setattr(http_provider.requests, "put", lambda *a, **k: FakeResponse(403, {"error": "denied"}))
    with pytest.raises(StoreWriteFailed):
        HTTPStore("http://gw.local").set("k", b"v")


def test_http_timeout_is_a_failure(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.Timeout("timed out")

    monkeypatch.setattr(http_provider.requests, "get", boom)
    monkeypatch.setattr(http_provider.requests, "put", boom)
    store = HTTPStore("http://gw.local", timeout=0.1)
    with pytest.raises(StoreReadFailed):
        store.get("k")
    with pytest.raises(StoreWriteFailed):
        store.set("k", b"v")


def test_http_malformed_value(monkeypatch):
    monkeypatch.setattr(http_provider.requests, "get", lambda *a, **k: FakeResponse(200, {"value": "%%%"}))
    with pytest.raises(StoreReadFailed):
        HTTPStore("http://gw.local").get("k")


def test_registry_over_http_gateway(gateway):
    store = HTTPStore("http://gw.local")
    assert not store.supports_cas
    reg = make_registry(store, keys=["k1", "k2"])

    reg.create_record("Contract", b"a", "0xAAA")
    reg.create_record("Tort", b"b", "0xBBB")
    reg.reject("k2", "0xBBB")

    assert {r.key: r.status.value for r in reg.list_records()} == {"k1": "pending", "k2": "rejected"}
    assert store.healthz() == {"status": "ok", "store": "http"}


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------

def test_load_store_modes(monkeypatch, tmp_path):
    monkeypatch.delenv("CASELEDGER_STORE_PROVIDER", raising=False)
    assert isinstance(load_store(), InMemoryStore)

    monkeypatch.setenv("CASELEDGER_STORE_PROVIDER", "sqlite")
    monkeypatch.setenv("CASELEDGER_DB_PATH", str(tmp_path / "env.db"))
    assert isinstance(load_store(), SQLiteStore)

    store = load_store({"provider": "http", "http_url": "http://gw.local", "http_timeout": 3})
    assert isinstance(store, HTTPStore)
    assert store.timeout == 3.0

    with pytest.raises(ValueError):
        load_store({"provider": "redis"})
