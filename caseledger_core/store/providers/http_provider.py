# caseledger_core/store/providers/http_provider.py
from typing import Dict, Any
from urllib.parse import quote
import binascii
import requests

from caseledger_core.errors import StoreReadFailed, StoreWriteFailed
from caseledger_core.logger import get_logger
from caseledger_core.store.provider import KeyValueStore
from caseledger_core.utils import b64d, b64e

log = get_logger("CaseLedger.Store.HTTP")


class HTTPStore(KeyValueStore):
    """
    Key-value store reached through an HTTP gateway in front of the
    on-chain key-value contract.

    Gateway routes:
    - GET  /data/{key}  -> {"value": "<base64>"}   (404 or empty value = absent)
    - PUT  /data/{key}  <- {"value": "<base64>"}   (2xx = ack)
    - GET  /available   -> {"available": true}

    The contract exposes only get/set, so there is no compare-and-set here.
    A timeout is reported like any other failure; the store never guesses
    whether a timed-out write landed.
    """
    name = "http"
    supports_cas = False

    def __init__(self, base_url: str, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._grant = None

    def set_grant(self, grant: str):
        """Stores the bearer token used to authorize writes."""
        self._grant = grant

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._grant:
            headers["Authorization"] = f"Bearer {self._grant}"
        return headers

    def _url(self, key: str) -> str:
        return f"{self.base_url}/data/{quote(key, safe='')}"

    def get(self, key: str) -> bytes:
        url = self._url(key)
        log.debug(f"[STORE GET] → {url}")
        try:
            res = requests.get(url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            log.error(f"[STORE GET] {key}: {e}")
            raise StoreReadFailed(f"gateway read failed for {key}: {e}", key=key) from e

        if res.status_code == 404:
            return b""
        if not res.ok:
            log.error(f"[STORE GET] {res.status_code}: {res.text}")
            raise StoreReadFailed(f"gateway read failed for {key}: HTTP {res.status_code}", key=key)

        try:
            value = res.json().get("value") or ""
            return b64d(value)
        except (ValueError, AttributeError, binascii.Error) as e:
            raise StoreReadFailed(f"gateway returned malformed value for {key}: {e}", key=key) from e

    def set(self, key: str, value: bytes) -> None:
        url = self._url(key)
        log.info(f"[STORE SET] → {url} | bytes={len(value)}")
        try:
            res = requests.put(url, json={"value": b64e(value)}, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            log.error(f"[STORE SET] {key}: {e}")
            raise StoreWriteFailed(f"gateway write failed for {key}: {e}", key=key) from e

        if not res.ok:
            log.error(f"[STORE SET] {res.status_code}: {res.text}")
            raise StoreWriteFailed(f"gateway rejected write for {key}: HTTP {res.status_code}", key=key)

    def healthz(self) -> Dict[str, Any]:
        try:
            res = requests.get(f"{self.base_url}/available", headers=self._headers(), timeout=self.timeout)
            available = res.ok and bool(res.json().get("available"))
        except (requests.RequestException, ValueError) as e:
            return {"status": "error", "store": self.name, "error": str(e)}
        return {"status": "ok" if available else "unavailable", "store": self.name}
