from __future__ import annotations
from typing import Tuple, Optional
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
import os
from .errors import EncryptionFailed
from .logger import get_logger
from .utils import b64e, b64d

"""
caseledger_core.crypto
----------------------
Encryption gateways for case payloads.

The registry only ever calls ``encrypt(plaintext) -> bytes`` and stores the
result as an opaque blob. Two gateways ship here:

- AESGCMGateway: AES-256-GCM with a random 96-bit nonce, blob = nonce || ct
- SimulatedFHEGateway: the reference stand-in for a homomorphic-encryption
  service ("FHE-" + base64 of the plaintext). Not confidential; for demos.

A real homomorphic backend is another EncryptionGateway implementation.
"""

log = get_logger("CaseLedger.Crypto")

NONCE_SIZE = 12


class EncryptionGateway:
    name: str = "base"

    def encrypt(self, plaintext: bytes) -> bytes:
        raise NotImplementedError


# --------- HKDF + AES-GCM ----------
def generate_key() -> bytes:
    return AESGCM.generate_key(bit_length=256)


def derive_key(secret: bytes, salt: Optional[bytes] = None, info: bytes = b"caseledger-v1") -> bytes:
    hkdf = HKDF(algorithm=hashes.SHA256(), length=32, salt=salt, info=info)
    return hkdf.derive(secret)  # 256-bit AEAD key


def aead_encrypt(key: bytes, plaintext: bytes, aad: Optional[bytes] = None) -> Tuple[bytes, bytes]:
    aes = AESGCM(key)
    nonce = os.urandom(NONCE_SIZE)
    ct = aes.encrypt(nonce, plaintext, aad)
    return nonce, ct


def aead_decrypt(key: bytes, nonce: bytes, ciphertext: bytes, aad: Optional[bytes] = None) -> bytes:
    aes = AESGCM(key)
    return aes.decrypt(nonce, ciphertext, aad)


class AESGCMGateway(EncryptionGateway):
    name = "aesgcm"

    def __init__(self, key: bytes, aad: Optional[bytes] = b"caseledger-payload"):
        if len(key) != 32:
            raise ValueError("AES-GCM gateway requires a 32-byte key")
        self._key = key
        self.aad = aad

    @classmethod
    def from_b64(cls, key_b64: str) -> "AESGCMGateway":
        return cls(b64d(key_b64))

    def encrypt(self, plaintext: bytes) -> bytes:
        try:
            nonce, ct = aead_encrypt(self._key, plaintext, aad=self.aad)
        except (TypeError, ValueError, OverflowError) as e:
            log.error(f"[CRYPTO] encrypt failed: {e}")
            raise EncryptionFailed(f"AES-GCM encryption failed: {e}") from e
        return nonce + ct

    def decrypt(self, blob: bytes) -> bytes:
        """Inverse of encrypt(); the registry itself never needs it."""
        if len(blob) <= NONCE_SIZE:
            raise EncryptionFailed("ciphertext blob too short")
        try:
            return aead_decrypt(self._key, blob[:NONCE_SIZE], blob[NONCE_SIZE:], aad=self.aad)
        except InvalidTag as e:
            raise EncryptionFailed("ciphertext failed authentication") from e


class SimulatedFHEGateway(EncryptionGateway):
    name = "simulated"
    PREFIX = b"FHE-"

    def encrypt(self, plaintext: bytes) -> bytes:
        if not isinstance(plaintext, (bytes, bytearray)):
            raise EncryptionFailed(f"plaintext must be bytes, got {type(plaintext).__name__}")
        return self.PREFIX + b64e(bytes(plaintext)).encode("ascii")
