"""Encrypted QR entry credentials.

Payloads are JSON with short keys (``t`` type, ``i`` id, ``c`` club id,
``tp`` ticket purchase id) sealed with AES-256-GCM and base64 encoded as
``nonce || ciphertext``. The key is the 32-character
``NIGHTLIFE["QR_ENCRYPTION_KEY"]``.
"""

import base64
import binascii
import json
import os
from dataclasses import dataclass

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

NONCE_BYTES = 12


class InvalidQRCodeError(ValueError):
    pass


@dataclass(frozen=True)
class QRPayload:
    type: str
    club_id: str
    id: str | None = None
    ticket_purchase_id: str | None = None

    def compact(self) -> dict:
        data = {"t": self.type, "c": self.club_id}
        if self.id:
            data["i"] = self.id
        if self.ticket_purchase_id:
            data["tp"] = self.ticket_purchase_id
        return data

    @classmethod
    def from_compact(cls, data: dict) -> "QRPayload":
        return cls(type=data["t"], club_id=data["c"], id=data.get("i"), ticket_purchase_id=data.get("tp"))


class QRCodec:
    def __init__(self, key: str) -> None:
        raw = key.encode("utf-8")
        if len(raw) != 32:
            raise ImproperlyConfigured("QR_ENCRYPTION_KEY must be exactly 32 bytes")
        self._aead = AESGCM(raw)

    @classmethod
    def from_settings(cls) -> "QRCodec":
        return cls(settings.NIGHTLIFE["QR_ENCRYPTION_KEY"])

    def encode(self, payload: QRPayload) -> str:
        nonce = os.urandom(NONCE_BYTES)
        plaintext = json.dumps(payload.compact(), separators=(",", ":")).encode("utf-8")
        return base64.b64encode(nonce + self._aead.encrypt(nonce, plaintext, None)).decode("ascii")

    def decode(self, token: str) -> QRPayload:
        try:
            raw = base64.b64decode(token, validate=True)
            plaintext = self._aead.decrypt(raw[:NONCE_BYTES], raw[NONCE_BYTES:], None)
            return QRPayload.from_compact(json.loads(plaintext))
        except (binascii.Error, InvalidTag, ValueError, KeyError) as exc:
            raise InvalidQRCodeError("Invalid QR code") from exc
