"""
Payload codec — JSON, optional gzip, optional base64 encoding.

The "encrypt" transform is a reversible encoding that keeps payloads out of
casual view in storage. It is not confidentiality.
"""

from __future__ import annotations

import base64
import gzip
import json
from typing import Any

from naaz.cache._types import COMPRESSION_THRESHOLD


def compress(text: str) -> str:
    return base64.b64encode(gzip.compress(text.encode("utf-8"))).decode("ascii")


def decompress(payload: str) -> str:
    return gzip.decompress(base64.b64decode(payload, validate=True)).decode("utf-8")


def encrypt(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decrypt(payload: str) -> str:
    return base64.b64decode(payload, validate=True).decode("utf-8")


def encode(
    value: Any,
    *,
    compress_payload: bool = False,
    encrypt_payload: bool = False,
    threshold: int = COMPRESSION_THRESHOLD,
) -> tuple[str, bool, bool]:
    """
    Serialise value. Returns (payload, compressed, encrypted).

    Raises TypeError/ValueError for values JSON cannot represent.
    """
    payload = json.dumps(value, separators=(",", ":"), allow_nan=False)
    compressed = False
    if compress_payload and len(payload.encode("utf-8")) > threshold:
        payload = compress(payload)
        compressed = True
    if encrypt_payload:
        payload = encrypt(payload)
    return payload, compressed, encrypt_payload


def decode(payload: str, *, compressed: bool, encrypted: bool) -> Any:
    """Reverse encode: decryption, then decompression, then JSON."""
    if encrypted:
        payload = decrypt(payload)
    if compressed:
        payload = decompress(payload)
    return json.loads(payload)


__all__ = ("compress", "decompress", "encrypt", "decrypt", "encode", "decode")
