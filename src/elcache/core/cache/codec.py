"""
Cache File Codec

Encodes a store to the on-disk payload and back. The payload is wrapped in a
fixed prefix and suffix that make the file inert if a PHP interpreter ever
executes it::

    <?php /* {"key":[value,expiry],...} */ ?>

The payload itself is compact JSON with sorted keys, so equal stores always
encode to the same bytes and the payload hash can serve as a dirty marker.
"""

import hashlib
import json
import math
from typing import Any, Dict, Tuple

from elcache.core.exceptions import CacheDecodeError


PREFIX = b"<?php /* "
SUFFIX = b" */ ?>"
EMPTY_PAYLOAD = b"{}"


def encode_store(store: Dict[str, Tuple[Any, float]]) -> bytes:
    """Serialize a store to payload bytes."""
    data = {key: [value, expiry] for key, (value, expiry) in store.items()}
    return json.dumps(
        data,
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=False,
        allow_nan=False,
    ).encode('utf-8')


def decode_store(payload: bytes) -> Dict[str, Tuple[Any, float]]:
    """
    Deserialize payload bytes into a store.

    Entries that are not ``[value, expiry]`` pairs, that carry a null value
    or a non-numeric expiry are dropped one by one; the rest of the store is
    kept.

    Raises:
        CacheDecodeError: If the payload is not JSON or not a mapping
    """
    try:
        data = json.loads(payload.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise CacheDecodeError(f"Cache payload is not decodable: {e}", cause=e)

    if not isinstance(data, dict):
        raise CacheDecodeError(
            f"Cache payload decodes to {type(data).__name__}, expected a mapping"
        )

    store = {}
    for key, item in data.items():
        if not isinstance(item, list) or len(item) != 2:
            continue
        value, expiry = item
        if value is None or isinstance(expiry, bool):
            continue
        if not isinstance(expiry, (int, float)) or not math.isfinite(expiry):
            continue
        store[key] = (value, expiry)
    return store


def frame(payload: bytes) -> bytes:
    """Wrap a payload in the file prefix and suffix."""
    return PREFIX + payload + SUFFIX


def unframe(content: bytes) -> bytes:
    """
    Strip the prefix and suffix from file content.

    Content that does not carry the framing is returned with the same fixed
    number of bytes cut from each end; the decoder then rejects it.
    """
    if len(content) < len(PREFIX) + len(SUFFIX):
        return b""
    return content[len(PREFIX):len(content) - len(SUFFIX)]


def payload_hash(payload: bytes) -> str:
    """Content hash used as the dirty marker."""
    return hashlib.sha256(payload).hexdigest()
