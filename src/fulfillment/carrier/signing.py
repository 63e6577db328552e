"""Request signing for the J&T Express open API.

The carrier authenticates a request by the ``data_digest`` form field:
``base64(md5(logistics_interface + private_key))``. The body must be
serialized exactly once and that same string both sent and signed.
"""

import base64
import hashlib
import hmac
import json


def canonical_json(content: dict) -> str:
    """Sorted keys, no whitespace, non-ASCII characters kept as UTF-8."""
    return json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sign(content: str, private_key: str) -> str:
    digest = hashlib.md5((content + private_key).encode("utf-8")).digest()  # noqa: S324
    return base64.b64encode(digest).decode("ascii")


def verify(content: str, signature: str, private_key: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(sign(content, private_key), signature)
