# llamaio/utils/object_id.py
"""
Document identifiers.

Ids are 24 hex characters: a 4-byte seconds timestamp, a 5-byte value chosen
once per process and a 3-byte counter, so sorting ids sorts by creation.
"""

import os
import re
import threading
import time
from typing import Any

_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")

_process_unique = os.urandom(5)
_counter = int.from_bytes(os.urandom(3), "big")
_counter_lock = threading.Lock()


def new_object_id() -> str:
    """Generate a new 24-character hex id"""
    global _counter
    with _counter_lock:
        _counter = (_counter + 1) % 0x1000000
        count = _counter
    raw = (
        int(time.time()).to_bytes(4, "big")
        + _process_unique
        + count.to_bytes(3, "big")
    )
    return raw.hex()


def is_valid_object_id(value: Any) -> bool:
    return isinstance(value, str) and bool(_OBJECT_ID_RE.match(value))
