#!/usr/bin/env python3
"""
Entity Id Generation

Ids are derived from the *business* time of the record, not from when it was
inserted: ``yyyyMMddHHmmssSSS_xxxx``. Sorting ids therefore sorts records
chronologically, even for historical imports written in one burst.
"""

import random
import string
from datetime import datetime, timedelta

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SUFFIX_LENGTH = 4


def generate_id(when: datetime | None = None, offset: int = 0) -> str:
    """
    Generate an id from a business datetime.

    Args:
        when: Business time of the record (default: now)
        offset: Index within a batch, added as milliseconds so records sharing
                one minute still sort in batch order

    Returns:
        Id string such as ``"20171101000100003_k2x9"``
    """
    base = when if when is not None else datetime.now()
    shifted = base + timedelta(milliseconds=offset)
    time_part = shifted.strftime("%Y%m%d%H%M%S") + f"{shifted.microsecond // 1000:03d}"
    suffix = "".join(random.choices(_SUFFIX_ALPHABET, k=_SUFFIX_LENGTH))
    return f"{time_part}_{suffix}"
