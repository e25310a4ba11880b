"""
Guest session ids.

A guest session id is held by the client only. The server never stores it on
its own; it only appears as the `session_id` tag on analysis records created
before the visitor authenticated. Clearing it is the client's job: after a
successful claim (or on logout) the client drops its copy so it does not keep
tagging new records with an id that has already been claimed.
"""

import time
import uuid
from typing import Optional, Tuple

GUEST_PREFIX = "guest_"


def new_session_id() -> str:
    # millisecond clock + uuid4 randomness
    return f"{GUEST_PREFIX}{int(time.time() * 1000):x}_{uuid.uuid4().hex}"


def ensure(candidate: Optional[str]) -> Tuple[str, bool]:
    """Echo the caller's session id, or mint one. Returns (session_id, minted)."""
    if isinstance(candidate, str) and candidate.strip():
        return candidate, False
    return new_session_id(), True
