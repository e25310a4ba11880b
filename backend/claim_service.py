"""
Guest-to-account claim.

Moves every analysis tagged with a guest session id to a freshly authenticated
user. Two things keep this exactly-once without an application lock:

- the session id is first reserved for the user with a single insert into
  guest_claims (unique _id), so two users racing on one session id cannot
  both proceed; the loser claims 0
- the transfer itself is one conditional update_many (session_id matches and
  user_id is still null), so a retry after a timeout simply matches 0 records
"""

import logging
from datetime import datetime, timezone

from pymongo.errors import DuplicateKeyError

from database import ANALYSES, GUEST_CLAIMS
from errors import ValidationError

logger = logging.getLogger(__name__)


class ClaimService:
    def __init__(self, db):
        self.db = db

    async def _reserve(self, session_id: str, user_id: str) -> bool:
        """True if this user holds (or now takes) the claim on session_id"""
        try:
            await self.db[GUEST_CLAIMS].insert_one({
                "_id": session_id,
                "user_id": user_id,
                "claimed_at": datetime.now(timezone.utc).isoformat(),
            })
            return True
        except DuplicateKeyError:
            existing = await self.db[GUEST_CLAIMS].find_one({"_id": session_id})
            return bool(existing) and existing.get("user_id") == user_id

    async def claim(self, session_id: str, user_id: str) -> int:
        """Transfer guest records under session_id to user_id. Returns how many moved."""
        if not isinstance(session_id, str) or not session_id.strip():
            raise ValidationError("Session ID is required", "session_id_required")

        if not await self._reserve(session_id, user_id):
            logger.warning(f"Guest session {session_id} already claimed by another account")
            return 0

        result = await self.db[ANALYSES].update_many(
            {"session_id": session_id, "user_id": None},
            {"$set": {
                "user_id": user_id,
                "session_id": None,
                "claimed_at": datetime.now(timezone.utc).isoformat(),
            }},
        )
        claimed = result.modified_count
        logger.info(f"Claimed {claimed} guest analyses from session {session_id} for {user_id}")
        return claimed
