"""
MongoDB collections and indexes.

users         one document per account, unique on email
analyses      one document per analysis; exactly one of user_id / session_id is set
guest_claims  one document per claimed guest session id (_id = session id)
"""

import logging

from pymongo import ASCENDING, DESCENDING

logger = logging.getLogger(__name__)

USERS = "users"
ANALYSES = "analyses"
GUEST_CLAIMS = "guest_claims"


async def ensure_indexes(db) -> None:
    """Create the indexes the services rely on (idempotent)"""
    await db[USERS].create_index([("email", ASCENDING)], unique=True)
    await db[USERS].create_index([("user_id", ASCENDING)], unique=True)
    await db[ANALYSES].create_index([("record_id", ASCENDING)], unique=True)
    await db[ANALYSES].create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    await db[ANALYSES].create_index([("session_id", ASCENDING)])
    logger.info("MongoDB indexes ensured")
