"""
Email/password accounts: signup, login and profile lookups over the users collection.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Optional, Tuple

from passlib.context import CryptContext
from pymongo.errors import DuplicateKeyError

from database import ANALYSES, USERS
from errors import Conflict, NotFound, Unauthorized, ValidationError
from schemas import Identity, UserPublic
from token_service import TokenService

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid email or password"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def build_password_context(rounds: int = 12) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


class AccountService:
    def __init__(self, db, pwd_context: CryptContext, tokens: TokenService):
        self.db = db
        self.pwd_context = pwd_context
        self.tokens = tokens
        self._dummy_hash: Optional[str] = None

    # bcrypt runs in a worker thread so a hash does not stall the event loop
    async def _hash_password(self, password: str) -> str:
        return await asyncio.to_thread(self.pwd_context.hash, password)

    async def _verify_password(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.pwd_context.verify, password, password_hash)

    async def _timing_hash(self) -> str:
        # verified against when the email is unknown so both login failures cost one bcrypt check
        if self._dummy_hash is None:
            self._dummy_hash = await self._hash_password(uuid.uuid4().hex)
        return self._dummy_hash

    async def signup(self, email: str, password: str, name: str) -> Tuple[dict, str]:
        """Create an email/password account and return (public user, token)"""
        email = normalize_email(email)
        name = (name or "").strip()

        if not name:
            raise ValidationError("Name is required", "name_required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
                "password_too_short",
            )

        existing_user = await self.db[USERS].find_one({"email": email}, {"_id": 0})
        if existing_user:
            raise Conflict("An account with this email already exists")

        user_doc = {
            "user_id": f"user_{uuid.uuid4().hex[:12]}",
            "email": email,
            "name": name,
            "password_hash": await self._hash_password(password),
            "auth_type": "email",
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self.db[USERS].insert_one(user_doc)
        except DuplicateKeyError:
            # lost a race with a concurrent signup for the same email
            raise Conflict("An account with this email already exists")

        logger.info(f"New account created: {user_doc['user_id']}")
        token = self.tokens.issue(user_doc["user_id"])
        return public_user(user_doc), token

    async def login(self, email: str, password: str) -> Tuple[dict, str]:
        """Unknown email and wrong password fail identically"""
        user = await self.db[USERS].find_one({"email": normalize_email(email)}, {"_id": 0})

        if not user or not user.get("password_hash"):
            await self._verify_password(password or "", await self._timing_hash())
            raise Unauthorized(INVALID_CREDENTIALS, reason="invalid_credentials")

        if not await self._verify_password(password or "", user["password_hash"]):
            raise Unauthorized(INVALID_CREDENTIALS, reason="invalid_credentials")

        token = self.tokens.issue(user["user_id"])
        return public_user(user), token

    async def find_identity(self, user_id: str) -> Optional[Identity]:
        user = await self.db[USERS].find_one({"user_id": user_id}, {"_id": 0, "password_hash": 0})
        if not user:
            return None
        return Identity(user_id=user["user_id"], email=user["email"], name=user["name"])

    async def profile(self, user_id: str) -> dict:
        user = await self.db[USERS].find_one({"user_id": user_id}, {"_id": 0, "password_hash": 0})
        if not user:
            raise NotFound("User not found")
        profile = public_user(user)
        profile["totalSearches"] = await self.db[ANALYSES].count_documents({"user_id": user_id})
        return profile


def public_user(user_doc: dict) -> dict:
    return UserPublic.model_validate(user_doc).model_dump(by_alias=True)
