"""
Analysis orchestration: one business idea in, one persisted, validated analysis out.
Also serves the read/delete side of analysis history.
"""

import asyncio
import logging
import math
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pymongo.errors import PyMongoError

import guest_sessions
from analysis_contract import validate_analysis
from database import ANALYSES
from errors import AnalysisUnavailable, Forbidden, NotFound, ValidationError
from prompts import build_analysis_prompt
from schemas import AnalysisRecordOut, Identity, Pagination

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 50
RECENT_SEARCHES = 5


@dataclass
class SubmitResult:
    record: dict
    guest_session_id: Optional[str] = None  # tag used for a guest submission
    minted_session_id: Optional[str] = None  # set only when the tag was newly created


def record_out(doc: dict) -> dict:
    return AnalysisRecordOut.model_validate(doc).model_dump(by_alias=True)


class AnalysisOrchestrator:
    def __init__(self, db, model_client, max_idea_length: int = 1000, model_timeout: float = 60.0):
        self.db = db
        self.model_client = model_client
        self.max_idea_length = max_idea_length
        self.model_timeout = model_timeout

    def validate_idea(self, text: Optional[str]) -> str:
        idea = text.strip() if isinstance(text, str) else ""
        if not idea:
            raise ValidationError("Please provide a business idea to analyze", "business_idea_required")
        if len(idea) > self.max_idea_length:
            raise ValidationError(
                f"Please limit your business idea to {self.max_idea_length} characters",
                "business_idea_too_long",
            )
        return idea

    async def _invoke_model(self, idea: str) -> str:
        prompt = build_analysis_prompt(idea)
        try:
            return await asyncio.wait_for(self.model_client.generate(prompt), timeout=self.model_timeout)
        except asyncio.TimeoutError:
            logger.error(f"Model call timed out after {self.model_timeout}s")
            raise AnalysisUnavailable("Analysis service is temporarily unavailable")
        except Exception as e:
            logger.error(f"Model call failed: {type(e).__name__}: {e}")
            raise AnalysisUnavailable("Analysis service is temporarily unavailable")

    async def submit(self, text: Optional[str], identity: Optional[Identity], session_id: Optional[str] = None) -> SubmitResult:
        """
        Analyze `text` for the caller. Authenticated callers own the record
        directly; guests get it tagged with their (possibly new) session id.
        """
        idea = self.validate_idea(text)

        if identity is not None:
            owner, tag, minted = identity.user_id, None, False
        else:
            tag, minted = guest_sessions.ensure(session_id)
            owner = None
            if minted:
                logger.info(f"Minted guest session {tag}")

        logger.info(f"Analyzing business idea: {idea[:100]}...")
        raw_output = await self._invoke_model(idea)

        model_version = getattr(self.model_client, "model_version", "unknown")
        analysis = validate_analysis(raw_output, idea, model_version)
        if analysis.metadata.fallback:
            logger.warning("Stored analysis uses the fallback payload")

        doc = {
            "record_id": f"analysis_{uuid.uuid4().hex[:16]}",
            "user_id": owner,
            "session_id": tag,
            "business_idea": idea,
            "analysis": analysis.to_document(),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await self.db[ANALYSES].insert_one(doc)
        except PyMongoError as e:
            logger.error(f"Failed to persist analysis: {type(e).__name__}: {e}")
            raise AnalysisUnavailable("Analysis service is temporarily unavailable")

        doc.pop("_id", None)
        return SubmitResult(
            record=doc,
            guest_session_id=tag,
            minted_session_id=tag if minted else None,
        )

    async def history(self, user_id: str, page: int = 1, limit: int = 10) -> dict:
        """Newest-first page of the user's analyses"""
        page = max(1, page)
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        skip = (page - 1) * limit

        docs = await self.db[ANALYSES].find(
            {"user_id": user_id},
            {"_id": 0},
        ).sort("created_at", -1).skip(skip).limit(limit).to_list(limit)
        total_count = await self.db[ANALYSES].count_documents({"user_id": user_id})
        total_pages = math.ceil(total_count / limit)

        pagination = Pagination(
            current_page=page,
            total_pages=total_pages,
            total_count=total_count,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
        return {
            "records": [record_out(doc) for doc in docs],
            "pagination": pagination.model_dump(by_alias=True),
        }

    async def get_record(self, record_id: str, identity: Optional[Identity]) -> dict:
        # users see their own records, guests only see unclaimed ones
        owner = identity.user_id if identity else None
        doc = await self.db[ANALYSES].find_one({"record_id": record_id, "user_id": owner}, {"_id": 0})
        if not doc:
            raise NotFound("The requested analysis could not be found")
        return record_out(doc)

    async def delete_record(self, record_id: str, user_id: str) -> None:
        doc = await self.db[ANALYSES].find_one({"record_id": record_id}, {"_id": 0, "user_id": 1})
        if not doc:
            raise NotFound("The requested analysis could not be found")
        if doc.get("user_id") != user_id:
            raise Forbidden("This analysis does not belong to you")

        result = await self.db[ANALYSES].delete_one({"record_id": record_id, "user_id": user_id})
        if result.deleted_count == 0:
            raise NotFound("The requested analysis could not be found")
        logger.info(f"Deleted analysis {record_id} for {user_id}")

    async def dashboard_stats(self, user_id: str) -> dict:
        total = await self.db[ANALYSES].count_documents({"user_id": user_id})
        recent_docs = await self.db[ANALYSES].find(
            {"user_id": user_id},
            {"_id": 0, "record_id": 1, "business_idea": 1, "created_at": 1, "analysis.viabilityScore": 1},
        ).sort("created_at", -1).limit(RECENT_SEARCHES).to_list(RECENT_SEARCHES)

        recent = [
            {
                "recordId": doc["record_id"],
                "businessIdea": doc["business_idea"],
                "createdAt": doc["created_at"],
                "viabilityScore": (doc.get("analysis") or {}).get("viabilityScore"),
            }
            for doc in recent_docs
        ]
        return {
            "totalSearches": total,
            "recentSearches": recent,
            # no category aggregation yet; kept for the client contract
            "topCategories": [],
        }
