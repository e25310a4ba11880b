"""
Per-route identity policy.

public    no dependency, identity is never looked at
optional  Depends(optional_identity): a bad or missing token means "guest"
required  Depends(require_identity): a bad or missing token is a 401
"""

import logging
from typing import Optional

from fastapi import Depends, Header

from dependencies import Services, get_services
from errors import Unauthorized
from schemas import Identity
from token_service import bearer_token

logger = logging.getLogger(__name__)


async def resolve_identity(authorization: Optional[str], services: Services) -> Optional[Identity]:
    user_id = services.tokens.verify(bearer_token(authorization))
    if not user_id:
        return None
    return await services.accounts.find_identity(user_id)


async def optional_identity(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> Optional[Identity]:
    """Dependency for guest-friendly routes"""
    identity = await resolve_identity(authorization, services)
    if identity is None and authorization:
        logger.info("Ignoring invalid bearer token, continuing as guest")
    return identity


async def require_identity(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> Identity:
    """Dependency for routes that need a logged-in user"""
    if not bearer_token(authorization):
        raise Unauthorized("Please log in to access this resource")
    identity = await resolve_identity(authorization, services)
    if identity is None:
        raise Unauthorized("Invalid or expired credentials")
    return identity
