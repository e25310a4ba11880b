"""
Account routes: signup, login, guest claim and profile.
"""

from fastapi import APIRouter, Depends

from access_policy import require_identity
from dependencies import Services, get_services
from schemas import ClaimRequest, Identity, LoginRequest, SignupRequest

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])


@auth_router.post("/signup", status_code=201)
async def signup(request: SignupRequest, services: Services = Depends(get_services)):
    """Register a new user with email/password"""
    user, token = await services.accounts.signup(request.email, request.password, request.name)
    return {
        "message": "Account created successfully",
        "user": user,
        "token": token,
    }


@auth_router.post("/login")
async def login(request: LoginRequest, services: Services = Depends(get_services)):
    """Login with email/password"""
    user, token = await services.accounts.login(request.email, request.password)
    return {
        "message": "Login successful",
        "user": user,
        "token": token,
    }


@auth_router.post("/claim-profile")
async def claim_profile(
    request: ClaimRequest,
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
):
    """Link the analyses of a guest session to the logged-in account"""
    claimed = await services.claims.claim(request.session_id, identity.user_id)
    return {
        "message": "Profile claimed successfully",
        "claimedCount": claimed,
    }


@auth_router.get("/profile")
async def get_profile(
    identity: Identity = Depends(require_identity),
    services: Services = Depends(get_services),
):
    return {"user": await services.accounts.profile(identity.user_id)}
