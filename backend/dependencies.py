"""
Shared service container.

Everything process-wide (settings, db handle, token signer, model client) is
built once in create_app and hung off app.state; route handlers reach it
through get_services instead of module globals.
"""

from dataclasses import dataclass

from fastapi import Request

from account_service import AccountService
from analysis_service import AnalysisOrchestrator
from claim_service import ClaimService
from config import Settings
from token_service import TokenService


@dataclass(frozen=True)
class Services:
    settings: Settings
    db: object
    tokens: TokenService
    accounts: AccountService
    orchestrator: AnalysisOrchestrator
    claims: ClaimService


def get_services(request: Request) -> Services:
    return request.app.state.services
