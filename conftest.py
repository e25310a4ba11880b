import asyncio
import json
import uuid

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from config import Settings
from server import create_app

SAMPLE_ANALYSIS = {
    "viabilityScore": {
        "overall": 72,
        "market": 78,
        "financial": 65,
        "regulatory": 70,
        "explanation": "Strong delivery demand in Mumbai, thin margins after aggregator commissions.",
    },
    "targetAudience": {
        "primary": "Working professionals aged 22-40 in Mumbai",
        "secondary": "College students and PG residents",
        "marketSize": "₹4,000 crore cloud kitchen market in Mumbai",
        "demographics": ["Urban millennials", "Dual-income households"],
    },
    "competitorLandscape": {
        "directCompetitors": ["Rebel Foods", "Box8"],
        "indirectCompetitors": ["Local dine-in restaurants", "Tiffin services"],
        "marketGap": "Healthy regional meals under ₹200",
        "competitiveAdvantage": "Hyperlocal menu with 25 minute delivery",
    },
    "mandatoryLicenses": [
        {
            "name": "FSSAI License",
            "authority": "Food Safety and Standards Authority of India",
            "timeline": "30-60 days",
            "cost": "₹2,000 - ₹7,500",
            "priority": "High",
            "description": "Mandatory food business license",
        }
    ],
    "roadmap": [
        {
            "phase": "Phase 1: Foundation",
            "duration": "1-2 months",
            "tasks": ["Lease kitchen space", "Apply for FSSAI"],
            "milestones": ["Kitchen ready"],
            "estimatedCost": "₹5,00,000 - ₹8,00,000",
        }
    ],
    "financialProjection": {
        "initialInvestment": "₹10,00,000 - ₹15,00,000",
        "monthlyOperatingCost": "₹2,50,000",
        "breakEvenTimeline": "12-18 months",
        "revenueStreams": ["Aggregator orders", "Direct orders"],
    },
    "riskAssessment": {
        "high": ["Aggregator commission hikes"],
        "medium": ["Food cost inflation"],
        "low": ["Seasonal demand dips"],
        "mitigation": "Build a direct ordering channel early",
    },
    "governmentSchemes": [
        {
            "name": "MUDRA Loan",
            "type": "Government",
            "eligibility": "Micro enterprises",
            "benefits": "Collateral-free loans up to ₹10 lakhs",
            "applicationProcess": "Apply through participating banks",
        }
    ],
    "nextSteps": {
        "immediate": "Validate menu pricing with 50 test customers",
        "shortTerm": "Secure FSSAI license and onboard aggregators",
        "longTerm": "Open a second kitchen in Pune",
    },
}

TOP_LEVEL_FIELDS = [
    "viabilityScore",
    "targetAudience",
    "competitorLandscape",
    "mandatoryLicenses",
    "roadmap",
    "financialProjection",
    "riskAssessment",
    "governmentSchemes",
    "nextSteps",
    "_metadata",
]


class FakeModelClient:
    """Scripted stand-in for GeminiClient"""

    model_version = "fake-gemini-test"

    def __init__(self, response=None, error=None, delay=0.0):
        self.response = response if response is not None else json.dumps(SAMPLE_ANALYSIS)
        self.error = error
        self.delay = delay
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


def run(coro):
    return asyncio.run(coro)


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def signup_user(client, email=None, password="secret123", name="Asha Rao"):
    email = email or f"user_{uuid.uuid4().hex[:8]}@example.com"
    response = client.post("/api/auth/signup", json={"email": email, "password": password, "name": name})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        model_timeout_seconds=2.0,
        environment="test",
    )


@pytest.fixture
def db():
    return AsyncMongoMockClient()["idea_analyzer_test"]


@pytest.fixture
def model_client():
    return FakeModelClient()


@pytest.fixture
def app(settings, db, model_client):
    return create_app(settings, database=db, model_client=model_client)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client
