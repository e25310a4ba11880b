"""
Tests for moving guest analyses to an account.
"""
import asyncio

import pytest

from analysis_service import AnalysisOrchestrator
from claim_service import ClaimService
from conftest import run
from errors import ValidationError
from schemas import Identity

SESSION = "guest_18c2f3a_session"
CAROL = Identity(user_id="user_carol000001", email="carol@example.com", name="Carol")


@pytest.fixture
def claims(db):
    return ClaimService(db)


@pytest.fixture
def orchestrator(db, model_client):
    return AnalysisOrchestrator(db, model_client)


def submit_as_guest(orchestrator, session_id, count=1):
    return [
        run(orchestrator.submit(f"guest idea {i}", None, session_id)).record["record_id"]
        for i in range(count)
    ]


def owners(db, record_ids):
    docs = run(db.analyses.find({"record_id": {"$in": record_ids}}, {"_id": 0}).to_list(100))
    return {doc["record_id"]: (doc["user_id"], doc["session_id"]) for doc in docs}


def test_claim_moves_every_guest_record(claims, orchestrator, db):
    record_ids = submit_as_guest(orchestrator, SESSION, count=3)

    assert run(claims.claim(SESSION, "user_alice00001")) == 3
    assert set(owners(db, record_ids).values()) == {("user_alice00001", None)}


def test_second_claim_moves_nothing(claims, orchestrator, db):
    record_ids = submit_as_guest(orchestrator, SESSION, count=2)

    assert run(claims.claim(SESSION, "user_alice00001")) == 2
    assert run(claims.claim(SESSION, "user_alice00001")) == 0
    assert set(owners(db, record_ids).values()) == {("user_alice00001", None)}


def test_other_sessions_and_owned_records_untouched(claims, orchestrator, db):
    mine = submit_as_guest(orchestrator, SESSION)
    other = submit_as_guest(orchestrator, "guest_someone_else")
    owned = [run(orchestrator.submit("carol's idea", CAROL)).record["record_id"]]

    assert run(claims.claim(SESSION, "user_alice00001")) == 1

    result = owners(db, mine + other + owned)
    assert result[mine[0]] == ("user_alice00001", None)
    assert result[other[0]] == (None, "guest_someone_else")
    assert result[owned[0]] == (CAROL.user_id, None)


def test_claimed_session_cannot_be_taken_by_another_user(claims, orchestrator, db):
    record_ids = submit_as_guest(orchestrator, SESSION)
    run(claims.claim(SESSION, "user_alice00001"))

    # a late guest submission with the same tag stays with the guest
    late = submit_as_guest(orchestrator, SESSION)

    assert run(claims.claim(SESSION, "user_bob0000001")) == 0
    result = owners(db, record_ids + late)
    assert result[record_ids[0]] == ("user_alice00001", None)
    assert result[late[0]] == (None, SESSION)


def test_reserved_session_blocks_second_user(claims, orchestrator, db):
    record_ids = submit_as_guest(orchestrator, SESSION, count=2)

    # alice reserved the session but has not moved anything yet
    assert run(claims._reserve(SESSION, "user_alice00001")) is True
    assert run(claims.claim(SESSION, "user_bob0000001")) == 0
    assert run(claims.claim(SESSION, "user_alice00001")) == 2
    assert set(owners(db, record_ids).values()) == {("user_alice00001", None)}


def test_concurrent_claims_move_each_record_once(claims, orchestrator, db):
    record_ids = submit_as_guest(orchestrator, SESSION, count=4)

    async def race():
        return await asyncio.gather(
            claims.claim(SESSION, "user_alice00001"),
            claims.claim(SESSION, "user_bob0000001"),
            claims.claim(SESSION, "user_alice00001"),
        )

    counts = run(race())

    assert sum(counts) == 4
    assert sorted(counts) == [0, 0, 4]
    winners = {owner for owner, _ in owners(db, record_ids).values()}
    assert len(winners) == 1


def test_session_without_records_claims_zero(claims):
    assert run(claims.claim("guest_never_used", "user_alice00001")) == 0


@pytest.mark.parametrize("session_id", ["", "   ", None])
def test_blank_session_rejected(claims, session_id):
    with pytest.raises(ValidationError) as exc:
        run(claims.claim(session_id, "user_alice00001"))
    assert exc.value.constraint == "session_id_required"
