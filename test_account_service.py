import threading

import pytest

from account_service import AccountService, build_password_context
from conftest import run
from errors import Unauthorized
from token_service import TokenService


class RecordingContext:
    """Wraps a CryptContext and notes which thread each bcrypt call ran on"""

    def __init__(self, inner):
        self.inner = inner
        self.threads = []

    def hash(self, secret):
        self.threads.append(threading.get_ident())
        return self.inner.hash(secret)

    def verify(self, secret, hashed):
        self.threads.append(threading.get_ident())
        return self.inner.verify(secret, hashed)


@pytest.fixture
def pwd_context():
    return RecordingContext(build_password_context(rounds=4))


@pytest.fixture
def accounts(db, pwd_context):
    return AccountService(db, pwd_context, TokenService("test-secret"))


def test_bcrypt_runs_off_the_event_loop_thread(accounts, pwd_context):
    loop_thread = threading.get_ident()

    run(accounts.signup("asha@example.com", "secret123", "Asha"))
    run(accounts.login("asha@example.com", "secret123"))
    with pytest.raises(Unauthorized):
        run(accounts.login("nobody@example.com", "secret123"))

    # signup hash, login verify, dummy hash and its verify
    assert len(pwd_context.threads) == 4
    assert loop_thread not in pwd_context.threads


def test_stored_hash_verifies(accounts, db):
    user, token = run(accounts.signup("Asha@Example.com", "secret123", "Asha"))
    stored = run(db.users.find_one({"email": "asha@example.com"}))

    assert stored["password_hash"] != "secret123"
    assert run(accounts.login("asha@example.com", "secret123"))[0]["id"] == user["id"]


def test_wrong_password_and_unknown_email_match(accounts):
    run(accounts.signup("asha@example.com", "secret123", "Asha"))

    with pytest.raises(Unauthorized) as wrong_password:
        run(accounts.login("asha@example.com", "wrong-pass"))
    with pytest.raises(Unauthorized) as unknown_email:
        run(accounts.login("nobody@example.com", "secret123"))

    assert wrong_password.value.to_dict() == unknown_email.value.to_dict()
