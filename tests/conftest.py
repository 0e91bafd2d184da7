"""Shared test fixtures."""

import asyncio

import pytest

from src.db.session import Store
from src.services.auth_service import AuthClient
from src.services.flashcard_service import create_flashcard
from src.services.study_set_service import create_study_set

PASSWORD = "secret123"


@pytest.fixture
def store():
    """In-memory store with every table created."""
    s = Store("sqlite://", echo=False).connect()
    yield s
    s.dispose()


@pytest.fixture
def auth(store):
    return AuthClient(store, secret_key="test-secret")


@pytest.fixture
def user(auth):
    return asyncio.run(auth.sign_up("ana@example.com", PASSWORD)).unwrap()


@pytest.fixture
def other_user(auth):
    return asyncio.run(auth.sign_up("bruno@example.com", PASSWORD)).unwrap()


@pytest.fixture
def token(auth, user):
    return asyncio.run(auth.sign_in(user.email, PASSWORD)).unwrap().access_token


def make_study_set(store, user_id, title="Biology", terms=()):
    """Create a study set with one card per term (positions 0..n-1)."""
    async def build():
        study_set = (await create_study_set(store, user_id, title)).unwrap()
        cards = [
            (await create_flashcard(store, study_set.id, term, f"{term} definition")).unwrap()
            for term in terms
        ]
        return study_set, cards
    return asyncio.run(build())


def break_store(store, *tables):
    """Drop tables so that queries touching them fail inside the store."""
    with store.engine.begin() as conn:
        for table in tables:
            conn.exec_driver_sql(f"DROP TABLE {table}")


@pytest.fixture
def biology(store, user):
    """Study set with three cards at positions 0, 1, 2."""
    return make_study_set(store, user.id, "Biology", ["cell", "gene", "enzyme"])
