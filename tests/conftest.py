"""Shared fixtures: in-memory database, sessions, app client and callers."""
import pytest
from httpx import ASGITransport, AsyncClient

from nyuchi.api.app import create_app
from nyuchi.core.config.settings import NyuchiConfig
from nyuchi.core.models import SOURCE_MODELS, SubmissionType
from nyuchi.core.security.access import Capability, Role
from nyuchi.core.security.identity import CallerIdentity
from nyuchi.core.storage.database import init_db
from nyuchi.core.storage.repositories import SubmissionRepository

ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Role": "admin"}
MODERATOR_HEADERS = {
    "X-User-Id": "mod-1",
    "X-User-Role": "moderator",
    "X-User-Capabilities": "moderator",
}
REVIEWER_HEADERS = {
    "X-User-Id": "rev-1",
    "X-User-Role": "contributor",
    "X-User-Capabilities": "reviewer",
}
USER_HEADERS = {"X-User-Id": "user-1", "X-User-Role": "user"}

ADMIN = CallerIdentity("admin-1", Role.ADMIN)
MODERATOR = CallerIdentity("mod-1", Role.MODERATOR, frozenset({Capability.MODERATOR}))
REVIEWER = CallerIdentity("rev-1", Role.CONTRIBUTOR, frozenset({Capability.REVIEWER}))
USER = CallerIdentity("user-1", Role.USER)


@pytest.fixture
def config():
    """Configuration backed by an in-memory database."""
    return NyuchiConfig(db_path=":memory:")


@pytest.fixture
def policy(config):
    return config.access_policy()


@pytest.fixture
async def db(config):
    """Create test database."""
    db = init_db(config.get_database_url())
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
async def session(db):
    """Create test session."""
    async with db.session() as session:
        yield session


@pytest.fixture
async def client(config, db):
    """Create test client against the in-memory database."""
    app = create_app(config)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_submission(session):
    """Write a source record and its submission, committed."""

    async def _make(
        submission_type: SubmissionType = SubmissionType.CONTENT,
        submitter_id: str = "author-1",
        title: str = "Harare street food guide",
    ):
        source = SOURCE_MODELS[submission_type](user_id=submitter_id, title=title)
        session.add(source)
        await session.flush()

        submission = await SubmissionRepository(session).register(
            submitter_id, submission_type.value, source.id, title
        )
        await session.commit()
        return submission

    return _make
