import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.dependencies import get_current_user
from app.core.policies import Actor
from app.database.session import Base, build_engine, get_db, init_db
from app.main import app
from app.modules.notifications.models import NotificationSetting
from app.modules.profiles.models import Profile
from app.modules.projects.schemas import MemberInvite, ProjectCreate
from app.modules.projects.service import MemberService, ProjectService


@pytest.fixture(name="engine")
def engine_fixture():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session_factory")
def session_factory_fixture(engine):
    return sessionmaker(autocommit=False, bind=engine, future=True, expire_on_commit=False)


@pytest.fixture(name="db")
def db_fixture(session_factory):
    session = session_factory()
    yield session
    session.close()


def _make_user(db, name: str) -> Actor:
    user_id = f"{name}-0000-0000-0000-000000000000"[:36]
    email = f"{name}@example.com"
    db.add(Profile(user_id=user_id, name=name.title(), email=email, skills=[], current_projects=[]))
    db.add(NotificationSetting(user_id=user_id))
    db.commit()
    return Actor(id=user_id, email=email)


@pytest.fixture(name="alice")
def alice_fixture(db):
    return _make_user(db, "alice")


@pytest.fixture(name="bob")
def bob_fixture(db):
    return _make_user(db, "bob")


@pytest.fixture(name="carol")
def carol_fixture(db):
    return _make_user(db, "carol")


@pytest.fixture(name="make_project")
def make_project_fixture(db):
    def _make(owner: Actor, **fields):
        fields.setdefault("title", "Food forest")
        return ProjectService(db).create_project(owner, ProjectCreate(**fields))
    return _make


@pytest.fixture(name="add_member")
def add_member_fixture(db):
    """Invite `invitee` to `project` and, unless accept=None, answer the invitation."""
    def _add(owner: Actor, project, invitee: Actor, role: str = "contributor", accept=True):
        member = MemberService(db).invite_member(owner, project.id, MemberInvite(email=invitee.email, role=role))
        if accept is not None:
            member = MemberService(db).respond(invitee, member.id, accept)
        return member
    return _add


@pytest.fixture(name="client")
def client_fixture(session_factory):
    def get_db_override():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = get_db_override
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(name="login")
def login_fixture(client):
    """Authenticate subsequent requests as the given actor."""
    def _login(actor: Actor):
        app.dependency_overrides[get_current_user] = lambda: {
            "id": actor.id,
            "email": actor.email,
            "user_metadata": {},
        }
        return client
    return _login
