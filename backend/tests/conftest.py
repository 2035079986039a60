import pytest
from fastapi.testclient import TestClient

from todo_service.config import Settings
from todo_service.main import create_app
from todo_service.seed import seed_categories

DEFAULT_PASSWORD = "password1"


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        database_url="sqlite://",
        environment="test",
        bcrypt_rounds=4,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        with app.state.session_factory() as db:
            seed_categories(db)
        yield c


@pytest.fixture
def db(app, client):
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def register(client):
    """Sign up + log in; returns token, userId and ready-made bearer headers."""
    def _register(email, password=DEFAULT_PASSWORD):
        r = client.post("/api/auth/signup", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        r = client.post("/api/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        # the login cookie would otherwise authenticate every later request
        client.cookies.clear()
        body = r.json()
        body["headers"] = {"Authorization": f"Bearer {body['token']}"}
        return body
    return _register
