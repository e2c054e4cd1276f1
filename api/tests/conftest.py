import os
import tempfile

# Settings are read at import time, so the environment must be in place first
_TMP_ROOT = tempfile.mkdtemp(prefix="noteshare-tests-")
os.environ.setdefault("ENV", "test")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_ROOT, "uploads")
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_LEVEL"] = "WARNING"

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from noteshare.config.database import configure_sqlite_connection, get_db, init_db
from noteshare.main import app
from noteshare.services.ai_service import QuizService, get_quiz_service, get_quote_service
from noteshare.utils.file_utils import FileStorage, get_file_storage


class FakeChatModel:
    """Chat model stand-in that replays scripted answers or errors"""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def invoke(self, prompt):
        self.prompts.append(prompt)
        if not self.responses:
            raise RuntimeError("no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(content=response)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", configure_sqlite_connection)
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def storage(tmp_path):
    return FileStorage(str(tmp_path / "uploads"))


@pytest.fixture
def chat_model():
    return FakeChatModel()


@pytest.fixture
def client(engine, storage, chat_model):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        db = Session()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_storage] = lambda: storage
    app.dependency_overrides[get_quiz_service] = lambda: QuizService(chat_model)
    app.dependency_overrides[get_quote_service] = lambda: QuizService(chat_model)

    yield TestClient(app)

    app.dependency_overrides.clear()


# ────────────────────────────────────────────────────────────────────
#  Helpers
# ────────────────────────────────────────────────────────────────────
def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register_user(client, email="a@x.edu", password="secret123", name="Alice", college=None) -> dict:
    payload = {"email": email, "password": password, "name": name}
    if college is not None:
        payload["college"] = college
    response = client.post("/api/register", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def upload_note(
    client,
    token,
    title="Calc Notes",
    course="BE/BTech",
    subject="Engineering Mathematics",
    semester="3",
    description="Limits and derivatives",
    filename="calc.pdf",
    content=b"%PDF-1.4 calculus notes",
    content_type="application/pdf",
) -> int:
    data = {"title": title, "course": course, "subject": subject}
    if semester is not None:
        data["semester"] = semester
    if description is not None:
        data["description"] = description
    response = client.post(
        "/api/notes",
        data=data,
        files={"file": (filename, content, content_type)},
        headers=auth_header(token),
    )
    assert response.status_code == 200, response.text
    return response.json()["id"]
