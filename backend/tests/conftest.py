# backend/tests/conftest.py
import os
import pathlib
import shutil
import sys
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

# -------------------------------------------------------------------------------------------------
# Path & environment setup (must happen BEFORE importing the app)
# -------------------------------------------------------------------------------------------------

# Ensure project root (backend/) is importable
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TMP_ROOT = pathlib.Path(tempfile.mkdtemp(prefix="interview_tests_"))
TEST_DB_URL = f"sqlite:///{TMP_ROOT / 'test.sqlite'}"
UPLOAD_DIR = TMP_ROOT / "uploads"

os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["UPLOAD_DIR"] = str(UPLOAD_DIR)
os.environ["AI_PROVIDER"] = "stub"
os.environ["STT_PROVIDER"] = "none"
os.environ["TTS_PROVIDER"] = "none"
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "100000")
os.environ.setdefault("TEST_PLAINTEXT_PASSWORDS", "1")
os.environ.setdefault("LOG_LEVEL", "WARNING")


# -------------------------------------------------------------------------------------------------
# Import app & modules AFTER env vars
# -------------------------------------------------------------------------------------------------
from main import app  # noqa: E402
from ai.results import AIResult  # noqa: E402
from ai.text_service import AITextService  # noqa: E402
from api import deps  # noqa: E402
from core import security  # noqa: E402
from core.errors import SpeechError  # noqa: E402
from db import models as m  # noqa: E402
from db.session import Base, make_engine  # noqa: E402
from schemas.ai import Evaluation  # noqa: E402
from services.interview_engine import InterviewEngine  # noqa: E402

# -------------------------------------------------------------------------------------------------
# Test DB engine + session factory (foreign keys on, so cascades behave as in production)
# -------------------------------------------------------------------------------------------------
engine = make_engine(TEST_DB_URL)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function", autouse=True)
def reset_db():
    """Drop + recreate DB before each test function to ensure isolation"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(scope="function", autouse=True)
def clean_uploads():
    yield
    shutil.rmtree(UPLOAD_DIR, ignore_errors=True)


@pytest.fixture(scope="function")
def session_factory():
    """Open extra sessions on the test DB; each is closed after the test."""
    opened = []

    def _open():
        s = TestingSessionLocal()
        opened.append(s)
        return s
    yield _open
    for s in opened:
        s.close()


@pytest.fixture(scope="function")
def db():
    """Yield a fresh DB session per test function."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _override_get_db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


app.dependency_overrides[deps.get_db] = _override_get_db


# -------------------------------------------------------------------------------------------------
# Fake collaborators (no network, no audio stack)
# -------------------------------------------------------------------------------------------------
def make_evaluation(score: float) -> Evaluation:
    return Evaluation(
        relevance=score,
        clarity=score,
        completeness=score,
        technical_accuracy=score,
        overall_score=score,
        strengths=["Clear structure"],
        improvements=["Add measurable results"],
        detailed_feedback=f"Scored {score}/10",
    )


class ScriptedAI(AITextService):
    """Offline provider with scriptable evaluation scores and failures."""

    def __init__(self):
        super().__init__(provider="stub")
        self.scores = []
        self.evaluation_result = None
        self.questions_result = None
        self.overall_result = None
        self.parse_result = None
        self.evaluation_calls = 0

    def parse_resume(self, resume_text):
        if self.parse_result is not None:
            return self.parse_result
        return super().parse_resume(resume_text)

    def generate_questions(self, work_experience, count):
        if self.questions_result is not None:
            return self.questions_result
        return super().generate_questions(work_experience, count)

    def evaluate_response(self, question, response, skills, work_experience):
        self.evaluation_calls += 1
        if self.evaluation_result is not None:
            return self.evaluation_result
        if self.scores:
            return AIResult.success(make_evaluation(self.scores.pop(0)))
        return super().evaluate_response(question, response, skills, work_experience)

    def generate_overall_feedback(self, items, profile):
        if self.overall_result is not None:
            return self.overall_result
        return super().generate_overall_feedback(items, profile)


class FakeSTT:
    enabled = True

    def __init__(self, text="Transcribed answer about scaling Python services", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def transcribe(self, path):
        self.calls.append(path)
        if self.error:
            raise SpeechError(self.error)
        return self.text


class FakeTTS:
    enabled = True

    def __init__(self, fail_for=()):
        self.fail_for = set(fail_for)
        self.requested = []

    def synthesize(self, text, voice_id=None):
        return b"ID3fake-mp3"

    def synthesize_to_file(self, text, filename=None, voice_id=None):
        return f"tts/{filename or 'speech.mp3'}"

    def generate_question_audio(self, questions):
        out = {}
        for qid, text in questions:
            self.requested.append(qid)
            if qid not in self.fail_for:
                out[qid] = f"tts/question_{qid}.mp3"
        return out


@pytest.fixture(scope="function")
def ai():
    fake = ScriptedAI()
    app.dependency_overrides[deps.get_text_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(deps.get_text_service, None)


@pytest.fixture(scope="function")
def stt():
    fake = FakeSTT()
    app.dependency_overrides[deps.get_speech_to_text] = lambda: fake
    yield fake
    app.dependency_overrides.pop(deps.get_speech_to_text, None)


@pytest.fixture(scope="function")
def tts():
    fake = FakeTTS()
    app.dependency_overrides[deps.get_text_to_speech] = lambda: fake
    yield fake
    app.dependency_overrides.pop(deps.get_text_to_speech, None)


@pytest.fixture(scope="function")
def engine_factory(db, ai, stt):
    def _make(tts=None):
        return InterviewEngine(db, ai, stt=stt, tts=tts)
    return _make


# -------------------------------------------------------------------------------------------------
# TestClient
# -------------------------------------------------------------------------------------------------
@pytest.fixture(scope="session")
def client():
    return TestClient(app)


# -------------------------------------------------------------------------------------------------
# Data helpers
# -------------------------------------------------------------------------------------------------
WORK_EXPERIENCE = [
    {
        "title": "Backend Engineer",
        "company": "Acme",
        "duration": "2021-2024",
        "description": "Built payment APIs in Python and PostgreSQL",
        "skills": ["python", "postgresql"],
    },
    {
        "title": "Data Engineer",
        "company": "Globex",
        "duration": "2019-2021",
        "description": "Kafka pipelines",
        "skills": ["kafka", "spark"],
    },
    {
        "title": "Intern",
        "company": "Initech",
        "duration": "2018",
        "description": "Internal tools",
        "skills": ["javascript"],
    },
]

PARSED_RESUME = {
    "personalInfo": {"name": "Jordan Example", "email": "jordan@example.com"},
    "workExperience": WORK_EXPERIENCE,
    "education": [],
    "skills": ["python", "postgresql", "kafka"],
    "summary": None,
}


@pytest.fixture(scope="function")
def user(db):
    u = m.User(
        email="candidate@example.com",
        full_name="Jordan Example",
        hashed_password=security.get_password_hash("secret123"),
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture(scope="function")
def token(user):
    return security.create_access_token(subject=user.id, email=user.email)


@pytest.fixture(scope="function")
def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def make_resume(db, user):
    def _make(parsed_data=PARSED_RESUME, owner=None, filename="resume.pdf"):
        r = m.Resume(
            user_id=(owner or user).id,
            filename=filename,
            file_path=str(UPLOAD_DIR / "resumes" / filename),
            raw_text="Jordan Example\nExperience\nBackend Engineer at Acme (2021-2024)",
            parsed_data=parsed_data,
        )
        db.add(r)
        db.commit()
        db.refresh(r)
        return r
    return _make


@pytest.fixture(scope="function")
def resume(make_resume):
    return make_resume()
