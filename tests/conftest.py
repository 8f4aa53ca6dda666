import sys
import time
from pathlib import Path

import jwt
import pytest
from fastapi.testclient import TestClient

# Ensure repo root is on sys.path so the top-level packages import under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from main import app
from models.course import Chapter, Course, Section
from repositories.course_repository import InMemoryCourseRepository
from repositories.progress_repository import InMemoryProgressRepository
from repositories.providers import (
    get_course_repository,
    get_progress_repository,
    get_transaction_repository,
)
from repositories.transaction_repository import InMemoryTransactionRepository

TEST_JWT_KEY = "test-only-signing-key-0123456789abcdef"


@pytest.fixture(autouse=True)
def auth_env(monkeypatch):
    """Verify tokens with a shared HS256 secret instead of the provider's key."""
    monkeypatch.setenv("AUTH_JWT_KEY", TEST_JWT_KEY)
    monkeypatch.setenv("AUTH_JWT_ALGORITHMS", "HS256")
    monkeypatch.delenv("AUTH_JWT_ISSUER", raising=False)


@pytest.fixture
def course_repo():
    return InMemoryCourseRepository()


@pytest.fixture
def progress_repo():
    return InMemoryProgressRepository()


@pytest.fixture
def transaction_repo():
    return InMemoryTransactionRepository()


@pytest.fixture
def client(course_repo, progress_repo, transaction_repo):
    app.dependency_overrides[get_course_repository] = lambda: course_repo
    app.dependency_overrides[get_progress_repository] = lambda: progress_repo
    app.dependency_overrides[get_transaction_repository] = lambda: transaction_repo
    yield TestClient(app)
    app.dependency_overrides.clear()


def mint_token(user_id: str, user_type: str = "student", expires_in: int = 300) -> str:
    now = int(time.time())
    claims = {
        "sub": user_id,
        "metadata": {"userType": user_type},
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(claims, TEST_JWT_KEY, algorithm="HS256")


@pytest.fixture
def auth_headers():
    """Factory: auth_headers("user_1") -> {"Authorization": "Bearer ..."}"""

    def _headers(user_id: str = "user_student", user_type: str = "student", expires_in: int = 300):
        return {"Authorization": f"Bearer {mint_token(user_id, user_type, expires_in)}"}

    return _headers


@pytest.fixture
def make_course():
    """Factory building a Course from {sectionId: [chapterId, ...]}."""

    def _make(course_id: str = "course-1", layout=None, teacher_id: str = "teacher-1") -> Course:
        if layout is None:
            layout = {"s1": ["c1", "c2"], "s2": ["c3"]}
        return Course(
            courseId=course_id,
            teacherId=teacher_id,
            teacherName="Sarah Johnson",
            title="Introduction to Python Programming",
            category="Computer Science",
            price=4999,
            level="Beginner",
            status="Published",
            sections=[
                Section(
                    sectionId=section_id,
                    sectionTitle=f"Section {section_id}",
                    chapters=[Chapter(chapterId=cid, title=f"Chapter {cid}") for cid in chapter_ids],
                )
                for section_id, chapter_ids in layout.items()
            ],
        )

    return _make
