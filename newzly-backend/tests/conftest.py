# newzly-backend/tests/conftest.py

import os
import sys
import tempfile

import pytest

# Point config at throwaway storage before any backend module is imported
_TMP_DIR = tempfile.mkdtemp(prefix="newzly-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["MEDIA_DIR"] = os.path.join(_TMP_DIR, "media")
os.environ.setdefault("GEMINI_API_KEY", "test-key")

# Add the parent directory to the Python path so we can import from it
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schemas import Article  # noqa: E402
from services import GenerationError, VideoJobStatus  # noqa: E402


class FakeAIService:
    """Stands in for AIService and records every remote call made through it."""

    def __init__(self, article=None, image=b"jpeg-bytes", article_error=None, image_error=None,
                 poll_statuses=(), submit_error=None, poll_error=None, video=b"mp4-bytes",
                 fetch_error=None, social_posts=None, social_error=None):
        self.article = article
        self.image = image
        self.article_error = article_error
        self.image_error = image_error
        self.poll_statuses = list(poll_statuses)
        self.submit_error = submit_error
        self.poll_error = poll_error
        self.video = video
        self.fetch_error = fetch_error
        self.social_posts = social_posts or []
        self.social_error = social_error
        self.calls = []

    def generate_article(self, url, options):
        self.calls.append(("generate_article", url))
        if self.article_error:
            raise self.article_error
        return self.article

    def generate_feature_image(self, prompt):
        self.calls.append(("generate_feature_image", prompt))
        if self.image_error:
            raise self.image_error
        return self.image

    def generate_social_image(self, prompt):
        self.calls.append(("generate_social_image", prompt))
        if self.image_error:
            raise self.image_error
        return self.image

    def generate_social_posts(self, article_content):
        self.calls.append(("generate_social_posts", article_content))
        if self.social_error:
            raise self.social_error
        return self.social_posts

    def submit_video_job(self, prompt):
        self.calls.append(("submit_video_job", prompt))
        if self.submit_error:
            raise self.submit_error
        return "operations/video-1"

    def poll_video_job(self, handle):
        self.calls.append(("poll_video_job", handle))
        if self.poll_error:
            raise self.poll_error
        return self.poll_statuses.pop(0)

    def fetch_result(self, result_locator):
        self.calls.append(("fetch_result", result_locator))
        if self.fetch_error:
            raise self.fetch_error
        return self.video

    def call_names(self):
        return [name for name, _ in self.calls]


@pytest.fixture
def fake_ai_service():
    """Hands tests the FakeAIService class so each can build one with its own canned results."""
    return FakeAIService


@pytest.fixture
def sample_article():
    return Article(title="T", imagePrompt="P", videoPrompt="V", articleContent="C")


@pytest.fixture
def quota_error():
    return GenerationError(
        "Article generation failed due to API quota limits. Please check your plan and billing details.",
        kind=GenerationError.QUOTA,
    )


@pytest.fixture
def pending_status():
    return VideoJobStatus(handle="operations/video-1", done=False)


@pytest.fixture
def db_tables():
    from database import Base, engine
    from init_db import init_database

    init_database()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session(db_tables):
    from database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client(db_tables):
    from fastapi.testclient import TestClient
    from main import app

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
