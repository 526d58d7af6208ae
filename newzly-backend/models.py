# models.py

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text, JSON
from database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Job(Base):
    """Job model for tracking article, social post and video generation tasks."""

    __tablename__ = "jobs"

    id = Column(String, primary_key=True, index=True)
    kind = Column(String, nullable=False)  # article, social, video
    parent_id = Column(String, nullable=True, index=True)  # article a social job was built from
    status = Column(String, default="processing")  # processing, completed, failed
    progress_message = Column(String, nullable=True)
    steps = Column(JSON, nullable=True)
    article = Column(JSON, nullable=True)
    feature_image = Column(Text, nullable=True)
    social_posts = Column(JSON, nullable=True)
    video_path = Column(String, nullable=True)
    error = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
