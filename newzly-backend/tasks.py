# tasks.py

import os
import logging

from celery import Celery
from sqlalchemy.orm.exc import ObjectDeletedError, StaleDataError

from database import SessionLocal
from models import Job
from config import CELERY_BROKER_URL, CELERY_RESULT_BACKEND, VIDEO_DIR
from schemas import GenerationOptions, StepStatus
from services import AIService, GenerationError
from pipelines import ArticleOrchestrator, PipelineAbandoned, VideoPoller

celery = Celery('tasks', broker=CELERY_BROKER_URL, backend=CELERY_RESULT_BACKEND)
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

SOCIAL_POSTS_FAILED = "Failed to generate social media posts. Please try again."


def _load_job(db, job_id: str):
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        logging.warning(f"⚠️ Job {job_id} no longer exists; skipping.")
    return job


def _save(db, job, job_id: str, **fields):
    """Writes fields onto the job row. Raises PipelineAbandoned if the row was cleared meanwhile."""
    try:
        for name, value in fields.items():
            setattr(job, name, value)
        db.commit()
    except (ObjectDeletedError, StaleDataError) as e:
        db.rollback()
        logging.warning(f"⚠️ Job {job_id} was cleared while running; abandoning.")
        raise PipelineAbandoned(job_id) from e


def _mark_failed(db, job, job_id: str, message: str):
    _save(db, job, job_id, status="failed", error=message, progress_message=None)


def save_video(job_id: str, video: bytes) -> str:
    os.makedirs(VIDEO_DIR, exist_ok=True)
    video_path = os.path.join(VIDEO_DIR, f"video_{job_id}.mp4")
    with open(video_path, "wb") as f:
        f.write(video)
    return video_path


@celery.task
def generate_article_task(job_id: str, url: str, model: str, language: str, seo_keywords: str = ""):
    """Runs the article pipeline and records every step on the job row."""
    db = SessionLocal()
    try:
        job = _load_job(db, job_id)
        if not job:
            return

        def on_progress(steps):
            _save(
                db, job, job_id,
                steps=[step.model_dump(mode="json") for step in steps],
                progress_message=next((s.text for s in steps if s.status == StepStatus.ACTIVE), None),
            )

        logging.info(f"📝 Worker received article job {job_id} for URL: '{url}'")
        try:
            options = GenerationOptions(model=model, language=language, seo_keywords=seo_keywords)
            result = ArticleOrchestrator(AIService(), on_progress=on_progress).run(url, options)
        except PipelineAbandoned:
            raise
        except GenerationError as e:
            _mark_failed(db, job, job_id, e.message)
            return
        except Exception as e:
            logging.exception(f"❌ Worker failed article job {job_id}")
            _mark_failed(db, job, job_id,
                         f"Failed to generate the article. An unexpected internal error occurred: {e}")
            return

        _save(
            db, job, job_id,
            article=result.article.model_dump(mode="json", by_alias=True),
            feature_image=result.feature_image,
            status="completed",
            progress_message=None,
        )
        logging.info(f"✅ Worker finished article job {job_id}.")
    except PipelineAbandoned:
        return
    finally:
        db.close()


@celery.task
def generate_social_posts_task(job_id: str, article_content: str):
    db = SessionLocal()
    try:
        job = _load_job(db, job_id)
        if not job:
            return

        _save(db, job, job_id, progress_message="Optimizing posts for social media...")
        try:
            posts = AIService().generate_social_posts(article_content)
        except Exception as e:
            logging.error(f"❌ Worker failed social job {job_id}. Error: {e}")
            _mark_failed(db, job, job_id, SOCIAL_POSTS_FAILED)
            return

        _save(
            db, job, job_id,
            social_posts=[post.model_dump(mode="json", by_alias=True) for post in posts],
            status="completed",
            progress_message=None,
        )
        logging.info(f"✅ Worker finished social job {job_id} with {len(posts)} posts.")
    except PipelineAbandoned:
        return
    finally:
        db.close()


@celery.task
def generate_video_task(job_id: str, prompt: str):
    """Polls the video model to completion and stores the file under the media dir."""
    db = SessionLocal()
    try:
        job = _load_job(db, job_id)
        if not job:
            return

        def on_progress(message: str):
            _save(db, job, job_id, progress_message=message)

        logging.info(f"🎬 Worker received video job {job_id} for prompt: '{prompt}'")
        try:
            video = VideoPoller(AIService()).run(prompt, on_progress=on_progress)
            video_path = save_video(job_id, video)
        except PipelineAbandoned:
            raise
        except GenerationError as e:
            _mark_failed(db, job, job_id, e.message)
            return
        except Exception as e:
            logging.exception(f"❌ Worker failed video job {job_id}")
            _mark_failed(db, job, job_id, f"Failed to generate video. An unexpected internal error occurred: {e}")
            return

        try:
            _save(db, job, job_id, status="completed", video_path=video_path)
        except PipelineAbandoned:
            os.remove(video_path)
            raise
        logging.info(f"✅ Worker finished video job {job_id}. Video at: {video_path}")
    except PipelineAbandoned:
        return
    finally:
        db.close()
