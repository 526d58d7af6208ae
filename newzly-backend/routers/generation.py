"""
Router for content generation endpoints.
Handles article, social post and video jobs, job status, edits and video serving.
"""

import os
import uuid
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from tasks import generate_article_task, generate_social_posts_task, generate_video_task
from schemas import (
    Article,
    ArticleRequest,
    ArticleUpdateRequest,
    JobResponse,
    OptionsResponse,
    SocialImageRequest,
    SocialImageResponse,
    StatusResponse,
    VideoRequest,
)
from services import AIService, GenerationError, to_data_url
from config import DEFAULT_LANGUAGE, DEFAULT_MODEL, LANGUAGE_OPTIONS, MEDIA_DIR, MODEL_OPTIONS
from database import get_db
from models import Job


# Create the router
router = APIRouter(tags=["generation"])

ERROR_STATUS_CODES = {
    GenerationError.QUOTA: 429,
    GenerationError.SAFETY: 422,
}


def get_ai_service() -> AIService:
    return AIService()


def _get_job_or_404(db: Session, job_id: str) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found.")
    return job


def _create_job(db: Session, kind: str, parent_id: Optional[str] = None) -> Job:
    job = Job(id=str(uuid.uuid4()), kind=kind, status="processing", parent_id=parent_id)
    db.add(job)
    db.commit()
    db.refresh(job)
    return job


def _abandon_job(db: Session, job: Job, e: Exception):
    logging.error(f"Failed to submit task to Celery: {e}")
    db.delete(job)
    db.commit()
    raise HTTPException(status_code=500, detail="Failed to start the generation job.")


@router.get("/options", response_model=OptionsResponse)
async def get_options():
    """Lists the models and languages an article can be generated with."""
    return {
        "models": MODEL_OPTIONS,
        "languages": LANGUAGE_OPTIONS,
        "default_model": DEFAULT_MODEL,
        "default_language": DEFAULT_LANGUAGE,
    }


@router.post("/articles/", response_model=JobResponse)
async def generate_article(request: ArticleRequest, db: Session = Depends(get_db)):
    """
    Creates an article job record, sends it to Celery,
    and immediately returns a job ID.
    """
    url = request.url.strip()
    if not url:
        raise HTTPException(status_code=400, detail="Please enter a valid URL.")

    job = _create_job(db, "article")
    try:
        generate_article_task.delay(job.id, url, request.model, request.language, request.seo_keywords)
    except Exception as e:
        _abandon_job(db, job, e)
    logging.info(f"✨ Article job {job.id} submitted for URL: '{url}'")
    return {"job_id": job.id, "status": job.status}


@router.post("/articles/{job_id}/social-posts", response_model=JobResponse)
async def generate_social_posts(job_id: str, db: Session = Depends(get_db)):
    """Starts (or restarts) social post generation for a finished article."""
    article_job = _get_job_or_404(db, job_id)
    if article_job.kind != "article" or not article_job.article:
        raise HTTPException(status_code=409, detail="The article is not ready yet.")

    article = Article.model_validate(article_job.article)
    job = _create_job(db, "social", parent_id=article_job.id)
    try:
        generate_social_posts_task.delay(job.id, article.article_content)
    except Exception as e:
        _abandon_job(db, job, e)
    logging.info(f"✨ Social job {job.id} submitted for article {article_job.id}")
    return {"job_id": job.id, "status": job.status}


@router.put("/articles/{job_id}", response_model=Article)
async def update_article(job_id: str, request: ArticleUpdateRequest, db: Session = Depends(get_db)):
    """Replaces the generated article with the user's edited title and content."""
    job = _get_job_or_404(db, job_id)
    if job.kind != "article" or not job.article:
        raise HTTPException(status_code=409, detail="The article is not ready yet.")

    article = Article.model_validate(job.article).edited(request.title, request.article_content)
    job.article = article.model_dump(mode="json", by_alias=True)
    db.commit()
    return article


@router.post("/videos/", response_model=JobResponse)
async def generate_video(request: VideoRequest, db: Session = Depends(get_db)):
    prompt = request.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Please enter a video prompt.")

    job = _create_job(db, "video")
    try:
        generate_video_task.delay(job.id, prompt)
    except Exception as e:
        _abandon_job(db, job, e)
    logging.info(f"✨ Video job {job.id} submitted for prompt: '{prompt}'")
    return {"job_id": job.id, "status": job.status}


@router.post("/social-image/", response_model=SocialImageResponse)
def generate_social_image(request: SocialImageRequest, ai_service: AIService = Depends(get_ai_service)):
    """Generates one square image for a social post card, synchronously."""
    try:
        image = ai_service.generate_social_image(request.prompt)
    except GenerationError as e:
        raise HTTPException(status_code=ERROR_STATUS_CODES.get(e.kind, 502), detail=e.message)
    return {"image": to_data_url(image)}


@router.get("/task-status/{job_id}", response_model=StatusResponse)
async def get_task_status(job_id: str, db: Session = Depends(get_db)):
    """
    Checks the status of a job by querying the database.
    """
    job = _get_job_or_404(db, job_id)
    return {
        "job_id": job.id,
        "kind": job.kind,
        "status": job.status,
        "progress_message": job.progress_message,
        "steps": job.steps or [],
        "article": job.article,
        "feature_image": job.feature_image,
        "social_posts": job.social_posts,
        "video_url": job.video_path,
        "error": job.error,
    }


@router.delete("/jobs/{job_id}", status_code=204)
async def clear_job(job_id: str, db: Session = Depends(get_db)):
    """Discards a job, its social post jobs and any downloaded video."""
    job = _get_job_or_404(db, job_id)
    children = db.query(Job).filter(Job.parent_id == job.id).all()
    for doomed in [job, *children]:
        if doomed.video_path and os.path.exists(doomed.video_path):
            os.remove(doomed.video_path)
        db.delete(doomed)
    db.commit()
    logging.info(f"🧹 Cleared job {job_id} and {len(children)} related jobs")


@router.get("/get-video/")
async def get_video(path: str):
    """
    Safely serves a video file from the server's media directory.
    The frontend will call this to get the actual video data.
    """
    # Only files inside the media directory may be served
    media_root = os.path.abspath(MEDIA_DIR)
    if os.path.commonpath([os.path.abspath(path), media_root]) != media_root:
        raise HTTPException(status_code=403, detail="Forbidden: Access to this path is not allowed.")

    if not os.path.exists(path):
        raise HTTPException(status_code=404, detail="Video file not found.")

    return FileResponse(path, media_type="video/mp4", filename="newzly_video_summary.mp4")
