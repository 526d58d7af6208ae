"""
Multi-step generation flows built on top of AIService.

ArticleOrchestrator runs article -> feature image -> finalize and reports
each step's status. VideoPoller drives the submit-then-poll protocol of the
video model until the render finishes and the file is downloaded.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from config import ARTICLE_STEPS, VIDEO_POLL_INTERVAL_SECONDS
from schemas import Article, GenerationOptions, LoadingStep, StepStatus
from services import GenerationError, VideoJobStatus, to_data_url


class PipelineAbandoned(Exception):
    """Raised by a progress sink whose consumer is gone; stops the run without recording a failure."""


@dataclass
class ArticleResult:
    article: Article
    feature_image: str  # data URL


class ArticleOrchestrator:
    """Runs the article pipeline one awaited step at a time."""

    def __init__(self, ai_service, on_progress: Optional[Callable[[List[LoadingStep]], None]] = None):
        self.ai_service = ai_service
        self.on_progress = on_progress
        self.steps: List[LoadingStep] = []

    def _emit(self):
        if self.on_progress:
            self.on_progress([step.model_copy() for step in self.steps])

    def _set_status(self, index: int, status: StepStatus):
        self.steps[index] = self.steps[index].model_copy(update={"status": status})
        self._emit()

    def run(self, url: str, options: GenerationOptions) -> ArticleResult:
        self.steps = [LoadingStep(text=text) for text in ARTICLE_STEPS]
        self._emit()

        try:
            self._set_status(0, StepStatus.ACTIVE)
            article = self.ai_service.generate_article(url, options)
            self._set_status(0, StepStatus.DONE)

            self._set_status(1, StepStatus.ACTIVE)
            image = self.ai_service.generate_feature_image(article.image_prompt)
            self._set_status(1, StepStatus.DONE)

            self._set_status(2, StepStatus.ACTIVE)
            result = ArticleResult(article=article, feature_image=to_data_url(image))
            self._set_status(2, StepStatus.DONE)
        except PipelineAbandoned:
            logging.info(f"🛑 Article pipeline abandoned for {url}")
            self.steps = []
            raise
        except Exception as e:
            error = GenerationError.from_exception(e, "Article generation")
            logging.error(f"❌ Article pipeline aborted for {url}: {error.message}")
            self.steps = []
            self._emit()
            raise GenerationError(f"Failed to generate the article. {error.message}", kind=error.kind) from e

        logging.info(f"✅ Article generated: '{article.title}'")
        return result


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED_TRANSITIONS = {
    JobState.SUBMITTED: {JobState.POLLING, JobState.FAILED},
    JobState.POLLING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


class GenerationJob:
    """
    One remote long-running operation. Its state only moves forward, and
    once it reaches COMPLETED or FAILED further refreshes are ignored.
    """

    def __init__(self, handle):
        self.handle = handle
        self.done = False
        self.result_locator: Optional[str] = None
        self.error: Optional[str] = None
        self.state = JobState.SUBMITTED
        self.history = [JobState.SUBMITTED]

    @property
    def is_terminal(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)

    def _transition(self, new_state: JobState):
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal job transition {self.state.value} -> {new_state.value}")
        self.state = new_state
        self.history.append(new_state)

    def start_polling(self):
        self._transition(JobState.POLLING)

    def refresh(self, status: VideoJobStatus):
        if self.is_terminal:
            return
        self.handle = status.handle
        self.done = status.done
        self.result_locator = status.result_locator

    def complete(self):
        if not (self.done and self.result_locator):
            raise RuntimeError("Cannot complete a job that has no result")
        self._transition(JobState.COMPLETED)

    def fail(self, message: str):
        if self.is_terminal:
            return
        self.error = message
        self._transition(JobState.FAILED)


class VideoPoller:
    """Submits a video job and polls it at a fixed interval until it settles."""

    def __init__(self, ai_service, poll_interval: float = VIDEO_POLL_INTERVAL_SECONDS,
                 sleep: Optional[Callable[[float], None]] = None):
        self.ai_service = ai_service
        self.poll_interval = poll_interval
        self.sleep = sleep or time.sleep
        self.job: Optional[GenerationJob] = None
        self.poll_count = 0

    def run(self, prompt: str, on_progress: Optional[Callable[[str], None]] = None) -> bytes:
        """Returns the rendered video bytes or raises GenerationError."""
        report = on_progress or (lambda message: None)
        self.job = None
        self.poll_count = 0

        try:
            report("Initializing video render...")
            self.job = GenerationJob(self.ai_service.submit_video_job(prompt))
            self.job.start_polling()
            report("Rendering video... (this may take a few minutes)")

            # No upper bound: the render either finishes or the API errors out
            while not self.job.done:
                self.sleep(self.poll_interval)
                self.poll_count += 1
                self.job.refresh(self.ai_service.poll_video_job(self.job.handle))
                logging.info(f"⏳ Video poll #{self.poll_count}: done={self.job.done}")

            report("Finalizing video...")
            if not self.job.result_locator:
                raise GenerationError(
                    "Video generation succeeded but no download link was returned.",
                    kind=GenerationError.JOB_FAILED,
                )

            report("Fetching video data...")
            video = self.ai_service.fetch_result(self.job.result_locator)
            self.job.complete()
            report("Video generation complete!")
            return video

        except PipelineAbandoned:
            logging.info("🛑 Video generation abandoned")
            if self.job:
                self.job.fail("Abandoned")
            raise
        except Exception as e:
            error = GenerationError.from_exception(e, "Video generation")
            logging.error(f"❌ Video generation failed: {error.message}")
            if self.job:
                self.job.fail(error.message)
            raise GenerationError(f"Failed to generate video. {error.message}", kind=error.kind) from e
