"""
Service classes for the NEWZLY AI news writer backend.
Contains GenerationError, the error normalizer and the AIService wrapper
around the Gemini API.
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

import requests
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from config import (
    ARTICLE_PROMPT,
    ARTICLE_SCHEMA,
    DOWNLOAD_TIMEOUT_SECONDS,
    FEATURE_IMAGE_ASPECT_RATIO,
    GEMINI_API_KEY,
    IMAGE_MODEL,
    SEO_KEYWORD_INSTRUCTION,
    SOCIAL_IMAGE_ASPECT_RATIO,
    SOCIAL_POSTS_PROMPT,
    SOCIAL_POSTS_SCHEMA,
    TEXT_MODEL,
    VIDEO_MODEL,
)
from schemas import Article, GenerationOptions, SocialPost

FEATURE_IMAGE_BLOCKED = (
    "The generated image prompt was blocked by safety filters. "
    "Try generating the article again to get a new prompt."
)
SOCIAL_IMAGE_BLOCKED = "The image prompt was blocked or returned no content. Please try regenerating."
ARTICLE_PARSE_FAILED = (
    "Failed to parse the structured article from the AI response. The format was unexpected."
)


class GenerationError(Exception):
    """A remote generation failure, already phrased for the user."""

    QUOTA = "quota"
    SAFETY = "safety"
    PARSE = "parse"
    JOB_FAILED = "job_failed"
    TRANSPORT = "transport"

    def __init__(self, message: str, kind: str = TRANSPORT):
        super().__init__(message)
        self.message = message
        self.kind = kind

    @classmethod
    def from_exception(cls, exc: Exception, service_name: str) -> "GenerationError":
        if isinstance(exc, GenerationError):
            return exc
        kind = cls.QUOTA if _is_quota_error(exc) else cls.TRANSPORT
        return cls(get_api_error_message(exc, service_name), kind=kind)


def _error_payload(exc: Exception):
    """Returns (status, code, message) reported by the Gemini API, if the error carries one."""
    if isinstance(exc, genai_errors.APIError):
        return exc.status, exc.code, exc.message

    # Some transports surface the raw JSON error body as the exception message
    try:
        payload = json.loads(str(exc))
    except (TypeError, ValueError):
        return None
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error.get("status"), error.get("code"), error["message"]
    return None


def _is_quota_error(exc: Exception) -> bool:
    payload = _error_payload(exc)
    return bool(payload) and (payload[0] == "RESOURCE_EXHAUSTED" or payload[1] == 429)


def get_api_error_message(exc: Exception, service_name: str) -> str:
    """Turns any remote failure into a human-readable message."""
    logging.error(f"❌ {service_name} failed: {exc}")

    if isinstance(exc, GenerationError):
        return exc.message

    payload = _error_payload(exc)
    if payload:
        status, code, message = payload
        if status == "RESOURCE_EXHAUSTED" or code == 429:
            return (
                f"{service_name} failed due to API quota limits. "
                "Please check your plan and billing details."
            )
        if message:
            return f"{service_name} failed: {message}"

    if str(exc):
        return str(exc)
    return f"An unknown error occurred during {service_name}."


def to_data_url(image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(image_bytes).decode('ascii')}"


def build_article_prompt(url: str, language: str, seo_keywords: str = "") -> str:
    keyword_instruction = ""
    if seo_keywords.strip():
        keyword_instruction = SEO_KEYWORD_INSTRUCTION.format(seo_keywords=seo_keywords)
    return ARTICLE_PROMPT.format(language=language, url=url, keyword_instruction=keyword_instruction)


def build_social_posts_prompt(article_content: str) -> str:
    return SOCIAL_POSTS_PROMPT.format(article_content=article_content)


@dataclass
class VideoJobStatus:
    """What one status check of a video operation reported."""
    handle: Any
    done: bool
    result_locator: Optional[str] = None


def _video_uri(operation) -> Optional[str]:
    response = getattr(operation, "response", None)
    videos = getattr(response, "generated_videos", None) or []
    if videos and getattr(videos[0], "video", None):
        return videos[0].video.uri
    return None


class AIService:
    """Handles Gemini API communication for text, image and video generation."""

    def __init__(self, api_key: str = GEMINI_API_KEY, client=None):
        self.api_key = api_key
        if client is not None:
            self._client = client
        elif api_key:
            self._client = genai.Client(api_key=api_key)
        else:
            self._client = None
            logging.warning("⚠️ GEMINI_API_KEY is not set; generation requests will fail.")

    @property
    def client(self):
        if self._client is None:
            raise GenerationError("GEMINI_API_KEY environment variable is not set.")
        return self._client

    # --- Text ---

    def generate_text(self, prompt: str, schema: dict, model: str = TEXT_MODEL,
                      service_name: str = "Text generation"):
        """Requests JSON output conforming to `schema` and returns the decoded value."""
        try:
            response = self.client.models.generate_content(
                model=model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError.from_exception(e, service_name) from e

        json_text = (response.text or "").strip()
        logging.info(f"📨 {service_name} JSON response received ({len(json_text)} chars)")
        try:
            return json.loads(json_text)
        except json.JSONDecodeError as e:
            logging.error(f"❌ Failed to parse JSON response: {json_text!r}")
            raise GenerationError("The AI response was not valid JSON.", kind=GenerationError.PARSE) from e

    def generate_article(self, url: str, options: GenerationOptions) -> Article:
        logging.info(
            f"📝 Generating article for URL: {url} with model: {options.model} "
            f"in language: {options.language} using keywords: {options.seo_keywords!r}"
        )
        prompt = build_article_prompt(url, options.language, options.seo_keywords)
        try:
            data = self.generate_text(prompt, ARTICLE_SCHEMA, model=options.model,
                                      service_name="Article generation")
            return Article.model_validate(data)
        except ValidationError as e:
            logging.error(f"❌ Parsed JSON is missing required article fields: {e}")
            raise GenerationError(ARTICLE_PARSE_FAILED, kind=GenerationError.PARSE) from e
        except GenerationError as e:
            if e.kind == GenerationError.PARSE:
                raise GenerationError(ARTICLE_PARSE_FAILED, kind=GenerationError.PARSE) from e
            raise

    def generate_social_posts(self, article_content: str) -> List[SocialPost]:
        logging.info("📣 Generating social media posts...")
        data = self.generate_text(
            build_social_posts_prompt(article_content),
            SOCIAL_POSTS_SCHEMA,
            model=TEXT_MODEL,
            service_name="Social post generation",
        )
        if not isinstance(data, list):
            raise GenerationError("Social posts response was not a list.", kind=GenerationError.PARSE)
        try:
            return [SocialPost.model_validate(post) for post in data]
        except ValidationError as e:
            raise GenerationError(f"Social posts response was malformed: {e}",
                                  kind=GenerationError.PARSE) from e

    # --- Images ---

    def generate_image(self, prompt: str, aspect_ratio: str, service_name: str = "Image generation",
                       blocked_message: str = FEATURE_IMAGE_BLOCKED) -> bytes:
        logging.info(f"🖼️ {service_name} with prompt: '{prompt}'")
        try:
            response = self.client.models.generate_images(
                model=IMAGE_MODEL,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=1,
                    output_mime_type="image/jpeg",
                    aspect_ratio=aspect_ratio,
                ),
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError.from_exception(e, service_name) from e

        images = response.generated_images or []
        if images and images[0].image and images[0].image.image_bytes:
            return images[0].image.image_bytes

        # Structurally fine but empty: almost always the safety filter
        logging.error(f"❌ {service_name} returned no images for prompt: '{prompt}'")
        raise GenerationError(blocked_message, kind=GenerationError.SAFETY)

    def generate_feature_image(self, prompt: str) -> bytes:
        return self.generate_image(prompt, FEATURE_IMAGE_ASPECT_RATIO, "Image generation",
                                   FEATURE_IMAGE_BLOCKED)

    def generate_social_image(self, prompt: str) -> bytes:
        return self.generate_image(prompt, SOCIAL_IMAGE_ASPECT_RATIO, "Social image generation",
                                   SOCIAL_IMAGE_BLOCKED)

    # --- Video ---

    def submit_video_job(self, prompt: str):
        """Starts a video render and returns the provider's operation handle."""
        logging.info(f"🎬 Submitting video job with prompt: '{prompt}'")
        try:
            return self.client.models.generate_videos(
                model=VIDEO_MODEL,
                prompt=prompt,
                config=types.GenerateVideosConfig(number_of_videos=1),
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError.from_exception(e, "Video generation") from e

    def poll_video_job(self, handle) -> VideoJobStatus:
        try:
            operation = self.client.operations.get(handle)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError.from_exception(e, "Video generation") from e
        return VideoJobStatus(handle=operation, done=bool(operation.done),
                              result_locator=_video_uri(operation))

    def fetch_result(self, result_locator: str) -> bytes:
        """Downloads a finished video; the locator needs the API key to be readable."""
        try:
            response = requests.get(result_locator, params={"key": self.api_key},
                                    timeout=DOWNLOAD_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            raise GenerationError(f"Could not download the video file: {e}",
                                  kind=GenerationError.JOB_FAILED) from e
        if not response.ok:
            raise GenerationError(f"Failed to download video file. Status: {response.status_code}",
                                  kind=GenerationError.JOB_FAILED)
        return response.content
