"""
Pydantic models for data validation in the NEWZLY AI news writer backend.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from config import (
    CHARACTER_LIMITS,
    DEFAULT_LANGUAGE,
    DEFAULT_MODEL,
    LANGUAGE_OPTIONS,
    MODEL_OPTIONS,
)

META_DESCRIPTION_LENGTH = 160


class Platform(str, Enum):
    FACEBOOK = "Facebook"
    INSTAGRAM = "Instagram"
    TWITTER = "Twitter"
    LINKEDIN = "LinkedIn"


class StepStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"


class LoadingStep(BaseModel):
    """One stage of the article pipeline as shown to the user."""
    text: str
    status: StepStatus = StepStatus.PENDING


class Article(BaseModel):
    """
    A generated news article. Serialized with the camelCase keys the
    model is asked to return; edits produce a new value via `edited`.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    title: str = Field(min_length=1)
    image_prompt: str = Field(alias="imagePrompt", min_length=1)
    video_prompt: str = Field(alias="videoPrompt", min_length=1)
    article_content: str = Field(alias="articleContent", min_length=1)

    @computed_field(alias="metaDescription")
    @property
    def meta_description(self) -> str:
        first_paragraph = next(
            (line.strip() for line in self.article_content.split("\n") if line.strip()), ""
        )
        snippet = first_paragraph[:META_DESCRIPTION_LENGTH].strip()
        return f"{snippet}..." if len(snippet) >= META_DESCRIPTION_LENGTH else snippet

    @computed_field(alias="shareText")
    @property
    def share_text(self) -> str:
        return f"{self.title}\n\n{self.article_content}"

    def edited(self, title: str, article_content: str) -> "Article":
        return self.model_copy(update={"title": title, "article_content": article_content})


class SocialPost(BaseModel):
    """A platform-specific post produced from an article."""
    model_config = ConfigDict(populate_by_name=True)

    platform: Platform
    caption: str
    hashtags: List[str] = Field(default_factory=list)
    image_prompt: str = Field(alias="imagePrompt")

    @field_validator("hashtags")
    @classmethod
    def normalize_hashtags(cls, value: List[str]) -> List[str]:
        tags = []
        for tag in value:
            tag = tag.strip()
            if not tag:
                continue
            tags.append(tag if tag.startswith("#") else f"#{tag}")
        return tags

    @computed_field(alias="characterLimit")
    @property
    def character_limit(self) -> Optional[int]:
        return CHARACTER_LIMITS.get(self.platform.value)

    @computed_field(alias="isOverLimit")
    @property
    def is_over_limit(self) -> bool:
        limit = self.character_limit
        return limit is not None and len(self.caption) > limit

    @computed_field(alias="shareText")
    @property
    def share_text(self) -> str:
        return f"{self.caption}\n\n{' '.join(self.hashtags)}"


class GenerationOptions(BaseModel):
    """Model, language and SEO keyword choices for an article run."""
    model: str = DEFAULT_MODEL
    language: str = DEFAULT_LANGUAGE
    seo_keywords: str = ""

    @field_validator("model")
    @classmethod
    def check_model(cls, value: str) -> str:
        supported = [option["value"] for option in MODEL_OPTIONS]
        if value not in supported:
            raise ValueError(f"Unsupported model '{value}'. Choose one of: {', '.join(supported)}")
        return value

    @field_validator("language")
    @classmethod
    def check_language(cls, value: str) -> str:
        if value not in LANGUAGE_OPTIONS:
            raise ValueError(f"Unsupported language '{value}'.")
        return value


class ArticleRequest(GenerationOptions):
    """Request model for generating an article from a URL."""
    url: str


class VideoRequest(BaseModel):
    """Request model for generating a video from a text prompt."""
    prompt: str


class SocialImageRequest(BaseModel):
    """Request model for generating a square social post image."""
    prompt: str


class SocialImageResponse(BaseModel):
    image: str  # data:image/jpeg;base64,...


class ArticleUpdateRequest(BaseModel):
    """A user edit of a generated article."""
    title: str = Field(min_length=1)
    article_content: str = Field(min_length=1)


class OptionsResponse(BaseModel):
    models: List[dict]
    languages: List[str]
    default_model: str
    default_language: str


class JobResponse(BaseModel):
    """Response when submitting a background generation job."""
    job_id: str
    status: str  # e.g., "processing"


class StatusResponse(BaseModel):
    """Response for checking background job status."""
    job_id: str
    kind: str  # "article" | "social" | "video"
    status: str  # "processing" | "completed" | "failed"
    progress_message: Optional[str] = None
    steps: List[LoadingStep] = Field(default_factory=list)
    article: Optional[Article] = None
    feature_image: Optional[str] = None
    social_posts: Optional[List[SocialPost]] = None
    video_url: Optional[str] = None
    error: Optional[str] = None
