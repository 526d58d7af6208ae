# newzly-backend/tests/test_services.py

import base64
import json
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import requests
from google.genai import errors as genai_errors

from schemas import GenerationOptions, Platform
from services import (
    AIService,
    GenerationError,
    build_article_prompt,
    get_api_error_message,
    to_data_url,
)

ARTICLE_JSON = {
    "title": "Robots Learn to Dance",
    "imagePrompt": "A ballroom full of robots",
    "videoPrompt": "Scene 1: a wide shot",
    "articleContent": "## Intro\nRobots are dancing.",
}


def make_service(client=None):
    return AIService(api_key="secret", client=client or MagicMock())


def test_quota_api_error_gets_quota_message():
    """
    A RESOURCE_EXHAUSTED error from the SDK becomes the quota message.
    """
    error = genai_errors.ClientError(
        429, {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
    )

    message = get_api_error_message(error, "Article generation")

    assert message == (
        "Article generation failed due to API quota limits. Please check your plan and billing details."
    )
    assert GenerationError.from_exception(error, "Article generation").kind == GenerationError.QUOTA


def test_json_error_message_is_unwrapped():
    error = RuntimeError(json.dumps({"error": {"code": 400, "message": "Bad prompt", "status": "INVALID_ARGUMENT"}}))

    assert get_api_error_message(error, "Image generation") == "Image generation failed: Bad prompt"
    assert GenerationError.from_exception(error, "Image generation").kind == GenerationError.TRANSPORT


def test_plain_and_empty_errors():
    assert get_api_error_message(ValueError("boom"), "Video generation") == "boom"
    assert get_api_error_message(ValueError(), "Video generation") == (
        "An unknown error occurred during Video generation."
    )


def test_generation_error_passes_through_unchanged():
    original = GenerationError("Already friendly.", kind=GenerationError.SAFETY)

    assert get_api_error_message(original, "Anything") == "Already friendly."
    assert GenerationError.from_exception(original, "Anything") is original


def test_article_prompt_includes_keywords_only_when_given():
    with_keywords = build_article_prompt("https://example.com/a", "French", "ai, robots")
    without_keywords = build_article_prompt("https://example.com/a", "French", "   ")

    assert "https://example.com/a" in with_keywords
    assert 'SEO keywords: "ai, robots"' in with_keywords
    assert "SEO Keyword Integration" not in without_keywords
    assert "The entire output must be in French." in without_keywords


def test_to_data_url():
    assert to_data_url(b"abc") == "data:image/jpeg;base64," + base64.b64encode(b"abc").decode()


def test_generate_article_parses_structured_response():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text=json.dumps(ARTICLE_JSON))
    service = make_service(client)

    article = service.generate_article("https://example.com/a", GenerationOptions(language="German"))

    assert article.title == "Robots Learn to Dance"
    assert article.image_prompt == "A ballroom full of robots"
    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-2.5-flash"
    assert kwargs["config"].response_mime_type == "application/json"
    assert "German" in kwargs["contents"]


@pytest.mark.parametrize("text", ["not json at all", json.dumps({"title": "only a title"})])
def test_generate_article_reports_parse_errors(text):
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text=text)

    with pytest.raises(GenerationError) as exc_info:
        make_service(client).generate_article("https://example.com/a", GenerationOptions())

    assert exc_info.value.kind == GenerationError.PARSE
    assert "Failed to parse the structured article" in exc_info.value.message


def test_generate_article_normalizes_sdk_errors():
    client = MagicMock()
    client.models.generate_content.side_effect = RuntimeError(
        json.dumps({"error": {"code": 429, "message": "slow down", "status": "RESOURCE_EXHAUSTED"}})
    )

    with pytest.raises(GenerationError) as exc_info:
        make_service(client).generate_article("https://example.com/a", GenerationOptions())

    assert exc_info.value.kind == GenerationError.QUOTA
    assert "quota limits" in exc_info.value.message


def test_generate_feature_image_returns_bytes_at_16_9():
    client = MagicMock()
    client.models.generate_images.return_value = SimpleNamespace(
        generated_images=[SimpleNamespace(image=SimpleNamespace(image_bytes=b"jpeg"))]
    )

    assert make_service(client).generate_feature_image("a calm lake") == b"jpeg"
    assert client.models.generate_images.call_args.kwargs["config"].aspect_ratio == "16:9"


def test_empty_image_response_is_a_safety_block():
    client = MagicMock()
    client.models.generate_images.return_value = SimpleNamespace(generated_images=[])

    with pytest.raises(GenerationError) as exc_info:
        make_service(client).generate_social_image("a calm lake")

    assert exc_info.value.kind == GenerationError.SAFETY
    assert "Please try regenerating" in exc_info.value.message
    assert client.models.generate_images.call_args.kwargs["config"].aspect_ratio == "1:1"


def test_generate_social_posts_normalizes_hashtags():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text=json.dumps([
        {"platform": "Twitter", "caption": "x" * 281, "hashtags": ["AI", "#robots", " "], "imagePrompt": "p"},
        {"platform": "LinkedIn", "caption": "Hello", "hashtags": [], "imagePrompt": "q"},
    ]))

    posts = make_service(client).generate_social_posts("An article")

    assert [post.platform for post in posts] == [Platform.TWITTER, Platform.LINKEDIN]
    assert posts[0].hashtags == ["#AI", "#robots"]
    assert posts[0].is_over_limit is True
    assert posts[1].is_over_limit is False
    assert posts[0].share_text.endswith("#AI #robots")


def test_generate_social_posts_rejects_unknown_platform():
    client = MagicMock()
    client.models.generate_content.return_value = SimpleNamespace(text=json.dumps([
        {"platform": "MySpace", "caption": "c", "hashtags": [], "imagePrompt": "p"},
    ]))

    with pytest.raises(GenerationError) as exc_info:
        make_service(client).generate_social_posts("An article")

    assert exc_info.value.kind == GenerationError.PARSE


def test_poll_video_job_extracts_result_locator():
    video = SimpleNamespace(uri="https://files.example/v1:download?alt=media")
    operation = SimpleNamespace(done=True, response=SimpleNamespace(generated_videos=[SimpleNamespace(video=video)]))
    client = MagicMock()
    client.operations.get.return_value = operation

    status = make_service(client).poll_video_job("operations/1")

    assert status.done is True
    assert status.handle is operation
    assert status.result_locator == "https://files.example/v1:download?alt=media"


def test_poll_video_job_without_response_has_no_locator():
    client = MagicMock()
    client.operations.get.return_value = SimpleNamespace(done=False, response=None)

    status = make_service(client).poll_video_job("operations/1")

    assert status.done is False
    assert status.result_locator is None


def test_fetch_result_appends_api_key():
    response = MagicMock(ok=True, status_code=200, content=b"mp4")
    with patch("services.requests.get", return_value=response) as mock_get:
        data = make_service().fetch_result("https://files.example/v1:download?alt=media")

    assert data == b"mp4"
    assert mock_get.call_args.kwargs["params"] == {"key": "secret"}


def test_fetch_result_failures_are_job_failures():
    with patch("services.requests.get", return_value=MagicMock(ok=False, status_code=403)):
        with pytest.raises(GenerationError) as exc_info:
            make_service().fetch_result("https://files.example/v1")
    assert exc_info.value.message == "Failed to download video file. Status: 403"
    assert exc_info.value.kind == GenerationError.JOB_FAILED

    with patch("services.requests.get", side_effect=requests.ConnectionError("reset")):
        with pytest.raises(GenerationError) as exc_info:
            make_service().fetch_result("https://files.example/v1")
    assert exc_info.value.kind == GenerationError.JOB_FAILED


def test_missing_api_key_fails_on_use():
    service = AIService(api_key="")

    with pytest.raises(GenerationError):
        service.generate_feature_image("anything")
