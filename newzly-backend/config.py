"""
Configuration file for the NEWZLY AI news writer backend.
Contains all global constants, generation options and prompt engineering templates.
"""

import os

# --- Constants ---
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
TEXT_MODEL = os.getenv("TEXT_MODEL", "gemini-2.5-flash")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "imagen-4.0-generate-001")
VIDEO_MODEL = os.getenv("VIDEO_MODEL", "veo-2.0-generate-001")
VIDEO_POLL_INTERVAL_SECONDS = float(os.getenv("VIDEO_POLL_INTERVAL_SECONDS", "10"))
DOWNLOAD_TIMEOUT_SECONDS = 180

PROJECT_ROOT = os.getcwd()
MEDIA_DIR = os.getenv("MEDIA_DIR", os.path.join(PROJECT_ROOT, "media"))
VIDEO_DIR = os.path.join(MEDIA_DIR, "videos")
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(PROJECT_ROOT, 'newzly.db')}")
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")

# --- Generation Options ---
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_LANGUAGE = "English"
MODEL_OPTIONS = [
    {"value": "gemini-2.5-flash", "label": "Gemini 2.5 Flash"},
]
LANGUAGE_OPTIONS = [
    "Chinese", "Dutch", "English", "French", "German", "Hindi",
    "Italian", "Japanese", "Portuguese", "Russian", "Spanish",
]
FEATURE_IMAGE_ASPECT_RATIO = "16:9"
SOCIAL_IMAGE_ASPECT_RATIO = "1:1"

# Loose per-platform caption limits; Facebook's is a practical soft cap.
CHARACTER_LIMITS = {
    "Twitter": 280,
    "Instagram": 2200,
    "Facebook": 5000,
    "LinkedIn": 3000,
}

ARTICLE_STEPS = [
    "Analyzing URL and crafting article...",
    "Generating feature image...",
    "Finalizing content...",
]

# --- Prompt Engineering Section ---

SEO_KEYWORD_INSTRUCTION = """
**SEO Keyword Integration:**
You have been provided with the following list of SEO keywords: "{seo_keywords}".
*   **Headline:** At least one of the primary keywords must be naturally integrated into the headline.
*   **Article Body:** Weave these keywords naturally throughout the article content, especially in subheadings and the first few paragraphs. Do not "keyword stuff". The integration must feel organic and relevant to the context. Aim for a sensible keyword density.
"""

ARTICLE_PROMPT = """
**Persona:**
Assume the persona of a seasoned, witty journalist for a top-tier online publication known for its sharp, insightful tech and culture commentary. You are writing an in-depth feature article, not a dry news report. Your goal is to inform, engage, and make the reader think.

**Primary Task:**
Write a 100% original, deeply researched, and highly engaging news article in {language}. The article's foundation is the content from this URL: {url}. You must synthesize the information, not just rephrase it, and build a compelling new narrative.
{keyword_instruction}
**Article Structure & Content Guidelines:**
1.  **Captivating Headline:** Create a headline that is intriguing and informative but avoids cheap clickbait.
2.  **Hooking Introduction (1-2 paragraphs):** Start with a powerful hook (a surprising fact, a relatable anecdote, or a provocative question) that grabs the reader's attention immediately. Set the scene and state why this topic is important right now.
3.  **Main Body (Multiple Sections):**
    *   Break the core story into logical sections using clear, compelling subheadings (Markdown: '## Subheading').
    *   For each section, go beyond surface-level facts. Explain the 'why' and 'how'.
    *   Incorporate different perspectives. If there are debates or opposing views, present them. Use phrases like "On one hand..." or "Critics, however, point out...".
    *   Weave in a human element. Use illustrative examples, or synthesized quotes (e.g., "according to one industry insider," or "as one user on a forum aptly put it,") to make the story more relatable.
4.  **Insight & Analysis (1-2 paragraphs):** This is crucial. What are the broader implications of this news? What does it mean for the industry, for society, for the reader? Connect the dots and offer a unique perspective.
5.  **Forward-Looking Conclusion (1 paragraph):** Do not just summarize. End with a thought-provoking statement, a question about the future, or a final, powerful insight that leaves a lasting impression on the reader.

**Style & Tone Requirements:**
*   **Language:** The entire output must be in {language}.
*   **Voice:** Authoritative, intelligent, and conversational with a touch of wit. Write like a smart, interesting person speaks.
*   **Sentence Fluency:** Vary your sentence structure. Use a mix of short, punchy statements and longer, more descriptive sentences to create a dynamic reading rhythm.
*   **Vivid Language:** Use strong verbs, metaphors, and clear analogies to explain complex ideas.
*   **STRICTLY AVOID:**
    *   AI clichés ("In today's fast-paced world...", "As we delve deeper...", "The landscape is ever-evolving...").
    *   Robotic, overly formal, or academic language.
    *   Jargon without explanation.
    *   Emojis or hyperlinks.
*   **Length:** Aim for a comprehensive feature piece, around 1200-1800 words.

**Output Format:**
Return a single, valid JSON object with the exact keys: "title", "imagePrompt", "videoPrompt", and "articleContent". Ensure the "articleContent" value contains the full article formatted with Markdown subheadings.
"""

SOCIAL_POSTS_PROMPT = """
Based on the following news article, create a series of SEO-optimized social media posts.

For each post, provide:
1. A compelling caption.
2. A list of relevant hashtags, with each hashtag STARTING WITH the '#' symbol.
3. A safe-for-work (SFW), purely descriptive prompt for a visually appealing, postcard-style square (1:1 aspect ratio) image. The prompt must avoid names, controversial topics, or ambiguous terms. Focus on creating a positive or neutral, generic, and universally acceptable image. Do not ask for any text to be rendered in the image.

Article:
---
{article_content}
---

Generate posts for the following platforms: Facebook, Instagram, Twitter, and LinkedIn. Your output must be in JSON format.
"""

# --- Response Schemas ---

ARTICLE_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "title": {
            "type": "STRING",
            "description": "A clickbait yet professional title.",
        },
        "imagePrompt": {
            "type": "STRING",
            "description": (
                "Create a safe-for-work (SFW), high-quality, photorealistic 16:9 feature image prompt. "
                "The prompt must be purely descriptive of a visual scene, avoiding any names, controversial "
                "topics, or ambiguous terms that could be misinterpreted. Focus on creating a visually "
                "appealing, generic, and universally acceptable image. Do not ask for any text to be "
                "rendered in the image."
            ),
        },
        "videoPrompt": {
            "type": "STRING",
            "description": (
                "Generate a highly descriptive, scene-by-scene prompt for a 15-30 second video summarizing "
                "the article. The prompt must be a single string. It should specify: \n"
                "1. **Overall Tone:** (e.g., 'inspirational and hopeful', 'urgent and informative', "
                "'sleek and futuristic'). \n"
                "2. **Key Visuals & Cinematography:** For several short scenes, describe specific, dynamic "
                "imagery based on the article. For each scene, specify **camera angles** (e.g., 'dramatic "
                "wide shot', 'intense close-up on a face', 'sweeping drone shot') and **scene transitions** "
                "(e.g., 'a quick cut to the next scene', 'a slow fade to black', 'a dynamic wipe effect'). \n"
                "3. **Text Overlays:** Include specific, concise text to appear on screen for key statistics "
                "or powerful quotes. \n"
                "4. **Music Style:** Suggest a genre of royalty-free background music that matches the tone. \n"
                "5. **Call to Action:** End with a simple, engaging question or statement for the viewer. "
                "The entire output should be a single, coherent paragraph."
            ),
        },
        "articleContent": {
            "type": "STRING",
            "description": (
                "The full news article (1000-1500 words) in the specified language, following all the "
                "rules, with subheadings prefixed by '##'."
            ),
        },
    },
    "required": ["title", "imagePrompt", "videoPrompt", "articleContent"],
}

SOCIAL_POSTS_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "platform": {
                "type": "STRING",
                "enum": ["Facebook", "Instagram", "Twitter", "LinkedIn"],
                "description": "The social media platform.",
            },
            "caption": {"type": "STRING", "description": "A compelling caption for the post."},
            "hashtags": {
                "type": "ARRAY",
                "items": {"type": "STRING"},
                "description": "An array of relevant hashtags, each one starting with '#'.",
            },
            "imagePrompt": {
                "type": "STRING",
                "description": (
                    "A detailed, SFW prompt for generating a postcard-style image, avoiding names, "
                    "controversial topics, or ambiguous terms."
                ),
            },
        },
        "required": ["platform", "caption", "hashtags", "imagePrompt"],
    },
}
