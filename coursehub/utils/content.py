"""Helpers for interpreting module content by type."""
import json
import math
from typing import Optional, Tuple

from coursehub.models.course import ModuleType


MODULE_TYPES = {t.value for t in ModuleType}


def is_article(content_type: Optional[str]) -> bool:
    return (content_type or "").lower() == ModuleType.ARTICLE.value


def content_to_persist(content_type: Optional[str], markdown_content: Optional[str], content_url: Optional[str]) -> str:
    """Pick the single value stored in `modules.content`.

    Articles keep their markdown body; every other type keeps a URL.
    """
    if is_article(content_type):
        return markdown_content or ""
    return content_url or ""


def split_content(content_type: Optional[str], content: Optional[str]) -> Tuple[str, str]:
    """Return (markdown_content, content_url) for a stored module."""
    if is_article(content_type):
        return content or "", ""
    return "", content or ""


def map_module_type(module_type: Optional[str]) -> str:
    """Map a stored module_type onto the learner-facing type.

    Unknown or missing types are treated as evaluative.
    """
    value = (module_type or "").lower()
    if value in {ModuleType.VIDEO.value, ModuleType.ARTICLE.value, ModuleType.MARKDOWN.value, ModuleType.HYPERLINK.value}:
        return value
    return ModuleType.EVALUATIVE.value


def resolve_video_url(content: Optional[str]) -> Optional[str]:
    """Extract the URL from video content.

    Video content is either a bare URL or a JSON object such as
    ``{"url": "https://..."}``.
    """
    if not content:
        return None
    text = content.strip()
    if text.startswith("{"):
        try:
            descriptor = json.loads(text)
        except ValueError:
            return None
        url = descriptor.get("url") if isinstance(descriptor, dict) else None
        return url or None
    return text


def duration_label(total_minutes: Optional[int]) -> str:
    weeks = math.ceil((total_minutes or 0) / 60)
    return f"{weeks} weeks"
