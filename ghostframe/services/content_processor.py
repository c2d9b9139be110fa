"""
Content intake: turn uploaded files or pasted text into analysed content
"""
from __future__ import annotations

import html
import io
import json
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import structlog

from ghostframe.services import text_analysis
from ghostframe.services.logging import log_performance

logger = structlog.get_logger()

CONTENT_MIN_CHARS = 50
CONTENT_MAX_CHARS = 50_000
PDF_MAX_PAGES = 50

TEXT_TYPES = {"text/plain", "text/markdown", "text/x-markdown"}
PDF_TYPES = {"application/pdf"}
HTML_TYPES = {"text/html"}
JSON_TYPES = {"application/json"}

EXTENSION_TYPES = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".pdf": "application/pdf",
    ".html": "text/html",
    ".htm": "text/html",
    ".json": "application/json",
}

SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1>", re.IGNORECASE | re.DOTALL)
TAG_RE = re.compile(r"<[^>]+>")


class ContentError(ValueError):
    """Base class for content intake failures."""


class ContentLengthError(ContentError):
    pass


class UnsupportedContentError(ContentError):
    pass


@dataclass(frozen=True)
class ProcessedContent:
    content_id: str
    filename: str
    raw_text: str
    processed_text: str
    word_count: int
    key_topics: List[str]
    concepts: List[str]
    summary: str
    learning_objectives: List[str]
    subject: str
    difficulty: str
    readability: dict
    title: str
    tags: List[str] = field(default_factory=list)
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def new_content_id() -> str:
    return f"content_{uuid.uuid4().hex[:12]}"


def resolve_content_type(filename: str, content_type: Optional[str]) -> str:
    if content_type and content_type != "application/octet-stream":
        return content_type.split(";")[0].strip().lower()
    lower = (filename or "").lower()
    for ext, mime in EXTENSION_TYPES.items():
        if lower.endswith(ext):
            return mime
    return content_type or "application/octet-stream"


def _pdf_text(data: bytes) -> str:
    from pypdf import PdfReader
    from pypdf.errors import PdfReadError

    try:
        reader = PdfReader(io.BytesIO(data))
        return "\n".join((page.extract_text() or "") for page in reader.pages[:PDF_MAX_PAGES])
    except PdfReadError as e:
        raise UnsupportedContentError(f"PDF parse error: {e}") from e


def _html_text(markup: str) -> str:
    markup = SCRIPT_STYLE_RE.sub(" ", markup)
    return html.unescape(TAG_RE.sub(" ", markup))


def extract_text(filename: str, content_type: Optional[str], data: bytes) -> str:
    """Extract plain text from an uploaded file"""
    mime = resolve_content_type(filename, content_type)
    if mime in PDF_TYPES:
        return _pdf_text(data)
    if mime in HTML_TYPES:
        return _html_text(data.decode("utf-8", errors="ignore"))
    if mime in JSON_TYPES:
        try:
            return json.dumps(json.loads(data.decode("utf-8")), indent=2)
        except ValueError as e:
            raise UnsupportedContentError(f"Invalid JSON document: {e}") from e
    if mime in TEXT_TYPES or mime.startswith("text/"):
        return data.decode("utf-8", errors="ignore")
    raise UnsupportedContentError(f"Unsupported file type: {mime}")


def validate_length(text: str, minimum: int = CONTENT_MIN_CHARS, maximum: int = CONTENT_MAX_CHARS) -> None:
    length = len((text or "").strip())
    if length < minimum:
        raise ContentLengthError(f"Content must be at least {minimum} characters long")
    if length > maximum:
        raise ContentLengthError(f"Content must be less than {maximum:,} characters")


@log_performance("content_processor.process_content")
def process_content(
    text: str,
    filename: str = "pasted-text.txt",
    title: Optional[str] = None,
    subject: Optional[str] = None,
    difficulty: Optional[str] = None,
    tags: Optional[List[str]] = None,
) -> ProcessedContent:
    """Validate and analyse raw text. Raises ContentLengthError on bad input."""
    validate_length(text)
    processed = text_analysis.clean_text(text)
    # cleaning can strip a short document below the threshold
    validate_length(processed)

    key_topics = text_analysis.extract_key_topics(processed)
    word_count = text_analysis.count_words(processed)
    scores = text_analysis.readability(processed)
    detected_subject = text_analysis.detect_subject(processed, key_topics)

    content = ProcessedContent(
        content_id=new_content_id(),
        filename=filename,
        raw_text=text,
        processed_text=processed,
        word_count=word_count,
        key_topics=key_topics,
        concepts=text_analysis.extract_concepts(processed),
        summary=text_analysis.generate_summary(processed),
        learning_objectives=text_analysis.extract_learning_objectives(processed),
        subject=subject or detected_subject,
        difficulty=difficulty or scores["difficulty"],
        readability=scores,
        title=title or re.sub(r"\.[^/.]+$", "", filename),
        tags=tags or key_topics[:8],
    )

    logger.info(
        "content_processed",
        content_id=content.content_id,
        words=word_count,
        topics=len(key_topics),
        subject=content.subject,
        difficulty=content.difficulty,
    )
    return content
