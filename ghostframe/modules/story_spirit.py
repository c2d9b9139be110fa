"""
Story Spirit: turn study content into a themed story.
"""
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from ghostframe.modules.base import (
    ExecutionContext, GhostModule, ModuleError, RunStats, string_list_errors, text_field_errors,
)
from ghostframe.modules.prompts import AUDIENCE_GUIDANCE, LENGTH_GUIDANCE, STORY_SYSTEM, build_story_prompt
from ghostframe.services import text_analysis
from ghostframe.services.llm import parse_json_object

STORY_MIN_CHARS = 100
STORY_MAX_CHARS = 10_000

GENRES = ("educational", "adventure", "mystery", "fantasy", "sci-fi", "historical", "horror", "comedy")
AUDIENCES = tuple(AUDIENCE_GUIDANCE)
LENGTHS = tuple(LENGTH_GUIDANCE)

DEFAULT_GENRE = "educational"
DEFAULT_AUDIENCE = "teens"
DEFAULT_LENGTH = "medium"
DEFAULT_TONE = "engaging and educational"

MAX_TOKENS = {"short": 1000, "medium": 2000, "long": 4000}

REQUIRED_FIELDS = ("title", "story", "summary")
PARAGRAPH_RE = re.compile(r"\n\s*\n")


def split_chapters(story: str) -> List[str]:
    return [p.strip() for p in PARAGRAPH_RE.split(story or "") if p.strip()]


def _normalize_characters(raw: Any) -> List[Dict[str, str]]:
    characters = []
    for item in raw if isinstance(raw, list) else []:
        if isinstance(item, dict) and item.get("name"):
            characters.append({
                "name": str(item["name"]).strip(),
                "role": str(item.get("role", "")).strip(),
                "description": str(item.get("description", "")).strip(),
            })
        elif isinstance(item, str) and item.strip():
            characters.append({"name": item.strip(), "role": "", "description": ""})
    return characters


def story_quality_score(story: Dict[str, Any]) -> int:
    score = 100
    if len(story.get("story", "")) < 200:
        score -= 30
    if not story.get("characters"):
        score -= 20
    if not story.get("themes"):
        score -= 10
    if not story.get("summary"):
        score -= 10
    if story.get("metadata", {}).get("word_count", 0) < 100:
        score -= 20
    return max(0, score)


class StorySpiritModule(GhostModule):
    module_id = "story-spirit"
    name = "Story Spirit"
    description = "Transform any content into engaging stories with AI-powered narrative generation."
    tags = ["creative", "story", "ai"]
    error_code = "STORY_GENERATION_ERROR"
    success_events = ["story_generated", "content_processed"]
    failure_events = ["story_generation_failed"]

    def validate_input(self, data: Dict[str, Any]) -> List[str]:
        errors = []
        content = data.get("content")
        if not content or not isinstance(content, str):
            errors.append("Content is required and must be a string")
        elif len(content) < STORY_MIN_CHARS:
            errors.append(f"Content must be at least {STORY_MIN_CHARS} characters long")
        elif len(content) > STORY_MAX_CHARS:
            errors.append(f"Content must be less than {STORY_MAX_CHARS:,} characters")

        for key, allowed, label in (
            ("genre", GENRES, "Genre"),
            ("audience", AUDIENCES, "Audience"),
            ("length", LENGTHS, "Length"),
        ):
            value = data.get(key)
            if value is not None and value not in allowed:
                errors.append(f"{label} must be one of: {', '.join(allowed)}")

        errors.extend(string_list_errors(data, "characters", "Characters"))
        errors.extend(text_field_errors(data, {"tone": "Tone", "setting": "Setting", "custom_prompt": "Custom prompt"}))
        return errors

    def run(self, context: ExecutionContext, stats: RunStats) -> Dict[str, Any]:
        data = context.input
        genre = data.get("genre") or DEFAULT_GENRE
        audience = data.get("audience") or DEFAULT_AUDIENCE
        length = data.get("length") or DEFAULT_LENGTH
        tone = data.get("tone") or DEFAULT_TONE

        cleaned = text_analysis.clean_text(data["content"])
        themes = text_analysis.extract_themes(cleaned)
        concepts = text_analysis.extract_story_concepts(cleaned)

        prompt = build_story_prompt(
            cleaned, genre, audience, length, tone, concepts, themes,
            setting=data.get("setting"),
            characters=data.get("characters"),
            custom_prompt=data.get("custom_prompt"),
        )
        response = self.llm.generate(
            prompt,
            system=STORY_SYSTEM,
            provider=context.options.get("provider", "auto"),
            model=context.options.get("model"),
            temperature=0.8,
            max_tokens=MAX_TOKENS[length],
        )
        stats.record(response)

        parsed = parse_json_object(response.text, REQUIRED_FIELDS)
        if parsed is None:
            raise ModuleError("AI story generation failed: the response could not be parsed")

        story_text = str(parsed["story"]).strip()
        word_count = text_analysis.count_words(story_text)
        story_themes = [str(t).strip() for t in parsed.get("themes") or [] if str(t).strip()]

        return {
            "story_id": f"story_{uuid.uuid4().hex[:12]}",
            "content_id": data.get("content_id"),
            "title": str(parsed["title"]).strip().strip("\"'"),
            "story": story_text,
            "chapters": split_chapters(story_text),
            "characters": _normalize_characters(parsed.get("characters")),
            "themes": story_themes[:3] or themes[:3],
            "summary": str(parsed["summary"]).strip(),
            "moral": str(parsed.get("moral") or "").strip() or None,
            "metadata": {
                "word_count": word_count,
                "reading_time": text_analysis.estimate_reading_time(word_count),
                "genre": genre,
                "audience": audience,
                "length": length,
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        }

    def quality_score(self, output: Dict[str, Any]) -> int:
        return story_quality_score(output)
