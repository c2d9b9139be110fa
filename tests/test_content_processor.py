"""
Unit tests for content intake
"""
import json

import pytest

from ghostframe.services.content_processor import (
    ContentLengthError, UnsupportedContentError, extract_text, process_content, resolve_content_type,
)

TEXT = (
    "Plate tectonics is the theory that the outer shell of the Earth is divided into plates. "
    "These plates are moving slowly because of convection currents in the mantle. "
    "Earthquakes are a result of plates grinding past one another along fault lines."
)


class TestProcessContent:
    def test_too_short_is_rejected(self):
        with pytest.raises(ContentLengthError, match="at least 50 characters"):
            process_content("x" * 40)

    def test_too_long_is_rejected(self):
        with pytest.raises(ContentLengthError, match="less than 50,000 characters"):
            process_content("word " * 12000)

    def test_cleaning_below_threshold_is_rejected(self):
        # symbols are stripped, leaving too little text
        with pytest.raises(ContentLengthError):
            process_content("ok " + "@" * 60)

    def test_analysis_fields(self):
        content = process_content(TEXT, filename="geology.txt")
        assert content.content_id.startswith("content_")
        assert content.title == "geology"
        assert content.word_count == len(TEXT.split())
        assert content.key_topics
        assert content.tags == content.key_topics[:8]
        assert content.difficulty in ("beginner", "intermediate", "advanced")
        assert content.readability["estimated_reading_time"] == 1
        assert content.readability["estimated_tokens"] == -(-len(content.processed_text) // 4)
        assert content.concepts[0].startswith("Plate tectonics is the theory")
        assert content.uploaded_at.tzinfo is not None

    def test_explicit_metadata_wins(self):
        content = process_content(TEXT, title="Plates", subject="Geology", difficulty="advanced", tags=["earth"])
        assert (content.title, content.subject, content.difficulty, content.tags) == (
            "Plates", "Geology", "advanced", ["earth"],
        )


class TestExtractText:
    def test_content_type_from_extension(self):
        assert resolve_content_type("notes.md", None) == "text/markdown"
        assert resolve_content_type("page.HTML", "application/octet-stream") == "text/html"
        assert resolve_content_type("x.txt", "text/plain; charset=utf-8") == "text/plain"

    def test_plain_text(self):
        assert extract_text("a.txt", "text/plain", "héllo".encode("utf-8")) == "héllo"

    def test_html(self):
        markup = b"<html><style>p {color: red}</style><p>Tom &amp; Jerry</p></html>"
        assert extract_text("a.html", "text/html", markup).split() == ["Tom", "&", "Jerry"]

    def test_json_is_pretty_printed(self):
        data = json.dumps({"topic": "cells"}).encode("utf-8")
        assert extract_text("a.json", "application/json", data) == '{\n  "topic": "cells"\n}'

    def test_invalid_json(self):
        with pytest.raises(UnsupportedContentError):
            extract_text("a.json", "application/json", b"{not json")

    def test_unsupported(self):
        with pytest.raises(UnsupportedContentError):
            extract_text("photo.png", "image/png", b"\x89PNG")
