from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select
import structlog

from ghostframe.db import get_session
from ghostframe.middleware.rate_limit import ai_generation_limit
from ghostframe.models import Story
from ghostframe.modules.base import VALIDATION_ERROR, ExecutionContext
from ghostframe.modules.registry import registry
from ghostframe.routers.quiz import resolve_source_text
from ghostframe.schemas import StoryGenerateRequest
from ghostframe.services.monitoring import AI_GENERATION_REQUESTS

logger = structlog.get_logger()

router = APIRouter(prefix="/api/story", tags=["story"])


def story_payload(story: Story) -> dict:
    return {
        "story_id": story.id,
        "content_id": story.content_id,
        "title": story.title,
        "story": story.story,
        "chapters": story.chapters,
        "characters": story.characters,
        "themes": story.themes,
        "summary": story.summary,
        "moral": story.moral,
        "metadata": story.story_metadata,
    }


@router.post("/generate")
@ai_generation_limit()
def generate_story(request: Request, body: StoryGenerateRequest, session: Session = Depends(get_session)):
    text, content = resolve_source_text(body.content_id, body.content, session)

    module = registry.get("story-spirit")
    result = module.execute(ExecutionContext(
        module_id=module.module_id,
        input={
            "content": text,
            "content_id": content.id if content else None,
            "genre": body.genre,
            "audience": body.audience,
            "length": body.length,
            "tone": body.tone,
            "characters": body.characters,
            "setting": body.setting,
            "custom_prompt": body.custom_prompt,
        },
        options={"provider": body.provider, "model": body.model},
    ))

    if not result.success:
        AI_GENERATION_REQUESTS.labels(type="story", status="error").inc()
        status_code = 400 if result.error["code"] == VALIDATION_ERROR else 502
        raise HTTPException(status_code=status_code, detail=result.error["message"])

    output = result.output
    story = Story(
        id=output["story_id"],
        content_id=output["content_id"],
        title=output["title"],
        story=output["story"],
        chapters=output["chapters"],
        characters=output["characters"],
        themes=output["themes"],
        summary=output["summary"],
        moral=output["moral"],
        story_metadata=output["metadata"],
    )
    session.add(story)
    session.commit()
    session.refresh(story)

    AI_GENERATION_REQUESTS.labels(type="story", status="success").inc()
    logger.info("story_generated", story_id=story.id, words=story.story_metadata.get("word_count"))
    return {
        "success": True,
        "data": {**story_payload(story), "execution": result.metadata},
        "message": "Story generated successfully",
    }


@router.get("")
def list_stories(content_id: Optional[str] = None, limit: int = 20, session: Session = Depends(get_session)):
    query = select(Story).order_by(Story.created_at.desc()).limit(min(limit, 100))
    if content_id:
        query = query.where(Story.content_id == content_id)
    return {"success": True, "data": [story_payload(s) for s in session.exec(query).all()]}


@router.get("/{story_id}")
def get_story(story_id: str, session: Session = Depends(get_session)):
    story = session.get(Story, story_id)
    if not story:
        raise HTTPException(status_code=404, detail="Story not found")
    return {"success": True, "data": story_payload(story)}
