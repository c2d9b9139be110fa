from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile
from sqlmodel import Session, select
import structlog

from ghostframe import config
from ghostframe.auth import get_optional_user
from ghostframe.db import get_session
from ghostframe.middleware.rate_limit import upload_limit
from ghostframe.models import Content, User
from ghostframe.schemas import TextUploadRequest
from ghostframe.services.content_processor import (
    ContentLengthError, ProcessedContent, UnsupportedContentError, extract_text, process_content,
)
from ghostframe.services.monitoring import CONTENT_UPLOADS

logger = structlog.get_logger()

router = APIRouter(prefix="/api/upload", tags=["upload"])


def content_payload(content: Content, include_text: bool = False) -> dict:
    payload = {
        "content_id": content.id,
        "filename": content.filename,
        "title": content.title,
        "word_count": content.word_count,
        "key_topics": content.key_topics,
        "concepts": content.concepts,
        "summary": content.summary,
        "learning_objectives": content.learning_objectives,
        "subject": content.subject,
        "difficulty": content.difficulty,
        "readability": content.readability,
        "tags": content.tags,
        "uploaded_at": content.uploaded_at.isoformat(),
    }
    if include_text:
        payload["processed_text"] = content.processed_text
    return payload


def _store(processed: ProcessedContent, user: Optional[User], session: Session) -> Content:
    content = Content(
        id=processed.content_id,
        user_id=user.id if user else None,
        filename=processed.filename,
        title=processed.title,
        raw_text=processed.raw_text,
        processed_text=processed.processed_text,
        word_count=processed.word_count,
        key_topics=processed.key_topics,
        concepts=processed.concepts,
        tags=processed.tags,
        learning_objectives=processed.learning_objectives,
        readability=processed.readability,
        summary=processed.summary,
        subject=processed.subject,
        difficulty=processed.difficulty,
        uploaded_at=processed.uploaded_at,
    )
    session.add(content)
    session.commit()
    session.refresh(content)
    return content


@router.post("")
@upload_limit()
async def upload_file(
    request: Request,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    difficulty: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
):
    data = await file.read()
    if len(data) > config.MAX_UPLOAD_BYTES:
        CONTENT_UPLOADS.labels(status="rejected").inc()
        raise HTTPException(status_code=413, detail="File too large. Maximum size is 10MB.")

    filename = file.filename or "upload.txt"
    try:
        text = extract_text(filename, file.content_type, data)
        processed = process_content(
            text,
            filename=filename,
            title=title,
            subject=subject,
            difficulty=difficulty,
            tags=[t.strip() for t in tags.split(",") if t.strip()] if tags else None,
        )
    except UnsupportedContentError as e:
        CONTENT_UPLOADS.labels(status="rejected").inc()
        raise HTTPException(status_code=415, detail=str(e))
    except ContentLengthError as e:
        CONTENT_UPLOADS.labels(status="rejected").inc()
        raise HTTPException(status_code=400, detail=str(e))

    content = _store(processed, user, session)
    CONTENT_UPLOADS.labels(status="success").inc()
    logger.info("content_uploaded", content_id=content.id, filename=filename, bytes=len(data))
    return {"success": True, "data": content_payload(content), "message": "Content uploaded and processed successfully"}


@router.post("/text")
@upload_limit()
def upload_text(
    request: Request,
    body: TextUploadRequest,
    session: Session = Depends(get_session),
    user: Optional[User] = Depends(get_optional_user),
):
    try:
        processed = process_content(
            body.text,
            title=body.title,
            subject=body.subject,
            difficulty=body.difficulty,
            tags=body.tags,
        )
    except ContentLengthError as e:
        CONTENT_UPLOADS.labels(status="rejected").inc()
        raise HTTPException(status_code=400, detail=str(e))

    content = _store(processed, user, session)
    CONTENT_UPLOADS.labels(status="success").inc()
    return {"success": True, "data": content_payload(content), "message": "Text content processed successfully"}


@router.get("")
def list_contents(limit: int = 20, offset: int = 0, session: Session = Depends(get_session)):
    rows = session.exec(
        select(Content).order_by(Content.uploaded_at.desc()).offset(offset).limit(min(limit, 100))
    ).all()
    return {"success": True, "data": [content_payload(c) for c in rows]}


@router.get("/{content_id}")
def get_content(content_id: str, session: Session = Depends(get_session)):
    content = session.get(Content, content_id)
    if not content:
        raise HTTPException(status_code=404, detail="Content not found")
    return {"success": True, "data": content_payload(content, include_text=True)}
