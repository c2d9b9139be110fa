from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlmodel import Session, select
import structlog

from ghostframe.db import get_session
from ghostframe.middleware.rate_limit import ai_generation_limit
from ghostframe.models import Content, Quiz
from ghostframe.modules.base import VALIDATION_ERROR, ExecutionContext
from ghostframe.modules.quiz_ghost import MAX_QUESTIONS, MIN_QUESTIONS, score_submission
from ghostframe.modules.registry import registry
from ghostframe.schemas import QuizGenerateRequest, QuizSubmission
from ghostframe.services.monitoring import AI_GENERATION_REQUESTS

logger = structlog.get_logger()

router = APIRouter(prefix="/api/quiz", tags=["quiz"])


def quiz_payload(quiz: Quiz) -> dict:
    return {
        "quiz_id": quiz.id,
        "content_id": quiz.content_id,
        "title": quiz.title,
        "description": quiz.description,
        "questions": quiz.questions,
        "metadata": quiz.quiz_metadata,
    }


def resolve_source_text(content_id: Optional[str], text: Optional[str], session: Session) -> tuple:
    """Return (text, Content or None) for a generation request."""
    if content_id:
        content = session.get(Content, content_id)
        if not content:
            raise HTTPException(status_code=404, detail="Content not found")
        return content.processed_text, content
    if not text:
        raise HTTPException(status_code=400, detail="Either content_id or content is required")
    return text, None


@router.post("/generate")
@ai_generation_limit()
def generate_quiz(request: Request, body: QuizGenerateRequest, session: Session = Depends(get_session)):
    text, content = resolve_source_text(body.content_id, body.content, session)

    module = registry.get("quiz-ghost")
    result = module.execute(ExecutionContext(
        module_id=module.module_id,
        input={
            "content": text,
            "content_id": content.id if content else None,
            "question_count": max(MIN_QUESTIONS, min(MAX_QUESTIONS, body.question_count)),
            "difficulty": body.difficulty,
            "question_types": body.question_types,
            "include_explanations": body.include_explanations,
            "focus_areas": body.focus_topics or (content.key_topics if content else None),
            "subject": body.subject or (content.subject if content else None),
            "title": body.title,
        },
        options={"provider": body.provider, "model": body.model},
    ))

    if not result.success:
        AI_GENERATION_REQUESTS.labels(type="quiz", status="error").inc()
        status_code = 400 if result.error["code"] == VALIDATION_ERROR else 502
        raise HTTPException(status_code=status_code, detail=result.error["message"])

    output = result.output
    quiz = Quiz(
        id=output["quiz_id"],
        content_id=output["content_id"],
        title=output["title"],
        description=output["description"],
        difficulty=output["metadata"]["difficulty"],
        questions=output["questions"],
        quiz_metadata=output["metadata"],
    )
    session.add(quiz)
    session.commit()
    session.refresh(quiz)

    AI_GENERATION_REQUESTS.labels(type="quiz", status="success").inc()
    logger.info("quiz_generated", quiz_id=quiz.id, questions=len(quiz.questions),
                provider=result.metadata.get("provider"))
    return {
        "success": True,
        "data": {**quiz_payload(quiz), "execution": result.metadata},
        "message": f"Quiz generated with {len(quiz.questions)} questions",
    }


@router.get("")
def list_quizzes(content_id: Optional[str] = None, limit: int = 20, session: Session = Depends(get_session)):
    query = select(Quiz).order_by(Quiz.created_at.desc()).limit(min(limit, 100))
    if content_id:
        query = query.where(Quiz.content_id == content_id)
    return {"success": True, "data": [quiz_payload(q) for q in session.exec(query).all()]}


@router.get("/{quiz_id}")
def get_quiz(quiz_id: str, session: Session = Depends(get_session)):
    quiz = session.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return {"success": True, "data": quiz_payload(quiz)}


@router.post("/{quiz_id}/submit")
def submit_quiz(quiz_id: str, body: QuizSubmission, session: Session = Depends(get_session)):
    quiz = session.get(Quiz, quiz_id)
    if not quiz:
        raise HTTPException(status_code=404, detail="Quiz not found")
    graded = score_submission(quiz_payload(quiz), [a.model_dump() for a in body.answers])
    logger.info("quiz_submitted", quiz_id=quiz_id, percentage=graded["score"]["percentage"])
    return {"success": True, "data": graded, "message": "Quiz submitted successfully"}
