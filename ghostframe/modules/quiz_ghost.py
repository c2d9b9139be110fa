"""
Quiz Ghost: generate quizzes from study content.

Key statements are pulled out of the content heuristically, each one is turned
into a single-question prompt, and the JSON completions are assembled into a
quiz. A completion that cannot be parsed drops that question; it never fails
the whole quiz unless nothing usable came back.
"""
from __future__ import annotations

import random
import uuid
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

from ghostframe.modules.base import (
    ExecutionContext, GhostModule, ModuleError, RunStats, string_list_errors, text_field_errors,
)
from ghostframe.modules.prompts import (
    MULTIPLE_CHOICE, QUIZ_SYSTEM, SHORT_ANSWER, TRUE_FALSE, build_question_prompt,
)
from ghostframe.services import text_analysis
from ghostframe.services.content_processor import CONTENT_MAX_CHARS, CONTENT_MIN_CHARS
from ghostframe.services.llm import parse_json_object

logger = structlog.get_logger()

QUESTION_TYPES = (MULTIPLE_CHOICE, TRUE_FALSE, SHORT_ANSWER)
DIFFICULTIES = ("easy", "medium", "hard")

MIN_QUESTIONS = 1
MAX_QUESTIONS = 20
DEFAULT_QUESTIONS = 5
DEFAULT_DIFFICULTY = "medium"

POINTS = {"easy": 1, "medium": 2, "hard": 3}
SHORT_ANSWER_POINTS = {"easy": 2, "medium": 3, "hard": 5}

FALLBACK_STATEMENT_CHARS = 200
OPTION_LETTERS = "ABCDEF"

REQUIRED_FIELDS = {
    MULTIPLE_CHOICE: ("question", "options", "correctAnswer", "explanation"),
    TRUE_FALSE: ("question", "correctAnswer", "explanation"),
    SHORT_ANSWER: ("question", "correctAnswer", "explanation"),
}


@dataclass(frozen=True)
class QuizQuestion:
    id: str
    type: str
    question: str
    correct_answer: str
    explanation: str
    difficulty: str
    topic: str
    points: int
    options: List[str] = field(default_factory=list)


def normalize_question_type(value: str) -> Optional[str]:
    normalized = str(value or "").strip().lower().replace("_", "-").replace(" ", "-")
    return normalized if normalized in QUESTION_TYPES else None


def calculate_points(question_type: str, difficulty: str) -> int:
    if question_type == SHORT_ANSWER:
        return SHORT_ANSWER_POINTS[difficulty]
    return POINTS[difficulty]


def distribute_question_types(types: List[str], count: int) -> Dict[str, int]:
    """Spread count over types; the first types absorb the remainder."""
    per_type, remainder = divmod(count, len(types))
    return {t: per_type + (1 if i < remainder else 0) for i, t in enumerate(types)}


def _normalize_true_false(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return "True" if value else "False"
    text = str(value).strip().lower()
    if text in ("true", "t", "yes"):
        return "True"
    if text in ("false", "f", "no"):
        return "False"
    return None


def parse_question_response(question_type: str, text: str) -> Optional[dict]:
    """Validate one completion. Returns None instead of raising on bad output."""
    data = parse_json_object(text, REQUIRED_FIELDS[question_type])
    if data is None:
        return None

    parsed = {
        "question": str(data["question"]).strip(),
        "correct_answer": str(data["correctAnswer"]).strip(),
        "explanation": str(data["explanation"]).strip(),
        "options": [],
    }
    if question_type == MULTIPLE_CHOICE:
        options = data["options"]
        if not isinstance(options, list) or len(options) < 2:
            return None
        parsed["options"] = [str(o).strip() for o in options[:len(OPTION_LETTERS)]]
        letter = parsed["correct_answer"].upper().rstrip(").")
        if len(letter) == 1 and letter in OPTION_LETTERS[:len(parsed["options"])]:
            parsed["correct_answer"] = parsed["options"][OPTION_LETTERS.index(letter)]
    elif question_type == TRUE_FALSE:
        answer = _normalize_true_false(data["correctAnswer"])
        if answer is None:
            return None
        parsed["correct_answer"] = answer
        parsed["options"] = ["True", "False"]
    return parsed


def quiz_quality_score(quiz: Dict[str, Any]) -> int:
    questions = quiz.get("questions", [])
    score = 100
    if not questions:
        score -= 50
    if any(not q.get("explanation") for q in questions):
        score -= 10
    if any(len(q.get("question", "")) < 10 for q in questions):
        score -= 15
    if not quiz.get("metadata", {}).get("topics"):
        score -= 5
    return max(0, score)


def _answer_matches(question: Dict[str, Any], answer: Any) -> bool:
    if answer is None:
        return False
    given = str(answer).strip()
    options = question.get("options") or []
    if question.get("type") == MULTIPLE_CHOICE and len(given) == 1 and given.upper() in OPTION_LETTERS[:len(options)]:
        given = options[OPTION_LETTERS.index(given.upper())]
    if question.get("type") == TRUE_FALSE:
        given = _normalize_true_false(given) or given
    return given.lower() == str(question.get("correct_answer", "")).strip().lower()


def score_submission(quiz: Dict[str, Any], answers: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Grade a list of {question_id, answer} against a stored quiz."""
    by_id = {str(a.get("question_id")): a.get("answer") for a in answers}
    questions = quiz.get("questions", [])

    correct = 0
    points = 0
    results = []
    for question in questions:
        given = by_id.get(question["id"])
        is_correct = _answer_matches(question, given)
        if is_correct:
            correct += 1
            points += question["points"]
        results.append({
            "question_id": question["id"],
            "question": question["question"],
            "user_answer": given if given is not None else "No answer",
            "correct_answer": question["correct_answer"],
            "is_correct": is_correct,
            "explanation": question.get("explanation", ""),
            "points": question["points"] if is_correct else 0,
        })

    total = len(questions)
    return {
        "quiz_id": quiz.get("quiz_id"),
        "score": {
            "correct": correct,
            "total": total,
            "percentage": round(correct / total * 100) if total else 0,
            "points": points,
            "max_points": sum(q["points"] for q in questions),
        },
        "results": results,
        "completed_at": datetime.now(timezone.utc).isoformat(),
    }


class QuizGhostModule(GhostModule):
    module_id = "quiz-ghost"
    name = "Quiz Ghost"
    description = "AI-powered quiz generation from any content with adaptive difficulty."
    tags = ["education", "quiz", "ai"]
    error_code = "QUIZ_GENERATION_ERROR"
    success_events = ["quiz_generated", "content_processed"]
    failure_events = ["quiz_generation_failed"]

    def __init__(self, llm=None, rng: Optional[random.Random] = None) -> None:
        super().__init__(llm)
        self.rng = rng or random.Random()

    def validate_input(self, data: Dict[str, Any]) -> List[str]:
        errors = []
        content = data.get("content")
        if not content or not isinstance(content, str):
            errors.append("Content is required and must be a string")
        elif len(content) < CONTENT_MIN_CHARS:
            errors.append(f"Content must be at least {CONTENT_MIN_CHARS} characters long")
        elif len(content) > CONTENT_MAX_CHARS:
            errors.append(f"Content must be less than {CONTENT_MAX_CHARS:,} characters")

        count = data.get("question_count")
        if count is not None:
            if isinstance(count, bool) or not isinstance(count, int) or not MIN_QUESTIONS <= count <= MAX_QUESTIONS:
                errors.append(f"Question count must be between {MIN_QUESTIONS} and {MAX_QUESTIONS}")

        difficulty = data.get("difficulty")
        if difficulty is not None and difficulty not in DIFFICULTIES:
            errors.append("Difficulty must be easy, medium, or hard")

        types = data.get("question_types")
        if types is not None:
            if not isinstance(types, list) or not types:
                errors.append("Question types must be a non-empty list")
            else:
                unknown = [t for t in types if normalize_question_type(t) is None]
                if unknown:
                    errors.append(f"Unknown question types: {', '.join(map(str, unknown))}")

        errors.extend(string_list_errors(data, "focus_areas", "Focus areas"))
        errors.extend(text_field_errors(data, {"title": "Title", "subject": "Subject", "content_id": "Content id"}))
        include_explanations = data.get("include_explanations")
        if include_explanations is not None and not isinstance(include_explanations, bool):
            errors.append("Include explanations must be true or false")
        return errors

    def run(self, context: ExecutionContext, stats: RunStats) -> Dict[str, Any]:
        data = context.input
        count = data.get("question_count") or DEFAULT_QUESTIONS
        difficulty = data.get("difficulty") or DEFAULT_DIFFICULTY
        types = list(dict.fromkeys(
            normalize_question_type(t) for t in (data.get("question_types") or [MULTIPLE_CHOICE])
        ))
        include_explanations = data.get("include_explanations", True) is not False

        cleaned = text_analysis.clean_text(data["content"])
        statements = text_analysis.extract_key_statements(cleaned)
        if not statements:
            statements = [cleaned[:FALLBACK_STATEMENT_CHARS]]
        topics = text_analysis.extract_topics(cleaned, data.get("focus_areas"))

        questions: List[QuizQuestion] = []
        next_id = 1
        for question_type, wanted in distribute_question_types(types, count).items():
            for _ in range(wanted):
                statement = self.rng.choice(statements)
                topic = text_analysis.select_relevant_topic(statement, topics, self.rng)
                question = self._generate_question(
                    question_type, statement, topic, difficulty, f"q{next_id}",
                    include_explanations, context.options, stats,
                )
                next_id += 1
                if question is not None:
                    questions.append(question)

        if not questions:
            raise ModuleError(
                "AI quiz generation failed: no usable questions were produced. "
                "Check the content and the configured AI provider."
            )

        self.rng.shuffle(questions)
        questions = questions[:count]
        question_dicts = [asdict(q) for q in questions]

        return {
            "quiz_id": f"quiz_{uuid.uuid4().hex[:12]}",
            "content_id": data.get("content_id"),
            "title": data.get("title") or f"Quiz: {data.get('subject') or 'Generated Content'}",
            "description": f"AI-generated quiz with {len(questions)} questions",
            "questions": question_dicts,
            "metadata": {
                "total_questions": len(questions),
                "total_points": sum(q.points for q in questions),
                "estimated_time": max(5, len(questions) * 2),
                "difficulty": difficulty,
                "topics": list(dict.fromkeys(q.topic for q in questions)),
                "created_at": datetime.now(timezone.utc).isoformat(),
            },
        }

    def _generate_question(self, question_type: str, statement: str, topic: str, difficulty: str,
                           question_id: str, include_explanations: bool, options: Dict[str, Any],
                           stats: RunStats) -> Optional[QuizQuestion]:
        prompt = build_question_prompt(question_type, statement, difficulty)
        response = self.llm.generate(
            prompt,
            system=QUIZ_SYSTEM,
            provider=options.get("provider", "auto"),
            model=options.get("model"),
            temperature=0.7,
            max_tokens=600,
        )
        stats.record(response)

        parsed = parse_question_response(question_type, response.text)
        if parsed is None:
            logger.warning("question_discarded", question_id=question_id, type=question_type)
            return None

        return QuizQuestion(
            id=question_id,
            type=question_type,
            question=parsed["question"],
            options=parsed["options"],
            correct_answer=parsed["correct_answer"],
            explanation=parsed["explanation"] if include_explanations else "",
            difficulty=difficulty,
            topic=topic,
            points=calculate_points(question_type, difficulty),
        )

    def quality_score(self, output: Dict[str, Any]) -> int:
        return quiz_quality_score(output)
