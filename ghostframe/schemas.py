from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    username: str = Field(min_length=3, max_length=40)
    password: str = Field(min_length=6, max_length=72)
    full_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=254)
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TextUploadRequest(BaseModel):
    text: str
    title: Optional[str] = None
    subject: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Optional[List[str]] = None


class QuizGenerateRequest(BaseModel):
    content_id: Optional[str] = None
    content: Optional[str] = None
    question_count: int = 5
    difficulty: str = "medium"
    question_types: List[str] = Field(default_factory=lambda: ["multiple-choice"])
    focus_topics: Optional[List[str]] = None
    include_explanations: bool = True
    subject: Optional[str] = None
    title: Optional[str] = None
    provider: str = "auto"
    model: Optional[str] = None


class AnswerItem(BaseModel):
    question_id: str
    answer: Optional[str] = None


class QuizSubmission(BaseModel):
    answers: List[AnswerItem] = Field(default_factory=list)


class StoryGenerateRequest(BaseModel):
    content_id: Optional[str] = None
    content: Optional[str] = None
    genre: str = "adventure"
    audience: str = "teens"
    length: str = "medium"
    tone: Optional[str] = None
    characters: Optional[List[str]] = None
    setting: Optional[str] = None
    custom_prompt: Optional[str] = None
    provider: str = "auto"
    model: Optional[str] = None


class ModuleExecuteRequest(BaseModel):
    input: Dict[str, Any]
    options: Dict[str, Any] = Field(default_factory=dict)
