"""
Module framework: every content generator is a GhostModule that turns an
ExecutionContext into an ExecutionResult.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

import structlog

from ghostframe.services.content_processor import ContentError
from ghostframe.services.llm import LLMError, LLMRouter, get_router

logger = structlog.get_logger()

VALIDATION_ERROR = "VALIDATION_ERROR"


class ModuleError(RuntimeError):
    """Generation failed after input validation passed."""


def text_field_errors(data: Dict[str, Any], fields: Dict[str, str]) -> List[str]:
    """Optional free-text inputs must be strings when given."""
    return [
        f"{label} must be a string"
        for key, label in fields.items()
        if data.get(key) is not None and not isinstance(data[key], str)
    ]


def string_list_errors(data: Dict[str, Any], key: str, label: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        return [f"{label} must be a list of strings"]
    return []


@dataclass
class ExecutionContext:
    module_id: str
    input: Dict[str, Any]
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ExecutionResult:
    success: bool
    output: Optional[Dict[str, Any]] = None
    error: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RunStats:
    """Accumulates LLM usage while a module runs."""
    tokens_used: int = 0
    cache_hit: bool = False
    ai_model: Optional[str] = None
    provider: Optional[str] = None

    def record(self, response) -> None:
        self.tokens_used += response.usage.get("total_tokens", 0)
        self.cache_hit = self.cache_hit or response.cached
        self.ai_model = response.model
        self.provider = response.provider


class GhostModule:
    module_id = ""
    name = ""
    description = ""
    version = "1.0.0"
    author = "GhostFrame Team"
    tags: List[str] = []
    error_code = "MODULE_ERROR"
    success_events: List[str] = []
    failure_events: List[str] = []

    def __init__(self, llm: Optional[LLMRouter] = None) -> None:
        self._llm = llm

    @property
    def llm(self) -> LLMRouter:
        return self._llm or get_router()

    def manifest(self) -> dict:
        return {
            "id": self.module_id,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "author": self.author,
            "tags": list(self.tags),
        }

    def validate_input(self, data: Dict[str, Any]) -> List[str]:
        return []

    def run(self, context: ExecutionContext, stats: RunStats) -> Dict[str, Any]:
        raise NotImplementedError

    def quality_score(self, output: Dict[str, Any]) -> int:
        return 100

    def _failure(self, code: str, message: str, context: ExecutionContext, started: float,
                 stats: RunStats) -> ExecutionResult:
        logger.warning("module_execution_failed", module=self.module_id, code=code, error=message)
        return ExecutionResult(
            success=False,
            error={"code": code, "message": message, "details": {"module_id": context.module_id}},
            metadata={
                "execution_time_ms": int((time.perf_counter() - started) * 1000),
                "ai_model": stats.ai_model or context.options.get("model"),
                "tokens_used": 0,
                "cache_hit": False,
                "events": list(self.failure_events),
            },
        )

    def execute(self, context: ExecutionContext) -> ExecutionResult:
        started = time.perf_counter()
        stats = RunStats()
        data = context.input if isinstance(context.input, dict) else {}

        errors = self.validate_input(data)
        if errors:
            return self._failure(
                VALIDATION_ERROR, "Input validation failed: " + ", ".join(errors), context, started, stats
            )

        try:
            output = self.run(ExecutionContext(context.module_id, data, context.options), stats)
        except (ModuleError, LLMError, ContentError) as e:
            return self._failure(self.error_code, str(e), context, started, stats)

        result = ExecutionResult(
            success=True,
            output=output,
            metadata={
                "execution_time_ms": int((time.perf_counter() - started) * 1000),
                "ai_model": stats.ai_model,
                "provider": stats.provider,
                "tokens_used": stats.tokens_used,
                "cache_hit": stats.cache_hit,
                "quality_score": self.quality_score(output),
                "events": list(self.success_events),
            },
        )
        logger.info("module_executed", module=self.module_id,
                    execution_time_ms=result.metadata["execution_time_ms"],
                    quality_score=result.metadata["quality_score"])
        return result
