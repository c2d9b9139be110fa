from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import structlog
from openai import OpenAI, OpenAIError

from ghostframe import config
from ghostframe.services.cache import CacheService, cache as default_cache

logger = structlog.get_logger()

AUTO = "auto"
MOCK = "mock"
PROVIDER_ORDER = ("groq", "openai")


class LLMError(RuntimeError):
    pass


class LLMUnavailableError(LLMError):
    pass


@dataclass
class LLMResponse:
    text: str
    provider: str
    model: str
    usage: Dict[str, int] = field(default_factory=dict)
    cached: bool = False


class OpenAICompatibleProvider:
    """Chat-completions provider. Groq speaks the same API under another base URL."""

    def __init__(self, name: str, api_key: str, model: str, base_url: Optional[str] = None,
                 timeout: float = config.LLM_TIMEOUT_SECONDS) -> None:
        self.name = name
        self.model = model
        self._api_key = api_key
        self._base_url = base_url
        self._timeout = timeout
        self._client: Optional[OpenAI] = None

    def _get_client(self) -> OpenAI:
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key, base_url=self._base_url).with_options(
                timeout=self._timeout
            )
        return self._client

    def complete(self, prompt: str, *, system: Optional[str] = None, model: Optional[str] = None,
                 temperature: float = 0.7, max_tokens: int = 2000) -> LLMResponse:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        model = model or self.model
        try:
            rsp = self._get_client().chat.completions.create(
                model=model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            raise LLMError(f"{self.name} request failed: {e}") from e
        content = rsp.choices[0].message.content if rsp.choices else None
        if not content:
            raise LLMError(f"No content received from {self.name}")
        usage = {}
        if rsp.usage is not None:
            usage = {
                "prompt_tokens": rsp.usage.prompt_tokens or 0,
                "completion_tokens": rsp.usage.completion_tokens or 0,
                "total_tokens": rsp.usage.total_tokens or 0,
            }
        return LLMResponse(text=content, provider=self.name, model=model, usage=usage)


# -------------------- MOCK --------------------

MOCK_MULTIPLE_CHOICE = {
    "question": "What is the main concept discussed in the given statement?",
    "options": ["Concept A", "Concept B", "Concept C", "Concept D"],
    "correctAnswer": "Concept A",
    "explanation": "This is the correct answer based on the provided information.",
}
MOCK_TRUE_FALSE = {
    "question": "The statement provided is accurate and complete.",
    "correctAnswer": "True",
    "explanation": "The statement accurately reflects the information provided.",
}
MOCK_SHORT_ANSWER = {
    "question": "Explain the significance of the concept mentioned in the statement.",
    "correctAnswer": "The concept is significant because it demonstrates key principles and has practical applications.",
    "explanation": "A good answer should include the main principles, examples, and real-world applications.",
}

MOCK_PARAGRAPHS = {"short": 3, "medium": 5, "long": 8}


def _prompt_field(prompt: str, label: str) -> Optional[str]:
    match = re.search(r"^\s*-?\s*%s:\s*(.+)$" % re.escape(label), prompt, re.MULTILINE | re.IGNORECASE)
    return match.group(1).strip() if match else None


def _mock_story(prompt: str) -> dict:
    concepts = [c.strip() for c in (_prompt_field(prompt, "Key concepts") or "").split(",") if c.strip()]
    themes = [t.strip() for t in (_prompt_field(prompt, "Themes") or "").split(",") if t.strip()]
    genre = (_prompt_field(prompt, "Genre") or "educational").lower()
    audience = (_prompt_field(prompt, "Target audience") or "teens").lower()
    length = (_prompt_field(prompt, "Length") or "medium").split()[0].lower()
    paragraphs_wanted = MOCK_PARAGRAPHS.get(length, MOCK_PARAGRAPHS["medium"])

    first_concept = concepts[0] if concepts else "knowledge"
    first_theme = themes[0] if themes else "learning"
    hero = "child" if audience == "children" else "person"

    paragraphs = []
    for i in range(paragraphs_wanted):
        if i == 0:
            paragraphs.append(
                f"Once upon a time, in a world where {first_concept} was the greatest treasure, "
                f"there lived a curious {hero} who loved {first_theme.lower()} above everything else. "
                f"Every morning they climbed the hill above the village to watch the sky and wonder. "
                f"The {genre} adventure was about to begin, and nobody in the village suspected how far it would go."
            )
        elif i == paragraphs_wanted - 1:
            joined = " and ".join(t.lower() for t in themes) or "patience"
            paragraphs.append(
                f"And so, through {joined}, our hero discovered that {first_concept} was not just a "
                f"collection of facts but a way of seeing the world. They returned home with new questions, "
                f"which is exactly how every good journey of discovery should end. The end."
            )
        else:
            concept = concepts[i % len(concepts)] if concepts else "the unknown"
            theme = themes[i % len(themes)].lower() if themes else "courage"
            paragraphs.append(
                f"As the story unfolded, they encountered challenges related to {concept}. "
                f"With determination and {theme}, they pressed forward, asking questions, testing ideas "
                f"and learning valuable lessons along the way. Each answer opened a door to the next puzzle."
            )

    return {
        "title": f"The {genre.title()} of {first_concept}",
        "story": "\n\n".join(paragraphs),
        "characters": [
            {"name": "Alex", "role": "Protagonist",
             "description": f"A curious {hero} eager to learn about {first_concept}"},
            {"name": "The Guide", "role": "Mentor",
             "description": f"A wise figure who helps Alex understand {concepts[1] if len(concepts) > 1 else 'important concepts'}"},
        ],
        "themes": themes[:3] or ["Adventure", "Learning"],
        "summary": f"A {genre} story about {first_concept} and {first_theme.lower()}, written for {audience}.",
        "moral": f"Curiosity about {first_concept} turns every challenge into a lesson.",
    }


QUESTION_KIND_RE = re.compile(
    r"^create an? \w+ difficulty (multiple choice|true/false|short answer) question", re.MULTILINE,
)
MOCK_QUESTIONS = {
    "multiple choice": MOCK_MULTIPLE_CHOICE,
    "true/false": MOCK_TRUE_FALSE,
    "short answer": MOCK_SHORT_ANSWER,
}


def mock_completion(prompt: str) -> str:
    """Deterministic stand-in for a real completion, chosen by prompt kind.

    Only the template's own lines decide the kind, so quoted source text that
    mentions another kind does not change the payload.
    """
    lower = prompt.lower()
    if lower.startswith("you are a creative storyteller"):
        return json.dumps(_mock_story(prompt))
    match = QUESTION_KIND_RE.search(lower)
    if match:
        return json.dumps(MOCK_QUESTIONS[match.group(1)])
    return json.dumps({"text": "Mock response"})


class MockProvider:
    name = MOCK
    model = "mock-1"

    def complete(self, prompt: str, *, system: Optional[str] = None, model: Optional[str] = None,
                 temperature: float = 0.7, max_tokens: int = 2000) -> LLMResponse:
        text = mock_completion(prompt)
        tokens = (len(prompt) + len(text)) // 4
        return LLMResponse(text=text, provider=self.name, model=self.model,
                           usage={"prompt_tokens": len(prompt) // 4,
                                  "completion_tokens": len(text) // 4,
                                  "total_tokens": tokens})


# -------------------- ROUTER --------------------

class LLMRouter:
    """Route a prompt to the first provider that answers."""

    def __init__(self, providers: Optional[Iterable] = None, *, default_provider: str = AUTO,
                 allow_mock: bool = True, cache: Optional[CacheService] = None,
                 cache_ttl: int = config.LLM_CACHE_TTL) -> None:
        self.providers = {p.name: p for p in (providers or [])}
        self.default_provider = default_provider
        self.allow_mock = allow_mock
        self.cache = cache
        self.cache_ttl = cache_ttl
        self._mock = MockProvider()

    @classmethod
    def from_config(cls) -> "LLMRouter":
        providers = []
        if config.GROQ_API_KEY:
            providers.append(OpenAICompatibleProvider(
                "groq", config.GROQ_API_KEY, config.GROQ_MODEL, base_url=config.GROQ_BASE_URL))
        if config.OPENAI_API_KEY:
            providers.append(OpenAICompatibleProvider(
                "openai", config.OPENAI_API_KEY, config.OPENAI_MODEL))
        return cls(providers, default_provider=config.LLM_PROVIDER,
                   allow_mock=config.LLM_ALLOW_MOCK, cache=default_cache)

    def available_providers(self) -> List[str]:
        names = [name for name in PROVIDER_ORDER if name in self.providers]
        if self.allow_mock or self.default_provider == MOCK:
            names.append(MOCK)
        return names

    def is_available(self) -> bool:
        return bool(self.available_providers())

    def _candidates(self, requested: str) -> List:
        requested = requested or AUTO
        if requested == AUTO:
            requested = self.default_provider
        if requested == MOCK:
            return [self._mock]
        order = [n for n in PROVIDER_ORDER if n in self.providers]
        if requested in order:
            order.remove(requested)
            order.insert(0, requested)
        candidates = [self.providers[n] for n in order]
        if self.allow_mock:
            candidates.append(self._mock)
        return candidates

    def _cache_key(self, provider, model: str, system: Optional[str], prompt: str, temperature: float) -> str:
        digest = hashlib.sha256(f"{system or ''}\x00{prompt}".encode("utf-8")).hexdigest()
        return f"llm:{provider.name}:{model}:{digest}:{temperature}"

    def generate(self, prompt: str, *, system: Optional[str] = None, provider: str = AUTO,
                 model: Optional[str] = None, temperature: float = 0.7,
                 max_tokens: int = 2000) -> LLMResponse:
        candidates = self._candidates(provider)
        if not candidates:
            raise LLMUnavailableError(
                "No AI provider available. Configure GROQ_API_KEY or OPENAI_API_KEY."
            )

        errors = []
        for index, candidate in enumerate(candidates):
            # an explicit model only applies to the first choice
            use_model = model if model and index == 0 else candidate.model
            key = self._cache_key(candidate, use_model, system, prompt, temperature)
            if self.cache is not None:
                hit = self.cache.get(key)
                if hit:
                    logger.info("llm_cache_hit", provider=candidate.name, model=use_model)
                    return LLMResponse(text=hit["text"], provider=candidate.name, model=use_model,
                                       usage=hit.get("usage", {}), cached=True)
            try:
                response = candidate.complete(prompt, system=system, model=use_model,
                                              temperature=temperature, max_tokens=max_tokens)
            except LLMError as e:
                logger.warning("llm_provider_failed", provider=candidate.name, error=str(e))
                errors.append(f"{candidate.name}: {e}")
                continue
            logger.info("llm_completion", provider=response.provider, model=response.model,
                        total_tokens=response.usage.get("total_tokens", 0))
            if self.cache is not None:
                self.cache.set(key, {"text": response.text, "usage": response.usage}, expire=self.cache_ttl)
            return response

        raise LLMUnavailableError("All AI providers failed: " + "; ".join(errors))


# -------------------- RESPONSE PARSING --------------------

def clean_json_like(content: str) -> str:
    """Strip code fences and isolate the outermost JSON object or array."""
    text = (content or "").strip()
    if text.startswith("```"):
        first_nl = text.find("\n")
        if first_nl != -1:
            text = text[first_nl + 1:]
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
        text = text.strip()
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return text
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end > start:
        return text[start:end + 1]
    return text


def _is_missing(value) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict)) and not value:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def parse_json_object(content: str, required: Iterable[str] = ()) -> Optional[dict]:
    """Parse a completion into a dict; None when it is not usable."""
    try:
        data = json.loads(clean_json_like(content))
    except (TypeError, ValueError) as e:
        logger.warning("llm_response_unparseable", error=str(e))
        return None
    if not isinstance(data, dict):
        logger.warning("llm_response_not_object", kind=type(data).__name__)
        return None
    missing = [name for name in required if _is_missing(data.get(name))]
    if missing:
        logger.warning("llm_response_missing_fields", missing=missing)
        return None
    return data


_router: Optional[LLMRouter] = None


def get_router() -> LLMRouter:
    global _router
    if _router is None:
        _router = LLMRouter.from_config()
    return _router
