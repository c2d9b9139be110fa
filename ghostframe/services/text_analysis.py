"""
Heuristic text analysis: sentence splitting, statement scoring, topic and
theme extraction, readability.

Everything here is plain string work; nothing calls out to an LLM.
"""
import math
import random
import re
from collections import Counter
from typing import Dict, List, Optional

SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
NON_WORD_RE = re.compile(r"[^\w]")
WORD_SPLIT_RE = re.compile(r"\W+")
DIGIT_RE = re.compile(r"\d+")
CLEAN_CHARS_RE = re.compile(r"[^\w\s.,!?;:()\-\"']")
WHITESPACE_RE = re.compile(r"\s+")

STOPWORDS = set("""
the a an and or but in on at to for of with by is are was were be been being
have has had do does did will would could should may might must can this that these those
from up out down off over under again further then once here there when where why how all
any both each few more most other some such no nor not only own same so than too very
""".split())

NOISE_PHRASES = ("click here", "subscribe", "advertisement")

DEFAULT_KEY_TOPICS = ["General Knowledge", "Learning Material", "Educational Content"]

THEME_KEYWORDS = [
    ("Learning", ("learn", "education")),
    ("Discovery", ("discover", "explore")),
    ("Problem-solving", ("challenge", "problem")),
    ("Friendship", ("friend", "team")),
    ("Courage", ("courage", "brave")),
    ("Science", ("science", "experiment")),
    ("History", ("history", "past")),
    ("Nature", ("nature", "environment")),
]
DEFAULT_THEMES = ["Adventure", "Learning"]

SUBJECT_PATTERNS: Dict[str, List[str]] = {
    "Mathematics": ["math", "equation", "formula", "calculate", "algebra", "geometry", "calculus",
                    "statistics", "probability", "theorem", "proof", "number", "function"],
    "Science": ["experiment", "hypothesis", "theory", "research", "analysis", "data", "observation",
                "method", "result", "conclusion", "biology", "chemistry", "physics"],
    "History": ["century", "war", "empire", "civilization", "ancient", "medieval", "revolution",
                "historical", "timeline", "era", "dynasty", "culture"],
    "Literature": ["author", "novel", "poem", "character", "plot", "theme", "narrative", "literary",
                   "writing", "story", "book", "text"],
    "Computer Science": ["algorithm", "programming", "software", "computer", "code", "data structure",
                         "database", "network", "system", "technology", "digital"],
    "Business": ["market", "company", "management", "strategy", "finance", "economics", "business",
                 "organization", "leadership", "profit", "customer"],
    "Psychology": ["behavior", "mind", "cognitive", "psychology", "mental", "emotion", "personality",
                   "development", "learning", "memory", "brain"],
    "Medicine": ["medical", "health", "disease", "treatment", "patient", "diagnosis", "therapy",
                 "clinical", "medicine", "healthcare", "symptom"],
    "Language": ["language", "grammar", "vocabulary", "pronunciation", "communication", "linguistic",
                 "word", "sentence", "meaning", "translation"],
    "Art": ["art", "painting", "sculpture", "design", "creative", "visual", "aesthetic", "artist",
            "gallery", "museum", "style", "technique"],
}

OBJECTIVE_VERBS = ("understand", "learn", "explain", "describe", "analyze", "identify",
                   "demonstrate", "apply", "evaluate", "compare")
OBJECTIVE_RE = re.compile(r"\b(?:%s)\s+(.{10,60})" % "|".join(OBJECTIVE_VERBS), re.IGNORECASE)

CONCEPT_RE = re.compile(r"\b(is|means|refers to|defined as|known as)\b", re.IGNORECASE)

WORDS_PER_MINUTE = 200


def clean_text(raw_text: str) -> str:
    text = WHITESPACE_RE.sub(" ", raw_text or "")
    text = CLEAN_CHARS_RE.sub("", text)
    return text.strip()


def split_sentences(text: str) -> List[str]:
    return [s.strip() for s in SENTENCE_SPLIT_RE.split(text or "") if s.strip()]


def count_words(text: str) -> int:
    return len((text or "").split())


def estimate_reading_time(word_count: int) -> int:
    """Minutes at 200 words per minute, rounded up."""
    return math.ceil(word_count / WORDS_PER_MINUTE)


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text or "") / 4)


def capitalize(word: str) -> str:
    return word[:1].upper() + word[1:]


# -------------------- STATEMENTS --------------------

def is_educationally_valuable(sentence: str) -> bool:
    lower = sentence.lower()
    if any(phrase in lower for phrase in NOISE_PHRASES):
        return False
    return (
        "is" in lower
        or "are" in lower
        or "because" in lower
        or "result" in lower
        or "important" in lower
        or bool(DIGIT_RE.search(sentence))
    )


def score_statement(sentence: str) -> int:
    lower = sentence.lower()
    score = 0
    if "is" in lower or "are" in lower:
        score += 2
    if "because" in lower or "due to" in lower:
        score += 3
    if "result" in lower or "effect" in lower:
        score += 3
    if "important" in lower or "significant" in lower:
        score += 2
    if DIGIT_RE.search(sentence):
        score += 2
    if "define" in lower or "means" in lower:
        score += 4
    # vague language
    if "might" in lower or "could" in lower:
        score -= 1
    return score


def extract_key_statements(text: str, limit: int = 30) -> List[str]:
    """Return candidate sentences ranked by educational value, best first."""
    candidates = [
        s for s in split_sentences(text)
        if 20 < len(s) < 200 and is_educationally_valuable(s)
    ]
    # sorted() is stable, so ties keep document order
    ranked = sorted(candidates, key=score_statement, reverse=True)
    return ranked[:limit]


# -------------------- TOPICS --------------------

def extract_topics(text: str, focus_areas: Optional[List[str]] = None, limit: int = 5) -> List[str]:
    if focus_areas:
        return [f for f in focus_areas if f and f.strip()]
    words = [
        w for w in WORD_SPLIT_RE.split((text or "").lower())
        if len(w) > 4 and w not in STOPWORDS
    ]
    return [capitalize(w) for w, _ in Counter(words).most_common(limit)]


def extract_key_topics(text: str, limit: int = 10) -> List[str]:
    """Phrase-aware topic extraction used when content is uploaded."""
    phrases: Counter = Counter()
    for sentence in (s for s in split_sentences(text) if len(s) > 10):
        words = [NON_WORD_RE.sub("", w) for w in sentence.lower().split()]
        for size in (2, 3):
            for i in range(len(words) - size + 1):
                window = words[i:i + size]
                if all(len(w) > 2 and w not in STOPWORDS for w in window):
                    phrases[" ".join(capitalize(w) for w in window)] += 1

    word_scores: Counter = Counter()
    for raw in (text or "").split():
        cleaned = NON_WORD_RE.sub("", raw).lower()
        if len(cleaned) > 4 and cleaned not in STOPWORDS:
            # capitalised words are likely proper nouns or terms
            word_scores[cleaned] += 2 if raw[:1].isupper() else 1

    scored: Dict[str, int] = {}
    for phrase, count in phrases.items():
        if count >= 2:
            scored[phrase] = count * 3
    for word, count in word_scores.items():
        name = capitalize(word)
        if not any(name in topic for topic in scored):
            scored[name] = count

    ranked = sorted(scored.items(), key=lambda item: item[1], reverse=True)[:limit]
    return [topic for topic, _ in ranked] or list(DEFAULT_KEY_TOPICS)


def select_relevant_topic(statement: str, topics: List[str], rng: random.Random) -> str:
    lower = statement.lower()
    for topic in topics:
        if topic.lower() in lower:
            return topic
    if topics:
        return rng.choice(topics)
    return "General Knowledge"


# -------------------- CONCEPTS / THEMES --------------------

def extract_concepts(text: str, limit: int = 10) -> List[str]:
    """Sentences that read like definitions."""
    return [s for s in split_sentences(text) if CONCEPT_RE.search(s)][:limit]


def extract_story_concepts(text: str, limit: int = 5) -> List[str]:
    words = [
        w for w in WORD_SPLIT_RE.split((text or "").lower())
        if len(w) > 5 and w not in STOPWORDS
    ]
    return [capitalize(w) for w, _ in Counter(words).most_common(limit)]


def extract_themes(text: str) -> List[str]:
    lower = (text or "").lower()
    themes = [theme for theme, keywords in THEME_KEYWORDS if any(k in lower for k in keywords)]
    return themes or list(DEFAULT_THEMES)


# -------------------- READABILITY --------------------

def analyze_difficulty(text: str) -> str:
    """Classify as beginner, intermediate or advanced."""
    word_count = count_words(text)
    sentence_count = len(split_sentences(text))
    if word_count == 0 or sentence_count == 0:
        return "beginner"

    avg_word_length = len(WHITESPACE_RE.sub("", text)) / word_count
    avg_sentence_length = word_count / sentence_count

    # syllables approximated by vowel groups
    letters_only = re.sub(r"[^a-z]", "", text.lower())
    syllables = len(re.sub(r"[aeiou]+", "a", letters_only))
    avg_syllables = syllables / word_count

    complex_words = sum(
        1 for w in text.lower().split()
        if len(re.sub(r"[^aeiou]", "", w)) >= 3 and len(w) > 6
    )
    complex_ratio = complex_words / word_count

    flesch = 206.835 - (1.015 * avg_sentence_length) - (84.6 * avg_syllables)

    score = 0
    if avg_word_length > 6:
        score += 2
    elif avg_word_length > 5:
        score += 1
    if avg_sentence_length > 25:
        score += 2
    elif avg_sentence_length > 18:
        score += 1
    if complex_ratio > 0.15:
        score += 2
    elif complex_ratio > 0.08:
        score += 1
    if flesch < 30:
        score += 2
    elif flesch < 60:
        score += 1

    if score >= 5:
        return "advanced"
    if score >= 3:
        return "intermediate"
    return "beginner"


def readability(text: str) -> dict:
    word_count = count_words(text)
    sentences = len(SENTENCE_SPLIT_RE.split(text or "")) or 1
    return {
        "difficulty": analyze_difficulty(text),
        "avg_word_length": round(len(WHITESPACE_RE.sub("", text)) / word_count, 2) if word_count else 0.0,
        "avg_sentence_length": round(word_count / sentences, 2),
        "estimated_reading_time": estimate_reading_time(word_count),
        "estimated_tokens": estimate_tokens(text),
    }


def detect_subject(text: str, topics: List[str]) -> str:
    lower = (text or "").lower()
    lower_topics = [t.lower() for t in topics]
    best, best_score = "General", 0
    for subject, keywords in SUBJECT_PATTERNS.items():
        score = 0
        for keyword in keywords:
            score += len(re.findall(r"\b%s\b" % re.escape(keyword), lower))
            score += 3 * sum(1 for t in lower_topics if keyword in t)
        if score > best_score:
            best, best_score = subject, score
    return best


def generate_summary(text: str, max_length: int = 200) -> str:
    if len(text) <= max_length:
        return text
    truncated = text[:max_length]
    last_end = max(truncated.rfind("."), truncated.rfind("!"), truncated.rfind("?"))
    if last_end > max_length * 0.7:
        return truncated[:last_end + 1]
    last_space = truncated.rfind(" ")
    return truncated[:last_space if last_space > 0 else max_length] + "..."


def extract_learning_objectives(text: str, limit: int = 5) -> List[str]:
    objectives: List[str] = []
    for sentence in (s for s in split_sentences(text) if len(s) > 20):
        for match in OBJECTIVE_RE.finditer(sentence):
            objective = match.group(1).strip()
            if 10 < len(objective) < 100:
                objectives.append(capitalize(objective))
    return objectives[:limit]
