"""
Prompt templates for the generation modules
"""
from typing import List, Optional

MULTIPLE_CHOICE = "multiple-choice"
TRUE_FALSE = "true-false"
SHORT_ANSWER = "short-answer"

QUIZ_SYSTEM = (
    "You are an expert quiz generator. Create educational quiz questions from provided "
    "content. Always respond with valid JSON."
)
STORY_SYSTEM = (
    "You are a creative storyteller. Transform educational content into engaging stories. "
    "Always respond with valid JSON."
)

_MULTIPLE_CHOICE_TEMPLATE = """Based on this information: "{statement}"

Create a {difficulty} difficulty multiple choice question with 4 options (A, B, C, D).

Format your response as JSON:
{{
  "question": "Your question here",
  "options": ["Option A", "Option B", "Option C", "Option D"],
  "correctAnswer": "Option A",
  "explanation": "Why this answer is correct"
}}

Make sure the question tests understanding, not just memorization."""

_TRUE_FALSE_TEMPLATE = """Based on this information: "{statement}"

Create a {difficulty} difficulty true/false question.

Format your response as JSON:
{{
  "question": "Your true/false statement here",
  "correctAnswer": "True" or "False",
  "explanation": "Why this answer is correct"
}}

Make the question clear and unambiguous."""

_SHORT_ANSWER_TEMPLATE = """Based on this information: "{statement}"

Create a {difficulty} difficulty short answer question that requires explanation or analysis.

Format your response as JSON:
{{
  "question": "Your open-ended question here",
  "correctAnswer": "Key points that should be included in the answer",
  "explanation": "What makes a good answer to this question"
}}

Make the question thought-provoking and require understanding."""

QUESTION_TEMPLATES = {
    MULTIPLE_CHOICE: _MULTIPLE_CHOICE_TEMPLATE,
    TRUE_FALSE: _TRUE_FALSE_TEMPLATE,
    SHORT_ANSWER: _SHORT_ANSWER_TEMPLATE,
}


def build_question_prompt(question_type: str, statement: str, difficulty: str) -> str:
    template = QUESTION_TEMPLATES[question_type]
    return template.format(statement=statement.replace('"', "'"), difficulty=difficulty)


LENGTH_GUIDANCE = {
    "short": "500-700 words",
    "medium": "1000-1500 words",
    "long": "2000-3000 words",
}

AUDIENCE_GUIDANCE = {
    "children": "Use simple language, short sentences, and engaging descriptions suitable for ages 8-12.",
    "teens": "Use engaging language with moderate complexity suitable for ages 13-17.",
    "adults": "Use sophisticated language and complex narratives suitable for adult readers.",
    "academic": "Use formal academic language with proper terminology and scholarly tone.",
}

STORY_SOURCE_CHARS = 3000


def build_story_prompt(
    content: str,
    genre: str,
    audience: str,
    length: str,
    tone: str,
    concepts: List[str],
    themes: List[str],
    setting: Optional[str] = None,
    characters: Optional[List[str]] = None,
    custom_prompt: Optional[str] = None,
) -> str:
    lines = [
        f"You are a creative storyteller. Generate an engaging {genre} story based on the following content.",
        "",
        "Story Requirements:",
        f"- Genre: {genre}",
        f"- Target audience: {audience}",
        f"- Length: {length} ({LENGTH_GUIDANCE[length]})",
        f"- Tone: {tone}",
        f"- Writing style: {AUDIENCE_GUIDANCE[audience]}",
        "",
        f"Key concepts: {', '.join(concepts)}",
        f"Themes: {', '.join(themes)}",
        "",
        "Source content:",
        content[:STORY_SOURCE_CHARS],
        "",
        "Instructions:",
        f"1. Create an original {genre} story that incorporates the key concepts",
        f"2. Make the story engaging and appropriate for {audience}",
        "3. Weave the educational elements naturally into the narrative",
        "4. Give the story a clear beginning, middle and end, with paragraphs separated by blank lines",
    ]
    step = 5
    if setting:
        lines.append(f"{step}. Set the story in: {setting}")
        step += 1
    if characters:
        lines.append(f"{step}. Include these characters: {', '.join(characters)}")
        step += 1
    if custom_prompt:
        lines.append(f"{step}. Additional requirements: {custom_prompt}")

    lines += [
        "",
        "Return a JSON object with this structure:",
        "{",
        '  "title": "Story title",',
        '  "story": "Full story text",',
        '  "characters": [{"name": "Name", "role": "protagonist", "description": "Who they are"}],',
        '  "themes": ["theme1", "theme2"],',
        '  "summary": "Two or three sentence summary",',
        '  "moral": "The lesson of the story"',
        "}",
    ]
    return "\n".join(lines)
