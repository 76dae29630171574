"""
Typed survey questions.

Surveys keep their questions in a JSON column as a list of
``{"id", "question", "options"}`` objects. Older records stored that list as a
JSON-encoded string. Everything outside this module works with ``Question``
values; encoding and decoding happen only here.
"""

from dataclasses import dataclass
import json
from typing import Any

from django.core.exceptions import ValidationError


@dataclass(frozen=True)
class Question:
    """A closed-choice question with a fixed, ordered set of options."""

    id: str
    text: str
    options: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Question":
        # "question" is the stored key, "text" is accepted for hand-written seeds
        text = data.get("question", data.get("text", ""))
        return cls(
            id=str(data.get("id", "")),
            text=str(text),
            options=tuple(str(option) for option in data.get("options") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "question": self.text, "options": list(self.options)}

    def accepts(self, answer: str) -> bool:
        return answer in self.options


def decode_questions(raw: Any) -> list[Question]:
    """Decode stored questions (list or JSON string) into ``Question`` values."""
    if raw in (None, ""):
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Questions are not valid JSON: {e}") from e
    if not isinstance(raw, list):
        raise ValidationError("Questions must be a list.")
    questions = []
    for idx, item in enumerate(raw):
        if isinstance(item, Question):
            questions.append(item)
        elif isinstance(item, dict):
            questions.append(Question.from_dict(item))
        else:
            raise ValidationError(f"Question {idx + 1} must be an object.")
    return questions


def encode_questions(questions: list[Question]) -> list[dict[str, Any]]:
    return [question.to_dict() for question in questions]


def validate_questions(questions: list[Question]) -> None:
    """
    Check structural rules for a survey's questions.

    Raises:
        ValidationError: listing every problem found
    """
    errors = []
    seen_ids = set()
    for idx, question in enumerate(questions, start=1):
        if not question.id:
            errors.append(f"Question {idx} has no id.")
        elif question.id in seen_ids:
            errors.append(f"Question id {question.id!r} is used more than once.")
        seen_ids.add(question.id)

        if not question.text.strip():
            errors.append(f"Question {idx} has no text.")
        if not question.options:
            errors.append(f"Question {idx} has no answer options.")
        elif len(set(question.options)) != len(question.options):
            errors.append(f"Question {idx} has duplicate answer options.")
    if errors:
        raise ValidationError(errors)
