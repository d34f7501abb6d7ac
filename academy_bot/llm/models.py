"""Data models for quiz generation requests and responses."""
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

OPTION_KEYS = ("A", "B", "C", "D")


class QuestionRecord(BaseModel):
    """One multiple-choice question as returned by the model.

    Options must be exactly A-D with non-empty text, and the correct answer
    must name one of them. ``correctAnswer`` is the wire name.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question: str = Field(min_length=1)
    options: dict[str, str]
    correct_answer: str = Field(alias="correctAnswer")

    @field_validator("question")
    @classmethod
    def _question_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("question text is empty")
        return value

    @field_validator("options")
    @classmethod
    def _options_are_a_to_d(cls, value: dict[str, str]) -> dict[str, str]:
        keys = set(value)
        if keys != set(OPTION_KEYS):
            missing = sorted(set(OPTION_KEYS) - keys)
            extra = sorted(keys - set(OPTION_KEYS))
            raise ValueError(f"options must have keys A-D (missing={missing}, extra={extra})")
        cleaned = {}
        for key in OPTION_KEYS:
            text = value[key].strip()
            if not text:
                raise ValueError(f"option {key} is empty")
            cleaned[key] = text
        return cleaned

    @model_validator(mode="after")
    def _correct_answer_is_option(self) -> "QuestionRecord":
        if self.correct_answer not in OPTION_KEYS:
            raise ValueError(f"correctAnswer {self.correct_answer!r} is not one of A-D")
        return self


@dataclass(frozen=True)
class GenerationRequest:
    """Prompt plus response schema sent to the generation API."""
    topic: str
    prompt: str
    schema: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Build the generateContent JSON body."""
        return {
            "contents": [
                {"role": "user", "parts": [{"text": self.prompt}]},
            ],
            "generationConfig": {
                "responseMimeType": "application/json",
                "responseSchema": self.schema,
            },
        }
