"""Shared fixtures for quiz engine tests."""
import json

import pytest

from academy_bot.llm.models import QuestionRecord


def make_question(question: str = "What is 2 + 2?", correct: str = "B") -> dict:
    return {
        "question": question,
        "options": {"A": "3", "B": "4", "C": "5", "D": "22"},
        "correctAnswer": correct,
    }


def make_response_body(questions) -> dict:
    """generateContent success body wrapping ``questions`` as candidate text."""
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": json.dumps(questions)}]}}
        ]
    }


@pytest.fixture
def sample_questions():
    """Five well-formed question dicts in wire format."""
    return [
        make_question(f"Question {i}?", correct)
        for i, correct in enumerate(["A", "B", "C", "D", "A"], 1)
    ]


@pytest.fixture
def sample_records(sample_questions):
    return [QuestionRecord.model_validate(q) for q in sample_questions]


@pytest.fixture
def two_question_quiz():
    """Q0 correct B, Q1 correct A."""
    return [
        QuestionRecord.model_validate(make_question("First?", "B")),
        QuestionRecord.model_validate(make_question("Second?", "A")),
    ]
