from academy_bot.llm.models import GenerationRequest

QUESTION_COUNT = 5

QUIZ_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "question": {"type": "STRING"},
            "options": {
                "type": "OBJECT",
                "properties": {
                    "A": {"type": "STRING"},
                    "B": {"type": "STRING"},
                    "C": {"type": "STRING"},
                    "D": {"type": "STRING"},
                },
                "required": ["A", "B", "C", "D"],
            },
            "correctAnswer": {"type": "STRING"},
        },
        "required": ["question", "options", "correctAnswer"],
    },
}

EXAMPLE = (
    '[{"question": "What is X?", '
    '"options": {"A": "Opt1", "B": "Opt2", "C": "Opt3", "D": "Opt4"}, '
    '"correctAnswer": "B"}]'
)


def build_test_prompt(topic: str, count: int = QUESTION_COUNT) -> str:
    return (
        f'Generate a multiple-choice test with {count} questions about "{topic}". '
        f"Each question should have 4 options (A, B, C, D) and indicate the correct answer. "
        f"Provide the output in a JSON array format. Example: {EXAMPLE}"
    )


def build_request(topic: str, count: int = QUESTION_COUNT) -> GenerationRequest:
    """Build the structured generation request for a validated topic."""
    return GenerationRequest(
        topic=topic,
        prompt=build_test_prompt(topic, count),
        schema=QUIZ_SCHEMA,
    )
