"""Exceptions raised while building, requesting and decoding a quiz."""


class QuizError(Exception):
    """Base exception for quiz engine errors."""
    pass


class ValidationError(QuizError):
    """User input rejected before any work is done (empty topic, no quiz)."""
    pass


class ConfigurationError(QuizError):
    """Required configuration (the API key) is missing."""
    pass


class ApiError(QuizError):
    """Generation API answered with a non-2xx status."""

    def __init__(self, status: int, message: str):
        super().__init__(f"API error: {status} - {message}")
        self.status = status
        self.message = message


class NetworkError(QuizError):
    """Network connectivity issues or transport timeout."""
    pass


class EmptyResponse(QuizError):
    """API returned success without the expected candidate text."""
    pass


class MalformedContent(QuizError):
    """Candidate text is not valid JSON or violates the question schema."""
    pass
