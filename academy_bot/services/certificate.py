"""Text rendering of the completion certificate."""
import html

from academy_bot.services.quiz_session import Session, SessionState

DOWNLOAD_ACK = "Certificate download initiated! (In a real app, a file would download)"
NAME_PLACEHOLDER = "Your Name"


def format_certificate(session: Session) -> str:
    """HTML message body for a graded session."""
    name = session.user_name.strip() or NAME_PLACEHOLDER
    return (
        "🏅 <b>Certificate of Achievement</b>\n\n"
        "This certifies that\n"
        f"<b>{html.escape(name)}</b>\n"
        "has successfully completed the test on\n"
        f"<i>\"{html.escape(session.topic.strip())}\"</i>\n"
        f"with a score of <b>{session.score:.2f}%</b>"
    )


def download_certificate(session: Session) -> str:
    """Acknowledge a download request; no file is produced."""
    if session.state is not SessionState.GRADED:
        return "Submit the test first to get a certificate."
    return DOWNLOAD_ACK
