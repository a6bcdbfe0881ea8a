"""Static replies used by the health-check endpoints."""


def get_ping_message() -> str:
    """Return a static ping message."""
    return "pong"


def get_health() -> dict:
    return {"status": "ok", "message": "Email server is running"}
