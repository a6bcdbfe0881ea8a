from __future__ import annotations

from typing import List

import pytest
from flask import Flask
from flask.testing import FlaskClient

from opessocius.app import create_app
from opessocius.config import TestingConfig
from opessocius.core.mailer import MailerError, SendResult
from opessocius.store import DocumentStore


class RecordingMailer:
    """Stands in for the SMTP relay; keeps every send() call."""

    def __init__(self) -> None:
        self.sent: List[dict] = []
        self.fail_with: str | None = None

    def send(self, to, subject, text=None, html=None, attachments=(), from_email=None, from_name=None):
        if self.fail_with is not None:
            raise MailerError(self.fail_with)
        self.sent.append(
            {
                "to": list(to),
                "subject": subject,
                "text": text,
                "html": html,
                "attachments": list(attachments),
                "from_email": from_email,
                "from_name": from_name,
            }
        )
        return SendResult(message_id=f"<test-{len(self.sent)}@opessocius.support>", accepted=list(to))

    def verify(self) -> bool:
        return True


@pytest.fixture()
def app() -> Flask:
    return create_app(TestingConfig)


@pytest.fixture()
def mailer(app: Flask) -> RecordingMailer:
    fake = RecordingMailer()
    app.extensions["opessocius.mailer"] = fake
    return fake


@pytest.fixture()
def store(app: Flask) -> DocumentStore:
    return app.extensions["opessocius.store"]


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    with app.test_client() as test_client:
        yield test_client
