"""HTTP routes for the Flask API."""

import logging
from http import HTTPStatus
from typing import Any, Dict, List

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from opessocius.core.mailer import Attachment, MailerError
from opessocius.core.ping import get_health, get_ping_message
from opessocius.core.projection import ProjectionInput, growth_preview, project_investment
from opessocius.core.report import build_report, report_filename
from opessocius.schemas.email import EmailRequest, EmailResponse
from opessocius.schemas.ping import HealthResponse, PingResponse
from opessocius.store import CommunityMessageRepository, ModuleRepository

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)


def _mailer():
    return current_app.extensions["opessocius.mailer"]


def _store():
    return current_app.extensions["opessocius.store"]


@api_bp.errorhandler(ValidationError)
def _handle_validation_error(exc: ValidationError):
    """Convert Pydantic validation errors into JSON responses."""
    return jsonify({"detail": exc.errors(include_url=False)}), HTTPStatus.BAD_REQUEST


@api_bp.get("/ping")
def ping() -> Any:
    """Health-check endpoint."""
    response = PingResponse(message=get_ping_message())
    return jsonify(response.model_dump())


@api_bp.get("/health")
def health() -> Any:
    return jsonify(HealthResponse(**get_health()).model_dump())


@api_bp.post("/projection")
def projection() -> Any:
    """Run the investment calculator; bad numbers are zeroed, never rejected."""
    raw_payload: Dict[str, Any] = request.get_json(silent=True) or {}
    inputs = ProjectionInput.model_validate(raw_payload)
    result = project_investment(inputs)
    return jsonify(result.model_dump())


@api_bp.get("/projection/preview")
def projection_preview() -> Any:
    """Pure compounding curve behind the landing-page chart."""
    months = request.args.get("months", default=60, type=int)
    points = growth_preview(
        request.args.get("initial", 0),
        request.args.get("growth", 0),
        months=min(max(months, 0), 600),
    )
    return jsonify([point.model_dump() for point in points])


@api_bp.post("/projection/report")
def projection_report() -> Any:
    raw_payload: Dict[str, Any] = request.get_json(silent=True) or {}
    inputs = ProjectionInput.model_validate(raw_payload)
    pdf = build_report(inputs, project_investment(inputs))

    response = current_app.response_class(pdf, mimetype="application/pdf")
    response.headers["Content-Disposition"] = f'attachment; filename="{report_filename()}"'
    return response


def _email_fields() -> Dict[str, Any]:
    if request.is_json:
        return request.get_json(silent=True) or {}
    fields: Dict[str, Any] = request.form.to_dict()
    many = request.form.getlist("recipients")
    if len(many) > 1:
        fields["recipients"] = many
    return fields


def _attachments() -> List[Attachment]:
    limit = current_app.config["MAX_ATTACHMENT_BYTES"]
    files = request.files.getlist("attachments")[: current_app.config["MAX_ATTACHMENTS"]]
    attachments = []
    for upload in files:
        content = upload.read()
        if len(content) > limit:
            raise ValueError(f"Attachment {upload.filename} exceeds {limit // (1024 * 1024)}MB")
        attachments.append(
            Attachment(
                filename=upload.filename or "attachment",
                content=content,
                content_type=upload.mimetype or "application/octet-stream",
            )
        )
    return attachments


def _email_error(message: str, status: HTTPStatus):
    return jsonify(EmailResponse(success=False, error=message).model_dump(exclude_none=True)), status


@api_bp.post("/send-email")
def send_email() -> Any:
    """Relay a form submission through the SMTP server."""
    try:
        payload = EmailRequest.model_validate(_email_fields())
        attachments = _attachments()
    except ValidationError as exc:
        return _email_error(exc.errors()[0]["msg"], HTTPStatus.BAD_REQUEST)
    except ValueError as exc:
        return _email_error(str(exc), HTTPStatus.BAD_REQUEST)

    try:
        result = _mailer().send(
            to=payload.recipients,
            subject=payload.subject,
            text=payload.message,
            html=payload.html,
            attachments=attachments,
            from_email=payload.fromEmail,
            from_name=payload.fromName,
        )
    except MailerError as exc:
        logger.error("Error sending email: %s", exc)
        return _email_error(str(exc) or "Failed to send email", HTTPStatus.INTERNAL_SERVER_ERROR)

    response = EmailResponse(success=True, message="Email sent successfully", messageId=result.message_id)
    return jsonify(response.model_dump(exclude_none=True))


@api_bp.get("/modules")
def modules() -> Any:
    return jsonify(ModuleRepository(_store()).list_modules(published_only=True))


@api_bp.get("/community-messages")
def community_messages() -> Any:
    limit = request.args.get("limit", type=int)
    return jsonify(CommunityMessageRepository(_store()).list_messages(limit=limit))
