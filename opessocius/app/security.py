"""Transport and response-header hardening for every request."""

import logging

from flask import Flask, current_app, redirect, request

logger = logging.getLogger(__name__)

HTML_NO_STORE = "no-store, no-cache, must-revalidate, private"


def build_csp(policy):
    """Render a {directive: [sources]} mapping as a CSP header value."""
    parts = []
    for directive, sources in policy.items():
        parts.append(f"{directive} {' '.join(sources)}".strip())
    if current_app.config.get("FORCE_HTTPS"):
        parts.append("upgrade-insecure-requests")
        parts.append("block-all-mixed-content")
    return "; ".join(parts)


def build_permissions_policy(policy):
    return ", ".join(f"{feature}={allow}" for feature, allow in policy.items())


def is_secure_request():
    return (
        request.is_secure
        or request.headers.get("X-Forwarded-Proto", "") == "https"
        or request.headers.get("X-Forwarded-Ssl", "") == "on"
    )


def https_redirect():
    """Send plain-HTTP requests to the HTTPS origin (production only)."""
    if not current_app.config.get("FORCE_HTTPS") or is_secure_request():
        return None
    target = f"https://{request.host}{request.full_path.rstrip('?')}"
    logger.info("Redirecting insecure request to %s", target)
    return redirect(target, code=301)


def security_headers(response):
    """Add security headers to all responses"""
    config = current_app.config
    response.headers["Content-Security-Policy"] = build_csp(config["CSP_POLICY"])
    response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains; preload"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = build_permissions_policy(config["PERMISSIONS_POLICY"])
    response.headers["X-DNS-Prefetch-Control"] = "off"
    response.headers["X-Download-Options"] = "noopen"
    response.headers["X-Permitted-Cross-Domain-Policies"] = "none"
    response.headers["X-XSS-Protection"] = "1; mode=block"

    if response.mimetype == "text/html":
        response.headers["Cache-Control"] = HTML_NO_STORE
    return response


def init_security(app: Flask) -> None:
    app.before_request(https_redirect)
    app.after_request(security_headers)
