"""Error taxonomy shared by the matching core and the HTTP layer.

Primary operations let these propagate to the caller; best-effort side
effects catch them, log, and carry on.
"""
from __future__ import annotations

from flask import Flask, jsonify
from marshmallow import ValidationError as SchemaValidationError


class LostLinkError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(LostLinkError):
    status_code = 400
    message = "Invalid request"


class QueryTooVague(ValidationError):
    message = "Please add more detail to your description"


class DimensionMismatch(ValidationError):
    # Two vectors from different embedding model versions; never coerced.
    status_code = 500
    message = "Embedding dimensions do not match"

    def __init__(self, left: int, right: int):
        super().__init__(f"Embedding dimensions do not match ({left} != {right})")
        self.left = left
        self.right = right


class NotFoundOrAlreadyClaimed(LostLinkError):
    status_code = 404
    message = "Item not found or already claimed"


class UpstreamServiceError(LostLinkError):
    """Embedding, vision, vector-store or object-store failure. Retryable by the caller."""

    status_code = 502
    message = "An upstream service is unavailable, please try again"

    def __init__(self, message: str | None = None, *, service: str | None = None):
        super().__init__(message)
        self.service = service


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(LostLinkError)
    def _lostlink_error(err: LostLinkError):
        if err.status_code >= 500:
            app.logger.error("request failed: %s", err.message)
        return jsonify({"error": err.message}), err.status_code

    @app.errorhandler(SchemaValidationError)
    def _schema_error(err: SchemaValidationError):
        return jsonify({"error": "Invalid request", "fields": err.normalized_messages()}), 400
