from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError as SchemaValidationError


class ApiError(Exception):
    """
    Base for every business error surfaced to the caller.
    """
    def __init__(self, message, status_code=400, errors=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or {}
        self.payload = payload or {}


class ValidationError(ApiError):
    """Missing or malformed submission fields. `errors` maps field -> message."""

    code = "VALIDATION_ERROR"

    def __init__(self, message, errors=None, payload=None):
        payload = dict(payload or {})
        payload.setdefault("code", self.code)
        super().__init__(message, 400, errors=errors, payload=payload)


class InconsistentReferenceError(ValidationError):
    """A subcategory (or report type) that does not belong to the given category."""

    code = "INCONSISTENT_REFERENCE"


class NotFoundError(ApiError):
    def __init__(self, entity: str, entity_id=None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(
            message,
            404,
            payload={"code": "NOT_FOUND", "entity": entity, "id": entity_id},
        )
        self.entity = entity
        self.entity_id = entity_id


class IllegalTransitionError(ApiError):
    def __init__(self, from_status, to_status, allowed=None):
        allowed = list(allowed or [])
        super().__init__(
            f"Illegal status transition: {from_status} -> {to_status}",
            409,
            payload={
                "code": "ILLEGAL_TRANSITION",
                "from": from_status,
                "to": to_status,
                "allowed": allowed,
            },
        )
        self.from_status = from_status
        self.to_status = to_status
        self.allowed = allowed


class ChannelDisconnectedError(ApiError):
    """The change feed was lost. Recover by resubscribing and re-querying."""

    def __init__(self, message="Change feed disconnected", reason=None):
        super().__init__(
            message,
            503,
            payload={"code": "CHANNEL_DISCONNECTED", "reason": reason},
        )
        self.reason = reason


def register_error_handlers(app):

    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        response = {
            "success": False,
            "message": err.message,
        }
        if err.errors:
            response["errors"] = err.errors
        if getattr(err, "payload", None):
            response["payload"] = err.payload

        return jsonify(response), err.status_code

    @app.errorhandler(SchemaValidationError)
    def handle_marshmallow_validation(err: SchemaValidationError):
        response = {
            "success": False,
            "message": "Invalid data",
            "errors": err.messages if hasattr(err, "messages") else str(err),
            "payload": {"code": ValidationError.code},
        }
        return jsonify(response), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        response = {
            "success": False,
            "message": err.description or "HTTP error",
        }
        return jsonify(response), err.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        app.logger.exception(err)

        response = {
            "success": False,
            "message": "Internal server error",
        }
        return jsonify(response), 500
