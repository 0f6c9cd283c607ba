"""Error taxonomy for the claim-verification core.

Services raise these; the Flask error handler turns them into JSON responses.
Every class carries the HTTP status it maps to and a stable machine code.
"""
import logging
from flask import jsonify

logger = logging.getLogger(__name__)


class FactDeskError(Exception):
    status_code = 500
    code = 'SERVER_ERROR'

    def __init__(self, message=None, **details):
        self.message = message or self.__class__.__name__
        self.details = details
        super().__init__(self.message)

    def to_dict(self):
        payload = {'error': self.message, 'code': self.code}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(FactDeskError):
    status_code = 400
    code = 'VALIDATION_ERROR'


class NotFound(FactDeskError):
    status_code = 404
    code = 'NOT_FOUND'


class Forbidden(FactDeskError):
    status_code = 403
    code = 'FORBIDDEN'


class Conflict(FactDeskError):
    status_code = 409
    code = 'CONFLICT'


class AlreadyFinalized(Conflict):
    code = 'ALREADY_FINALIZED'

    def __init__(self, claim_id, message=None):
        self.claim_id = claim_id
        super().__init__(message or f"Claim {claim_id} already has a final verdict", claim_id=claim_id)


class DuplicateSuggestion(Conflict):
    code = 'DUPLICATE_SUGGESTION'

    def __init__(self, claim_id):
        self.claim_id = claim_id
        super().__init__(f"Claim {claim_id} already has an AI suggestion", claim_id=claim_id)


class DependencyUnavailable(FactDeskError):
    """The data store could not be reached. Safe for the caller to retry."""
    status_code = 503
    code = 'DEPENDENCY_UNAVAILABLE'


class Unrecoverable(FactDeskError):
    """An invariant was found broken. Always a bug."""
    status_code = 500
    code = 'UNRECOVERABLE'


def register_error_handlers(app):
    @app.errorhandler(FactDeskError)
    def handle_factdesk_error(error):
        if isinstance(error, Unrecoverable):
            logger.error(f"Invariant breach: {error.message}", exc_info=error)
        elif isinstance(error, DependencyUnavailable):
            logger.warning(f"Store unavailable: {error.message}")
        return jsonify(error.to_dict()), error.status_code
