"""
Domain errors raised by the store and services.

The FastAPI app maps each of these to a JSON error response
(see ``studydeck.create_app``).
"""


class StudyDeckError(Exception):
    status_code = 500


class ValidationError(StudyDeckError):
    """Payload is well-formed JSON but refers to something invalid."""

    status_code = 400


class NotFoundError(StudyDeckError):
    status_code = 404


class SessionConfigError(StudyDeckError):
    """A quiz session cannot be started with the given card set."""

    status_code = 400


class SessionStateError(StudyDeckError):
    """An action arrived in the wrong presentation state."""

    status_code = 409


class TransientDependencyError(StudyDeckError):
    """An external service (translation) failed or answered non-OK."""

    status_code = 503
