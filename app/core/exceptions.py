"""
Domain exceptions.

Each error carries a machine-readable ``code`` so the API layer can map it
to a response without parsing messages.
"""


class BoutiqueError(Exception):
    """Base class for all domain errors."""

    code: str = "boutique_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(BoutiqueError, ValueError):
    """An operation received an argument outside its accepted range."""

    code = "invalid_argument"


class PersistenceError(BoutiqueError):
    """
    A storage read or write failed inside a transactional operation.

    Raised after the session has been rolled back, so no partial state
    is left behind. Not retried internally.
    """

    code = "persistence_failure"
