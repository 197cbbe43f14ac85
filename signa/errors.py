"""Error taxonomy shared by the services, the storage layer and the routes.

Every rejection raised before a write means nothing was saved. Writes that
span several rows run inside one storage transaction, so a ``StorageError``
raised mid-write also leaves nothing behind.
"""


class SignaError(Exception):
    status_code = 500

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        payload = {"ok": False, "error": self.message, "saved": False}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(SignaError):
    """Malformed input, empty submission, or a selection over the role limit."""

    status_code = 400


class PreconditionFailed(SignaError):
    """The committee or survey is not in a state that accepts the operation."""

    status_code = 409


class CommitteeFinalized(PreconditionFailed):
    """Any write attempted against a finalized committee."""

    status_code = 423


class NotFound(SignaError):
    status_code = 404


class StorageError(SignaError):
    """The storage backend failed; the operation is not retried."""

    status_code = 503


__all__ = [
    "SignaError",
    "ValidationError",
    "PreconditionFailed",
    "CommitteeFinalized",
    "NotFound",
    "StorageError",
]
