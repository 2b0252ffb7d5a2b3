# voicenotes/errors.py


class VoiceNotesError(Exception):
    """Base class for every failure a pipeline step can report."""


class TransportError(VoiceNotesError):
    """The call never produced an HTTP response (connection failure, timeout, unsendable request)."""


class RemoteError(VoiceNotesError):
    """The far end answered with a structured error payload."""

    def __init__(self, message: str, status: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code

    def __str__(self):
        parts = [self.message]
        if self.code:
            parts.append(f"code={self.code}")
        if self.status is not None:
            parts.append(f"status={self.status}")
        return " ".join(parts)


class ParseError(VoiceNotesError):
    """A response body isn't valid JSON or lacks an expected field."""


class SchemaError(VoiceNotesError):
    """The target database can't accept records (e.g. it has no title property)."""
