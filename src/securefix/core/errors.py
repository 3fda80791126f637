"""Error taxonomy for the fix pipeline.

Everything except :class:`NoFixAvailable` (and :class:`InvalidSnippet`, which
signals malformed input) is recoverable: the fix engine absorbs it and falls
back to the deterministic rewrite.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from securefix.core.models import ErrorKind, FixFailure


class SecureFixError(Exception):
    """Base class for all SecureFix errors."""

    kind_name: str = ""

    @property
    def kind(self) -> ErrorKind:
        from securefix.core.models import ErrorKind

        return ErrorKind(self.kind_name)


class InvalidSnippet(SecureFixError, ValueError):
    kind_name = "invalid_snippet"


class GenerativeError(SecureFixError):
    """The generative rewrite could not produce a usable candidate."""


class EngineUnavailable(GenerativeError):
    """No credentials configured for the selected engine."""

    kind_name = "engine_unavailable"


class TransportError(GenerativeError):
    """Network failure, timeout or unexpected provider response."""

    kind_name = "transport_error"


class AuthError(GenerativeError):
    kind_name = "auth_error"


class QuotaExceeded(GenerativeError):
    kind_name = "quota_exceeded"


class CandidateAbsent(GenerativeError):
    """The sanitizer found no code line in the model reply."""

    kind_name = "candidate_absent"


class ValidationRejected(GenerativeError):
    kind_name = "validation_rejected"

    def __init__(self, reasons: tuple[str, ...] | list[str]):
        self.reasons = tuple(reasons)
        super().__init__("; ".join(self.reasons) or "candidate rejected")


class NoFixAvailable(SecureFixError):
    """Both the generative and deterministic strategies came up empty."""

    kind_name = "no_fix_available"

    def __init__(self, failure: FixFailure):
        self.failure = failure
        super().__init__(failure.message)
