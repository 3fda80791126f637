"""Shared data models used across SecureFix modules."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone

from securefix.core.errors import InvalidSnippet


class VulnerabilityCategory(enum.Enum):
    HARDCODED_API_KEY = "hardcoded-api-key"
    HARDCODED_PASSWORD = "hardcoded-password"
    XSS_UNSAFE_WRITE = "xss-unsafe-write"
    CODE_INJECTION = "code-injection"
    INSECURE_RANDOM = "insecure-random"
    UNCLASSIFIED = "unclassified"

    @classmethod
    def from_hint(cls, hint: str | None) -> VulnerabilityCategory | None:
        """Parse a scanner rule hint. Unknown hints return None."""
        if not hint:
            return None
        key = hint.strip().lower().replace("_", "-")
        try:
            return cls(key)
        except ValueError:
            return _HINT_ALIASES.get(key)


_HINT_ALIASES = {
    "api-key": VulnerabilityCategory.HARDCODED_API_KEY,
    "hardcoded-secret": VulnerabilityCategory.HARDCODED_API_KEY,
    "password": VulnerabilityCategory.HARDCODED_PASSWORD,
    "xss": VulnerabilityCategory.XSS_UNSAFE_WRITE,
    "xss-vulnerability": VulnerabilityCategory.XSS_UNSAFE_WRITE,
    "eval": VulnerabilityCategory.CODE_INJECTION,
    "dangerous-eval": VulnerabilityCategory.CODE_INJECTION,
    "weak-random": VulnerabilityCategory.INSECURE_RANDOM,
    "security-issue": VulnerabilityCategory.UNCLASSIFIED,
}


class Strategy(enum.Enum):
    GENERATIVE = "generative"
    DETERMINISTIC = "deterministic"


class EngineId(enum.Enum):
    OPENAI = "openai"
    GROQ = "groq"
    ANTHROPIC = "anthropic"


class ErrorKind(enum.Enum):
    INVALID_SNIPPET = "invalid_snippet"
    ENGINE_UNAVAILABLE = "engine_unavailable"
    TRANSPORT_ERROR = "transport_error"
    AUTH_ERROR = "auth_error"
    QUOTA_EXCEEDED = "quota_exceeded"
    CANDIDATE_ABSENT = "candidate_absent"
    VALIDATION_REJECTED = "validation_rejected"
    NO_FIX_AVAILABLE = "no_fix_available"


@dataclass(frozen=True)
class FixRequest:
    """A single snippet to repair. Immutable for the life of the request."""

    snippet: str
    category: VulnerabilityCategory
    engine: EngineId = EngineId.OPENAI
    prefer_generative: bool = True

    def __post_init__(self) -> None:
        if not self.snippet or not self.snippet.strip():
            raise InvalidSnippet("Snippet is empty or whitespace-only")


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str


@dataclass(frozen=True)
class CandidateFix:
    """A sanitized replacement line and the strategy that produced it."""

    text: str
    origin: Strategy


@dataclass(frozen=True)
class ValidationVerdict:
    accepted: bool
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class FixOutcome:
    """The fix that was applied and why."""

    request: FixRequest
    applied_strategy: Strategy
    text: str
    fallback_kind: ErrorKind | None = None
    rejection_reasons: tuple[str, ...] = ()
    notices: tuple[str, ...] = ()

    @property
    def fell_back(self) -> bool:
        return self.fallback_kind is not None


@dataclass(frozen=True)
class FixFailure:
    """Both strategies exhausted for a request."""

    request: FixRequest
    kind: ErrorKind
    message: str
    rejection_reasons: tuple[str, ...] = ()
    notices: tuple[str, ...] = ()


@dataclass(frozen=True)
class OutcomeRecord:
    """One append-only analytics row."""

    category: VulnerabilityCategory
    strategy: Strategy | None
    success: bool
    engine: EngineId | None = None
    detail: str = ""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_outcome(cls, outcome: FixOutcome) -> OutcomeRecord:
        detail = outcome.fallback_kind.value if outcome.fallback_kind else ""
        return cls(
            category=outcome.request.category,
            strategy=outcome.applied_strategy,
            success=True,
            engine=outcome.request.engine if outcome.request.prefer_generative else None,
            detail=detail,
        )

    @classmethod
    def from_failure(cls, failure: FixFailure) -> OutcomeRecord:
        return cls(
            category=failure.request.category,
            strategy=None,
            success=False,
            engine=failure.request.engine if failure.request.prefer_generative else None,
            detail=failure.kind.value,
        )
