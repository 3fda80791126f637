"""Fix Engine: reconciles generative and deterministic rewrites.

Per request::

    Start -> TryGenerative (optional) -> Validate -> Resolved

A generative candidate is only returned after it passes the validator. Any
generative failure falls back to the rule-based rewrite; if that produces
nothing either, :class:`NoFixAvailable` is raised.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterable

from securefix.core.config import SecureFixConfig, load_config
from securefix.core.errors import (
    CandidateAbsent,
    EngineUnavailable,
    GenerativeError,
    NoFixAvailable,
    ValidationRejected,
)
from securefix.core.models import (
    CandidateFix,
    EngineId,
    ErrorKind,
    FixFailure,
    FixOutcome,
    FixRequest,
    OutcomeRecord,
    Strategy,
)
from securefix.fix.ai_fixer import GenerativeRewriter, translate_provider_error
from securefix.fix.prompts import ConfidenceScorer, build_prompt
from securefix.fix.recorder import OutcomeRecorder, Recorder
from securefix.fix.rule_fixer import RuleBasedFixer
from securefix.fix.sanitizer import sanitize
from securefix.fix.validator import FixValidator
from securefix.scanner.classifier import classify_hint

logger = logging.getLogger(__name__)

FALLBACK_NOTICES = {
    ErrorKind.ENGINE_UNAVAILABLE: "{engine} not available, applied deterministic fix instead.",
    ErrorKind.VALIDATION_REJECTED: "AI fix was unreliable, applied deterministic fix instead.",
    ErrorKind.CANDIDATE_ABSENT: "AI returned no usable code, applied deterministic fix instead.",
}
DEFAULT_FALLBACK_NOTICE = "AI failed ({kind}), applied deterministic fix instead."


class FixEngine:
    """Core engine that produces a single trustworthy fix per snippet."""

    def __init__(
        self,
        config: SecureFixConfig | None = None,
        project_path: Path | None = None,
        rewriter: GenerativeRewriter | None = None,
        recorder: Recorder | None = None,
        scorer: ConfidenceScorer | None = None,
    ):
        self.project_path = (project_path or Path.cwd()).resolve()
        self.config = config or load_config(self.project_path)
        self.rule_fixer = RuleBasedFixer()
        self.validator = FixValidator(max_length=self.config.fix.max_candidate_length)
        self.rewriter = rewriter or GenerativeRewriter(self.config)
        self.scorer = scorer

        if recorder is None and self.config.recorder.enabled:
            recorder = OutcomeRecorder(self.project_path, self.config.recorder.filename)
        self.recorder = recorder

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_request(
        self,
        snippet: str,
        category_hint: str | None = None,
        engine: EngineId | str | None = None,
        prefer_generative: bool | None = None,
    ) -> FixRequest:
        """Classify the snippet and fill in configured defaults."""
        if engine is None:
            engine = self.config.fix.default_engine
        if prefer_generative is None:
            prefer_generative = self.config.fix.prefer_generative
        return FixRequest(
            snippet=snippet,
            category=classify_hint(snippet, category_hint),
            engine=EngineId(engine),
            prefer_generative=prefer_generative,
        )

    async def fix(
        self,
        snippet: str,
        category_hint: str | None = None,
        engine: EngineId | str | None = None,
        prefer_generative: bool | None = None,
    ) -> FixOutcome:
        """Fix one snippet. Raises NoFixAvailable if nothing applies."""
        request = self.build_request(snippet, category_hint, engine, prefer_generative)
        return await self.resolve(request)

    def fix_sync(
        self,
        snippet: str,
        category_hint: str | None = None,
        engine: EngineId | str | None = None,
        prefer_generative: bool | None = None,
    ) -> FixOutcome:
        return asyncio.run(self.fix(snippet, category_hint, engine, prefer_generative))

    async def fix_many(
        self, snippets: Iterable[str], **kwargs
    ) -> list[FixOutcome | NoFixAvailable]:
        """Fix snippets concurrently, one task per snippet.

        Failures are returned in place rather than raised so one
        unfixable line does not cancel the others.
        """
        requests = [self.build_request(s, **kwargs) for s in snippets]
        results = await asyncio.gather(
            *(self.resolve(r) for r in requests), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, NoFixAvailable):
                raise result
        return list(results)

    async def resolve(self, request: FixRequest) -> FixOutcome:
        notices: list[str] = []
        fallback_kind: ErrorKind | None = None
        rejection_reasons: tuple[str, ...] = ()

        if request.prefer_generative:
            try:
                candidate = await self._try_generative(request)
            except GenerativeError as e:
                fallback_kind = e.kind
                if isinstance(e, ValidationRejected):
                    rejection_reasons = e.reasons
                notices.append(self._fallback_notice(e.kind, request.engine))
                self._log_fallback(request, e)
            else:
                return self._resolved(request, candidate, notices=notices)

        fixed = self.rule_fixer.try_fix(request.snippet, request.category)
        if fixed is None:
            failure = FixFailure(
                request=request,
                kind=ErrorKind.NO_FIX_AVAILABLE,
                message=self._no_fix_message(request, fallback_kind),
                rejection_reasons=rejection_reasons,
                notices=tuple(notices),
            )
            logger.warning("No fix available for %s snippet", request.category.value)
            self._record(OutcomeRecord.from_failure(failure))
            raise NoFixAvailable(failure)

        logger.info("Applied deterministic fix for %s", request.category.value)
        return self._resolved(
            request,
            CandidateFix(text=fixed, origin=Strategy.DETERMINISTIC),
            fallback_kind=fallback_kind,
            rejection_reasons=rejection_reasons,
            notices=notices,
        )

    def availability(self) -> dict[EngineId, bool]:
        """Credential presence for every configured engine."""
        return {engine: self.rewriter.is_available(engine) for engine in self.config.fix.engines}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _try_generative(self, request: FixRequest) -> CandidateFix:
        """Return a validated generative candidate or raise GenerativeError."""
        if not self.rewriter.is_available(request.engine):
            raise EngineUnavailable(f"{request.engine.value} has no credentials configured")

        prompt = build_prompt(request.snippet, request.category, self.scorer)
        try:
            raw = await self.rewriter.invoke(request.engine, prompt)
        except GenerativeError:
            raise
        except Exception as e:
            raise translate_provider_error(e) from e

        text = sanitize(raw, original=request.snippet)
        if not text:
            raise CandidateAbsent("model reply contained no code line")

        verdict = self.validator.validate(request.snippet, text, request.category)
        if not verdict.accepted:
            raise ValidationRejected(verdict.reasons)

        logger.info("Applied %s fix for %s", request.engine.value, request.category.value)
        return CandidateFix(text=text, origin=Strategy.GENERATIVE)

    def _resolved(
        self,
        request: FixRequest,
        candidate: CandidateFix,
        fallback_kind: ErrorKind | None = None,
        rejection_reasons: tuple[str, ...] = (),
        notices: list[str] | None = None,
    ) -> FixOutcome:
        outcome = FixOutcome(
            request=request,
            applied_strategy=candidate.origin,
            text=candidate.text,
            fallback_kind=fallback_kind,
            rejection_reasons=rejection_reasons,
            notices=tuple(notices or ()),
        )
        self._record(OutcomeRecord.from_outcome(outcome))
        return outcome

    def _record(self, record: OutcomeRecord) -> None:
        if self.recorder is None:
            return
        try:
            self.recorder.record(record)
        except OSError:
            logger.warning("Could not record fix outcome", exc_info=True)

    def _log_fallback(self, request: FixRequest, error: GenerativeError) -> None:
        if isinstance(error, EngineUnavailable):
            logger.info("Generative path skipped: %s", error)
        elif isinstance(error, ValidationRejected):
            logger.warning(
                "AI response failed validation for %s, falling back: %s",
                request.category.value,
                "; ".join(error.reasons),
            )
        else:
            logger.warning("AI fix failed (%s), falling back: %s", error.kind.value, error)

    @staticmethod
    def _fallback_notice(kind: ErrorKind, engine: EngineId) -> str:
        template = FALLBACK_NOTICES.get(kind, DEFAULT_FALLBACK_NOTICE)
        return template.format(engine=engine.value, kind=kind.value.replace("_", " "))

    @staticmethod
    def _no_fix_message(request: FixRequest, fallback_kind: ErrorKind | None) -> str:
        message = f"No fix available for {request.category.value} snippet"
        if fallback_kind is not None:
            message += f" (generative path: {fallback_kind.value.replace('_', ' ')})"
        return message + ". Please fix manually."
