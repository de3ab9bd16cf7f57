from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Protocol

import requests

from .catalog_parser import IMPORTANT, NORMAL, CustomClause
from .collaborator_errors import ErrorContract, RiskServiceError, classify_collaborator_exception
from .history_store import HistoryStore, now_utc
from .section_grouper import OTHER_SECTION_TITLE
from .validation_engine import validate_clause_text

LOW = "low"
MEDIUM = "medium"
HIGH = "high"
CRITICAL = "critical"
BLOCKING_LEVELS = {HIGH, CRITICAL}

UNFAIR_CLAUSE_MARKERS = ("부당특약", "부당")
CUSTOM_TAG = "사용자정의"


@dataclass(frozen=True)
class RiskVerdict:
    score: float
    level: str
    category: str
    issues: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "level": self.level,
            "category": self.category,
            "issues": list(self.issues),
            "suggestions": list(self.suggestions),
        }


class RiskAnalyzer(Protocol):
    def analyze(self, text: str) -> RiskVerdict: ...


def classify_risk_result(result: str) -> RiskVerdict:
    """Keyword heuristic over the scorer's free-text answer."""
    text = result or ""
    if any(marker in text for marker in UNFAIR_CLAUSE_MARKERS):
        return RiskVerdict(
            score=75,
            level=HIGH,
            category="부당특약",
            issues=("부당특약 발견",),
            suggestions=(text,),
        )
    return RiskVerdict(score=5, level=LOW, category="일반사항", issues=(), suggestions=(text,))


class KeywordRiskAnalyzer:
    def __init__(self, endpoint_url: str, session: requests.Session | None = None, timeout: float = 30.0):
        self.endpoint_url = endpoint_url
        self.session = session or requests.Session()
        self.timeout = timeout

    def request_result(self, text: str) -> str:
        try:
            resp = self.session.post(self.endpoint_url, json={"input_text": text}, timeout=self.timeout)
        except requests.Timeout as exc:
            raise RiskServiceError(f"timeout while calling risk scorer: {exc}") from exc
        except requests.ConnectionError as exc:
            raise RiskServiceError(f"connection failed while calling risk scorer: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        if not resp.ok:
            raise RiskServiceError(str(data.get("error") or f"HTTP {resp.status_code}"))
        return str(data.get("result") or "")

    def analyze(self, text: str) -> RiskVerdict:
        return classify_risk_result(self.request_result(text))


class GateState(str, Enum):
    IDLE = "idle"
    ANALYZING = "analyzing"
    VERDICTED = "verdicted"


class GateOutcome(str, Enum):
    ADDED = "added"
    ADDED_WITH_WARNING = "added_with_warning"
    ADDED_FORCED = "added_forced"
    CONFIRMATION_REQUIRED = "confirmation_required"
    REJECTED = "rejected"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    allowed: bool
    message: str
    clause: CustomClause | None = None
    verdict: RiskVerdict | None = None


@dataclass(frozen=True)
class AnalysisResult:
    verdict: RiskVerdict | None
    error: ErrorContract | None = None
    messages: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.verdict is not None


def build_custom_clause(text: str, context: dict[str, Any] | None, forced: bool) -> CustomClause:
    ctx = context or {}
    return CustomClause(
        work_type=ctx.get("work_type") or "custom",
        major_category=ctx.get("category") or OTHER_SECTION_TITLE,
        sub_category=ctx.get("sub_category") or OTHER_SECTION_TITLE,
        tag=ctx.get("tag") or CUSTOM_TAG,
        text=text,
        detail=text,
        importance=IMPORTANT if forced else NORMAL,
        forced=forced,
    )


class RiskGate:
    """
    Guarded write path for user-authored clauses.

    Idle -> Analyzing -> Verdicted -> Idle. A clause can only be added once a
    verdict exists for the current text; high and critical verdicts need an
    explicit confirmation and produce a forced clause.
    """

    def __init__(
        self,
        analyzer: RiskAnalyzer,
        history: HistoryStore | None = None,
        on_event: Callable[[str], Any] | None = None,
    ):
        self.analyzer = analyzer
        self.history = history
        self._on_event = on_event
        self.text = ""
        self.verdict: RiskVerdict | None = None
        self.last_error: ErrorContract | None = None
        self.state = GateState.IDLE
        self._in_flight = 0

    def _event(self, msg: str) -> None:
        if self._on_event:
            self._on_event(msg)

    def _settle_state(self) -> None:
        if self._in_flight:
            self.state = GateState.ANALYZING
        elif self.verdict is not None:
            self.state = GateState.VERDICTED
        else:
            self.state = GateState.IDLE

    def set_text(self, text: str) -> None:
        if (text or "").strip() != self.text.strip():
            # A verdict only ever describes the text it was produced for.
            self.verdict = None
        self.text = text or ""
        self._settle_state()

    def analyze(self) -> AnalysisResult:
        check = validate_clause_text(self.text, "analyze")
        if not check.is_valid:
            return AnalysisResult(verdict=None, messages=check.errors)

        submitted = self.text.strip()
        self._in_flight += 1
        self.last_error = None
        self.state = GateState.ANALYZING
        self._event(f"RISK_GATE state=analyzing chars={len(submitted)}")
        try:
            verdict = self.analyzer.analyze(submitted)
        except Exception as exc:
            self._in_flight -= 1
            contract = classify_collaborator_exception(exc)
            self.last_error = contract
            self.verdict = None
            self._settle_state()
            self._event(f"RISK_GATE state={self.state.value} error={contract.code} message={exc}")
            return AnalysisResult(verdict=None, error=contract, messages=[contract.user_message])

        self._in_flight -= 1
        if self.text.strip() != submitted:
            self._settle_state()
            self._event("RISK_GATE verdict=discarded reason=text_changed")
            return AnalysisResult(verdict=None, messages=["The text changed during analysis; analyze it again."])

        # Last verdict to resolve wins.
        self.verdict = verdict
        self._settle_state()
        self._event(f"RISK_GATE state={self.state.value} level={verdict.level} score={verdict.score}")
        self._record_history(submitted, verdict)
        return AnalysisResult(verdict=verdict)

    def _record_history(self, text: str, verdict: RiskVerdict) -> None:
        if self.history is None:
            return
        try:
            self.history.append(
                {
                    "text": text,
                    "analysis": verdict.to_dict(),
                    "result": verdict.suggestions[0] if verdict.suggestions else "",
                    "timestamp": now_utc(),
                }
            )
        except (OSError, TypeError, ValueError) as exc:
            self._event(f"HISTORY status=failed store=analysis error={exc}")

    def add(self, confirm_forced: bool = False, context: dict[str, Any] | None = None) -> GateDecision:
        check = validate_clause_text(self.text, "add it")
        if not check.is_valid:
            return GateDecision(GateOutcome.REJECTED, allowed=False, message=check.errors[0])

        verdict = self.verdict
        if verdict is None:
            return GateDecision(
                GateOutcome.REJECTED,
                allowed=False,
                message="Run the risk analysis first; a clause cannot be added without it.",
            )

        level = (verdict.level or LOW).lower()
        if level in BLOCKING_LEVELS and not confirm_forced:
            severity = "very high" if level == CRITICAL else "high"
            return GateDecision(
                GateOutcome.CONFIRMATION_REQUIRED,
                allowed=False,
                message=f"Risk level is {severity}. Confirm to add this clause anyway.",
                verdict=verdict,
            )

        forced = level in BLOCKING_LEVELS
        clause = build_custom_clause(self.text.strip(), context, forced=forced)
        if forced:
            outcome = GateOutcome.ADDED_FORCED
            message = "High-risk clause was added by force. Separate review is required."
        elif level == MEDIUM:
            outcome = GateOutcome.ADDED_WITH_WARNING
            message = "Medium risk: agree the clause with the responsible manager before issuing."
        else:
            outcome = GateOutcome.ADDED
            message = "Clause added."

        self._event(f"RISK_GATE action=add outcome={outcome.value} level={level}")
        self.reset()
        return GateDecision(outcome, allowed=True, message=message, clause=clause, verdict=verdict)

    def reset(self) -> None:
        self.text = ""
        self.verdict = None
        self.last_error = None
        self._settle_state()
