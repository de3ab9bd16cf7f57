from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable

import requests

from .catalog_parser import ClauseRecord, CustomClause
from .catalog_source import load_catalog
from .collaborator_errors import ErrorContract, classify_collaborator_exception
from .document_preview import DocumentAssembly, ProjectInfo
from .export_pipeline import ExportData, ExportOptions, ExportResult, PrintSurface, export_document
from .filter_cascade import CascadeLevel, FilterCascade
from .history_store import HistoryStore, JsonHistoryStore
from .print_surface import ChromePrintSurface
from .review_audit import DOCUMENT_EXPORTED, FORCED_CLAUSE_ADDED, append_review_event
from .risk_gate import AnalysisResult, GateDecision, GateOutcome, KeywordRiskAnalyzer, RiskAnalyzer, RiskGate
from .section_grouper import DocumentSection, group_sections
from .selection_export import export_selection_xlsx
from .selection_set import AttachResult, SelectedClause, SelectionSet, UploadedFile


class BidConditionsSession:
    """
    One user's working session: catalog, cascade, selection, risk gate and document.

    Owns the wiring between the services and the injected stores; holds no
    configuration of its own beyond what the constructor receives.
    """

    def __init__(
        self,
        catalog_source: str | Path,
        analyzer: RiskAnalyzer,
        surface_factory: Callable[[], PrintSurface] | None = None,
        export_history: HistoryStore | None = None,
        analysis_history: HistoryStore | None = None,
        audit_file: str | Path | None = None,
        http_session: requests.Session | None = None,
        timeout: float = 30.0,
        max_image_bytes: int = 5 * 1024 * 1024,
        actor: str = "user",
        log: Callable[[str], None] | None = None,
    ):
        self.catalog_source = catalog_source
        self.surface_factory = surface_factory
        self.export_history = export_history
        self.audit_file = Path(audit_file) if audit_file else None
        self.http_session = http_session
        self.timeout = timeout
        self.actor = actor
        self.log = log or (lambda _msg: None)

        self.cascade = FilterCascade()
        self.selection = SelectionSet(max_image_bytes=max_image_bytes, on_event=self.log)
        self.gate = RiskGate(analyzer, history=analysis_history, on_event=self.log)
        self.assembly = DocumentAssembly(self.selection)
        self.catalog_error: ErrorContract | None = None
        self.loading = False

    @classmethod
    def from_config(cls, log: Callable[[str], None] | None = None) -> "BidConditionsSession":
        from .. import config

        http = requests.Session()
        return cls(
            catalog_source=config.CATALOG_URL,
            analyzer=KeywordRiskAnalyzer(config.RISK_API_URL, session=http, timeout=config.HTTP_TIMEOUT_SEC),
            surface_factory=lambda: ChromePrintSurface(
                config.OUTPUT_DIR,
                close_delay=config.PRINT_CLOSE_DELAY_SEC,
                headless=config.PRINT_HEADLESS,
                log=log,
            ),
            export_history=JsonHistoryStore(config.EXPORT_HISTORY_PATH, config.EXPORT_HISTORY_LIMIT, newest_first=True),
            analysis_history=JsonHistoryStore(
                config.ANALYSIS_HISTORY_PATH, config.ANALYSIS_HISTORY_LIMIT, newest_first=False
            ),
            audit_file=config.REVIEW_AUDIT_PATH,
            http_session=http,
            timeout=config.HTTP_TIMEOUT_SEC,
            max_image_bytes=config.MAX_IMAGE_BYTES,
            log=log,
        )

    # -- catalog ---------------------------------------------------------------

    @property
    def records(self) -> list[ClauseRecord]:
        return self.cascade.records

    def load_catalog(self) -> bool:
        self.loading = True
        self.catalog_error = None
        try:
            records = load_catalog(self.catalog_source, session=self.http_session, timeout=self.timeout)
        except Exception as exc:
            self.catalog_error = classify_collaborator_exception(exc)
            self.log(f"CATALOG status=failed error={self.catalog_error.code} message={exc}")
            return False
        finally:
            self.loading = False

        self.cascade.load(records)
        work_types = self.cascade.options(CascadeLevel.WORK_TYPE)
        if work_types:
            self.cascade.choose_work_type(work_types[0])
        self.assembly.set_work_type(self.cascade.work_type)
        self.log(f"CATALOG status=loaded records={len(records)} work_types={len(work_types)}")
        return True

    def retry_load(self) -> bool:
        return self.load_catalog()

    def refresh(self) -> bool:
        """Drop the selection, filters, search and attachments, then reload the catalog."""
        self.selection.remove_all()
        self.cascade.reset()
        self.gate.reset()
        self.log("CATALOG action=refresh")
        return self.load_catalog()

    # -- filters and selection -------------------------------------------------

    def select_filter(self, level: CascadeLevel, value: str | None) -> None:
        self.cascade.select(level, value)
        if CascadeLevel(level) == CascadeLevel.WORK_TYPE:
            self.assembly.set_work_type(self.cascade.work_type)

    def visible_clauses(self) -> list[ClauseRecord]:
        return self.cascade.filtered_clauses()

    def toggle(self, clause: ClauseRecord) -> bool:
        return self.selection.toggle(clause)

    def toggle_all_visible(self) -> bool:
        return self.selection.select_all(self.visible_clauses())

    def attach_images(self, clause: ClauseRecord, files: Iterable[UploadedFile]) -> AttachResult:
        return self.selection.attach_images(clause, files)

    def selected(self) -> list[SelectedClause]:
        return self.selection.annotated()

    def remove_clause(self, clause: ClauseRecord) -> bool:
        """Remove one selected clause, catalog or custom, together with its images."""
        return self.selection.remove_one(clause)

    def detach_image(self, clause: ClauseRecord, image_id: str) -> bool:
        removed = self.selection.detach_image(clause, image_id)
        if removed:
            self.log(f"IMAGE status=detached id={image_id}")
        return removed

    def set_project_info(self, info: ProjectInfo) -> None:
        self.assembly.set_project_info(info)

    # -- custom clauses --------------------------------------------------------

    def analyze_custom_clause(self, text: str) -> AnalysisResult:
        self.gate.set_text(text)
        return self.gate.analyze()

    def add_custom_clause(self, confirm_forced: bool = False) -> GateDecision:
        # Checked before the gate commits, so a duplicate keeps the text and verdict.
        if self.selection.contains(CustomClause(text=self.gate.text.strip())):
            self.log("RISK_GATE action=add outcome=rejected reason=duplicate")
            return GateDecision(
                GateOutcome.REJECTED,
                allowed=False,
                message="This clause is already in the selection.",
                verdict=self.gate.verdict,
            )

        decision = self.gate.add(confirm_forced=confirm_forced, context=self.cascade.as_context())
        if not decision.allowed or decision.clause is None:
            return decision

        self.selection.add(decision.clause)
        if decision.outcome == GateOutcome.ADDED_FORCED:
            self._audit(
                FORCED_CLAUSE_ADDED,
                "pending_review",
                clause_key=decision.clause.key,
                metadata=decision.verdict.to_dict() if decision.verdict else {},
            )
        return decision

    # -- document --------------------------------------------------------------

    def sections(self) -> list[DocumentSection]:
        return group_sections(self.selection.annotated())

    def render_preview(self) -> str:
        return self.assembly.render()

    def export(
        self,
        options: ExportOptions | None = None,
        on_progress: Callable[[int], Any] | None = None,
    ) -> ExportResult:
        if self.surface_factory is None:
            raise RuntimeError("No print surface is configured for this session.")
        data = ExportData(
            project_info=self.assembly.project_info,
            conditions=self.selection.annotated(),
            options=options or ExportOptions(),
        )
        result = export_document(
            self.assembly.region,
            data,
            self.surface_factory,
            history=self.export_history,
            on_progress=on_progress,
            log=self.log,
        )
        if result.ok:
            self._audit(
                DOCUMENT_EXPORTED,
                "success",
                metadata={"file_name": result.file_name, "page_count": result.page_count},
            )
        return result

    def export_history_entries(self) -> list[dict[str, Any]]:
        return self.export_history.list() if self.export_history else []

    def clear_export_history(self) -> None:
        if self.export_history:
            self.export_history.clear()

    def export_selection(self, path: str | Path) -> Path:
        return export_selection_xlsx(self.selection.annotated(), path)

    def _audit(self, event_type: str, status: str, clause_key=None, metadata: dict[str, Any] | None = None) -> None:
        if self.audit_file is None:
            return
        try:
            append_review_event(
                self.audit_file,
                event_type=event_type,
                actor=self.actor,
                status=status,
                clause_key=clause_key,
                metadata=metadata,
            )
        except OSError as exc:
            self.log(f"AUDIT status=failed event={event_type} error={exc}")
