from __future__ import annotations

from contextlib import contextmanager
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from html import escape
from pathlib import Path
from typing import Any, Callable, Iterator, Protocol, Sequence

from .document_preview import DocumentRegion, ProjectInfo, count_conditions, format_generated_at
from .history_store import HistoryStore, now_utc
from .print_surface import PrintedDocument, SurfaceUnavailableError
from .section_grouper import group_sections
from .style_normalizer import PRINT_FONT_FAMILY, build_print_stylesheet, format_style, normalize_markup
from .validation_engine import ValidationResult, validate_export_data

PAGE_FORMATS = ("a4", "letter")
ORIENTATIONS = ("portrait", "landscape")
TEMPLATES = ("standard", "compact", "detailed")
MARGIN_RANGE = (0.5, 2.0)
QUALITY_RANGE = (0.5, 1.0)
TEMPLATE_FONT_SIZES = {"compact": "10px", "standard": "12px", "detailed": "13px"}

DOCUMENT_TITLE = "견적조건서"
WATERMARK_TEXT = "견적조건서"

# Presentation applied to the live region while it is being exported.
PRINT_ROOT_STYLE = {
    "background-color": "white",
    "color": "black",
    "font-family": PRINT_FONT_FAMILY,
    "font-size": "12px",
    "line-height": "1.4",
    "padding": "20px",
    "margin": "0",
    "width": "100%",
    "max-width": "none",
    "min-height": "297mm",
    "box-sizing": "border-box",
}

PROGRESS_START = 10
PROGRESS_NORMALIZED = 50
PROGRESS_HANDED_OFF = 90
PROGRESS_DONE = 100


class DocumentRegionNotFound(LookupError):
    """The document region to export does not exist."""


class ExportError(RuntimeError):
    """Export failed after cleanup ran; the message is meant for the user."""


def clamp(value: Any, low: float, high: float, default: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:
        return default
    return max(low, min(high, number))


def _choice(value: Any, allowed: Sequence[str], default: str) -> str:
    text = str(value or "").strip().lower()
    return text if text in allowed else default


@dataclass(frozen=True)
class ExportOptions:
    """Page and rendering options. Out-of-range numbers are clamped, unknown choices fall back to defaults."""

    page_format: str = "a4"
    orientation: str = "portrait"
    margin_inches: float = 1.0
    image_quality: float = 0.98
    template: str = "standard"
    include_header: bool = True
    include_footer: bool = True
    include_watermark: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "page_format", _choice(self.page_format, PAGE_FORMATS, "a4"))
        object.__setattr__(self, "orientation", _choice(self.orientation, ORIENTATIONS, "portrait"))
        object.__setattr__(self, "template", _choice(self.template, TEMPLATES, "standard"))
        object.__setattr__(self, "margin_inches", clamp(self.margin_inches, *MARGIN_RANGE, default=1.0))
        object.__setattr__(self, "image_quality", clamp(self.image_quality, *QUALITY_RANGE, default=0.98))
        object.__setattr__(self, "include_header", bool(self.include_header))
        object.__setattr__(self, "include_footer", bool(self.include_footer))
        object.__setattr__(self, "include_watermark", bool(self.include_watermark))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _condition_entry(condition: Any) -> dict[str, Any]:
    return {
        "work_type_code": getattr(condition, "work_type_code", "") or condition.key[0],
        "text": condition.text,
        "major_category": condition.major_category,
        "sub_category": condition.sub_category,
        "important": bool(condition.is_important),
        "forced": bool(condition.forced),
        "images": len(getattr(condition, "images", ()) or ()),
    }


@dataclass
class ExportData:
    project_info: ProjectInfo
    conditions: list = field(default_factory=list)
    options: ExportOptions = field(default_factory=ExportOptions)
    timestamp: str = field(default_factory=now_utc)

    def to_dict(self) -> dict[str, Any]:
        return {
            "project_info": self.project_info.to_dict(),
            "selected_conditions": [_condition_entry(c) for c in self.conditions],
            "export_options": self.options.to_dict(),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ExportResult:
    status: str
    errors: list[str] = field(default_factory=list)
    file_name: str = ""
    pdf_path: Path | None = None
    page_count: int = 0

    @property
    def ok(self) -> bool:
        return self.status == "exported"


class PrintSurface(Protocol):
    def load(self, document_html: str) -> None: ...

    def print_document(self, options: ExportOptions, file_name: str) -> PrintedDocument: ...


def generate_file_name(project_info: ProjectInfo, template: str, today: date | None = None) -> str:
    day = (today or date.today()).isoformat()
    project_name = (project_info.name or "").strip() or DOCUMENT_TITLE
    suffix = f"_{template}" if template != "standard" else ""
    return f"{project_name}_{DOCUMENT_TITLE}{suffix}_{day}.pdf"


@contextmanager
def presentation_snapshot(region: DocumentRegion | None) -> Iterator[str]:
    """Hold the region in print presentation and yield its markup; the original style and class always come back."""
    if region is None or not region.element_id:
        raise DocumentRegionNotFound("The document region could not be found.")
    saved_style, saved_class = region.style, region.class_name
    region.style = format_style(PRINT_ROOT_STYLE)
    try:
        yield region.inner_html
    finally:
        region.style = saved_style
        region.class_name = saved_class


def _page_css(options: ExportOptions) -> str:
    font_size = TEMPLATE_FONT_SIZES[options.template]
    return f"""
@page {{ size: {options.page_format} {options.orientation}; margin: {options.margin_inches:g}in; }}
body {{ font-family: {PRINT_FONT_FAMILY}; font-size: {font_size}; line-height: 1.4; color: black; background: white; margin: 0; padding: 0; }}
.pdf-content {{ width: 100%; max-width: none; margin: 0; padding: 0; background: white !important; font-size: {font_size}; }}
.pdf-header {{ display: flex; justify-content: space-between; border-bottom: 1px solid #d1d5db; padding-bottom: 8px; margin-bottom: 16px; }}
.pdf-footer {{ border-top: 1px solid #e5e7eb; margin-top: 24px; padding-top: 8px; text-align: center; font-size: 10px; color: #6b7280; }}
.pdf-watermark {{ position: fixed; top: 45%; left: 0; width: 100%; text-align: center; font-size: 72px; color: rgba(0, 0, 0, 0.08); transform: rotate(-30deg); z-index: 0; pointer-events: none; }}
""".strip()


def build_print_document(
    markup: str,
    data: ExportData,
    file_name: str | None = None,
    generated_at: datetime | None = None,
) -> str:
    options = data.options
    title = file_name or generate_file_name(data.project_info, options.template)
    moment = generated_at or datetime.now()

    body: list[str] = []
    if options.include_watermark:
        body.append(f'<div class="pdf-watermark">{WATERMARK_TEXT}</div>')
    if options.include_header:
        name = escape(data.project_info.name.strip() or DOCUMENT_TITLE)
        body.append(f'<div class="pdf-header"><strong>{name}</strong><span>{DOCUMENT_TITLE}</span></div>')
    body.append(f'<div class="pdf-content">{markup}</div>')
    if options.include_footer:
        # Same count as the preview footer: basic conditions plus every sectioned clause.
        total = count_conditions(data.project_info, group_sections(data.conditions))
        body.append(
            '<div class="pdf-footer">'
            f"생성일시: {format_generated_at(moment)} · 총 조건 수: {total}개"
            "</div>"
        )

    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{escape(title)}</title>\n"
        f"<style>\n{_page_css(options)}\n{build_print_stylesheet()}\n</style>\n"
        "</head>\n<body>\n"
        + "\n".join(body)
        + "\n</body>\n</html>\n"
    )


def _record_history(
    history: HistoryStore | None,
    data: ExportData,
    file_name: str,
    log: Callable[[str], None],
) -> None:
    if history is None:
        return
    entry = data.to_dict()
    entry["file_name"] = file_name
    entry["exported_at"] = now_utc()
    try:
        history.append(entry)
    except (OSError, TypeError, ValueError) as exc:
        log(f"HISTORY status=failed store=export error={exc}")


def export_document(
    region: DocumentRegion | None,
    data: ExportData,
    surface_factory: Callable[[], PrintSurface],
    history: HistoryStore | None = None,
    on_progress: Callable[[int], Any] | None = None,
    log: Callable[[str], None] | None = None,
) -> ExportResult:
    """
    Turn the live document region into a printed document.

    Invalid export data comes back as a result with every message; environment
    failures are raised once the region's presentation has been restored.
    """
    emit = log or (lambda _msg: None)

    def progress(value: int) -> None:
        emit(f"EXPORT status=running progress={value}")
        if on_progress:
            on_progress(value)

    check: ValidationResult = validate_export_data(data)
    if not check.is_valid:
        emit(f"EXPORT status=invalid errors={len(check.errors)}")
        return ExportResult(status="invalid", errors=list(check.errors))

    file_name = generate_file_name(data.project_info, data.options.template)
    progress(PROGRESS_START)
    try:
        with presentation_snapshot(region) as markup:
            normalized = normalize_markup(markup)
            progress(PROGRESS_NORMALIZED)

            document = build_print_document(normalized, data, file_name)
            surface = surface_factory()
            surface.load(document)
            printed = surface.print_document(data.options, file_name)
            progress(PROGRESS_HANDED_OFF)

            _record_history(history, data, file_name, emit)
            progress(PROGRESS_DONE)
    except (SurfaceUnavailableError, DocumentRegionNotFound) as exc:
        emit(f"EXPORT status=failed error={type(exc).__name__} message={exc}")
        raise
    except Exception as exc:
        emit(f"EXPORT status=failed error={type(exc).__name__} message={exc}")
        raise ExportError(f"An error occurred while creating the PDF: {exc}") from exc

    emit(f"EXPORT status=done file={file_name} pages={printed.page_count}")
    return ExportResult(
        status="exported",
        file_name=file_name,
        pdf_path=printed.pdf_path,
        page_count=printed.page_count,
    )
