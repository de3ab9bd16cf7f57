from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from html import escape
from typing import Any, Callable, Sequence

from .section_grouper import DocumentSection, group_sections
from .selection_set import SelectedClause, SelectionSet

PREVIEW_ELEMENT_ID = "preview-content"
PREVIEW_CLASS_NAME = "flex-1 p-6 bg-white overflow-y-auto h-full"
DOCUMENT_TITLE = "공종별견적조건(현장)"
IMPORTANT_LABEL = "[중요]"
FORCED_CLAUSE_CLASSES = "bg-yellow-100 px-2 py-1 rounded border-l-4 border-yellow-400"
UNREGISTERED = "미등록"


@dataclass
class ProjectInfo:
    name: str = ""
    location: str = ""
    client: str = ""
    summary: str = ""
    project_type: str = ""
    detailed_type: str = ""
    order_volume_rate: float = 100.0
    exemption_rate: float = 100.0
    contact_role: str = ""
    contact_name: str = ""
    docs_url: str = ""
    docs_password: str = ""
    basic_conditions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DocumentRegion:
    """The live, on-screen document: an element id, its presentation and its markup."""

    element_id: str = PREVIEW_ELEMENT_ID
    style: str = ""
    class_name: str = PREVIEW_CLASS_NAME
    inner_html: str = ""


def clamp_rate(value: Any, default: float = 100.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number:
        return default
    return max(0.0, min(100.0, number))


def format_generated_at(moment: datetime) -> str:
    return moment.strftime("%Y. %m. %d. %H:%M:%S")


def _e(value: Any) -> str:
    return escape(str(value if value is not None else ""), quote=True)


def _rate_text(value: float) -> str:
    return f"{value:g}"


def _field(name: str, value: Any, classes: str, editable: bool, input_type: str = "text", placeholder: str = "") -> str:
    if not editable:
        return f'<strong class="mx-1">{_e(value)}</strong>'
    extra = ' min="0" max="100" step="0.01"' if input_type == "number" else ""
    hint = f' placeholder="{_e(placeholder)}"' if placeholder else ""
    return f'<input type="{input_type}" name="{name}" class="{classes}" value="{_e(value)}"{extra}{hint}>'


def _header(info: ProjectInfo, work_type: str, generated_at: datetime) -> str:
    title = f"{work_type} {DOCUMENT_TITLE}" if work_type else DOCUMENT_TITLE
    cells = [
        ("현장명:", info.name or "-"),
        ("작성일자:", generated_at.strftime("%Y.%m")),
        ("제목:", title),
        ("페이지:", "-"),
    ]
    rows = "".join(
        '<div class="flex items-center">'
        f'<span class="w-16 text-gray-600">{_e(label)}</span>'
        f'<span class="flex-1 border-b border-gray-300 pb-1 min-w-0">{_e(value)}</span>'
        "</div>"
        for label, value in cells
    )
    return (
        '<div class="mb-8 border border-gray-300 bg-white">'
        '<div class="flex items-start p-4">'
        '<div class="flex items-center gap-3 flex-shrink-0"><span class="font-bold text-lg">견적조건서</span></div>'
        f'<div class="flex-1 ml-8"><div class="grid grid-cols-2 gap-8 text-sm">{rows}</div></div>'
        "</div></div>"
    )


def _section(number: int, title: str, body: str, body_classes: str = "mt-3 text-sm space-y-3") -> str:
    return (
        '<div class="mb-6">'
        f'<h2 class="font-bold text-lg">{number}. {_e(title)}</h2>'
        f'<div class="{body_classes}">{body}</div>'
        "</div>"
    )


def _item(label: str, text: str, classes: str = "text-pretty pl-6") -> str:
    return f'<div class="{classes}"><span class="font-medium">{_e(label)}</span> {text}</div>'


def _front_matter(info: ProjectInfo, editable: bool) -> list[str]:
    volume = clamp_rate(info.order_volume_rate)
    exemption = clamp_rate(info.exemption_rate)
    input_classes = "mx-1 h-5 w-16 border border-gray-300 rounded px-1 bg-yellow-100/60 text-xs text-right"

    general = "".join(
        [
            _item("1)", "본 입찰의 현장설명회는 On-line으로만 진행하며, 별도 Off-line 현장설명회가 진행되지 않으므로, "
                  "견적조건을 포함한 입찰안내 서류를 면밀히 숙지하고 투찰한다."),
            _item(
                "2) [발주 물량 공지]",
                "금회 발주 물량은 전체 예상 물량의 약"
                + _field("order_volume_rate", _rate_text(volume), input_classes, editable, "number")
                + "% 수준이며, 내역 확정 후 증감수량은 변경계약을 통하여 반영예정임",
            ),
            _item("3) 지급자재 :", "공사용 용수/전력(단, 협력사사무실 전력 제외), 건설용리프트, 시멘트"),
            _item(
                "4) 담당자 :",
                _field("contact_role", info.contact_role or ("" if editable else "공무"),
                       "mx-1 h-5 w-12 border border-gray-300 rounded px-1 bg-yellow-100/60 text-xs", editable,
                       placeholder="역할")
                + _field("contact_name", info.contact_name or ("" if editable else "000"),
                         "mx-1 h-5 w-20 border border-gray-300 rounded px-1 text-xs", editable, placeholder="이름")
                + " 전임",
            ),
        ]
    )

    rate = f"{exemption:.2f}"
    vat = (
        '<div class="flex items-center gap-2 pl-6"><div>1) 아파트 면세율 :</div>'
        + _field("exemption_rate", _rate_text(exemption), "h-7 w-24 border border-gray-300 rounded px-2 text-sm bg-yellow-100/60",
                 editable, "number")
        + "<span>%</span></div>"
        '<div class="pl-6">2) 면세 적용에 따른 VAT 금액 산출</div>'
        '<div class="ml-6 mt-3"><div class="border border-gray-300 rounded-md overflow-hidden">'
        '<div class="grid grid-cols-2">'
        '<div class="text-center font-medium border-b border-gray-300 border-r bg-gray-50 py-2 px-3 text-sm">면세</div>'
        '<div class="text-center font-medium border-b border-gray-300 bg-gray-50 py-2 px-3 text-sm">과세</div>'
        "</div>"
        '<div class="grid grid-cols-2">'
        '<div class="border-r border-gray-300 p-3 text-sm"><div class="text-left">'
        '<div class="font-medium">"아파트+주차장+부속동"의 직접비 계</div>'
        f'<div class="text-sm text-gray-600 mt-1">× 아파트면세율({rate}%) × 0%</div>'
        "</div></div>"
        '<div class="p-3 text-sm"><div class="text-left space-y-2">'
        '<div><div class="font-medium">1) "아파트+주차장+부속동"의 직접비 계</div>'
        f'<div class="text-sm text-gray-600 mt-1">× (100% - 아파트면세율({rate}%)) × 10%</div></div>'
        '<div><div class="font-medium">2) 상가 직접비 × 10%</div></div>'
        "</div></div>"
        "</div></div>"
        '<div class="mt-3 text-sm text-gray-500">* 간접비는 직접비총액 중 과세금액(아파트+주차장+부속동 과세금액 및 상가금액) 비율 적용</div>'
        "</div>"
    )

    if info.docs_url:
        url = f'<a href="{_e(info.docs_url)}" class="text-blue-600 underline">{_e(info.docs_url)}</a>'
    else:
        url = f'<span class="text-gray-400">{UNREGISTERED}</span>'
    password = _e(info.docs_password) if info.docs_password else f'<span class="text-gray-400">{UNREGISTERED}</span>'
    docs = "".join(
        [
            _item("1)", "아래 URL을 통해 실시설계 자료를 확인한다.", "text-pretty"),
            _item("2)", f"URL: {url}", "text-pretty"),
            _item("3)", f"패스워드: {password}", "text-pretty"),
        ]
    )

    if info.basic_conditions:
        basics = "".join(_item(f"{i})", _e(text)) for i, text in enumerate(info.basic_conditions, start=1))
    else:
        basics = '<div class="text-gray-500 pl-6">좌측 패널에서 기본조건을 선택하세요.</div>'

    return [
        _section(1, "현장 일반사항", general),
        _section(2, "VAT 금액 산정", vat),
        _section(3, "하자보증기간 안내", "<div>• 공동주택 2년</div>", "mt-3 text-sm pl-6"),
        _section(4, "설계도서 및 기술자료 열람", docs, "mt-3 text-sm space-y-2 pl-6"),
        _section(5, "현장 기본조건", basics, "space-y-2 mt-3 text-sm leading-6"),
    ]


def _images(condition: Any) -> str:
    images = getattr(condition, "images", ()) or ()
    if not images:
        return ""
    tiles = "".join(
        '<div class="relative">'
        f'<img src="{_e(image.preview)}" alt="첨부 이미지" class="object-contain border border-gray-300 rounded" '
        'style="height: 300px; max-width: 400px">'
        "</div>"
        for image in images
    )
    return f'<div class="ml-4 mt-2"><div class="flex flex-wrap gap-3">{tiles}</div></div>'


def render_condition(index: int, condition: Any) -> str:
    classes = "text-pretty pl-6"
    if getattr(condition, "forced", False):
        classes = f"{classes} {FORCED_CLAUSE_CLASSES}"
    marker = ""
    if getattr(condition, "is_important", False):
        marker = f'<span class="ml-2 text-red-600 font-semibold">{IMPORTANT_LABEL}</span>'
    return (
        f'<div class="{classes}"><div class="space-y-2">'
        f'<div><span class="font-medium">{index})</span> {_e(condition.text)}{marker}</div>'
        f"{_images(condition)}"
        "</div></div>"
    )


def count_conditions(info: ProjectInfo, sections: Sequence[DocumentSection]) -> int:
    return len(info.basic_conditions) + sum(len(section.conditions) for section in sections)


def render_document(
    project_info: ProjectInfo,
    sections: Sequence[DocumentSection],
    work_type: str = "",
    generated_at: datetime | None = None,
    editable: bool = True,
) -> str:
    """Markup of the whole document: header, five fixed sections, then one block per grouped section."""
    moment = generated_at or datetime.now()
    parts = [_header(project_info, work_type, moment)]
    parts.extend(_front_matter(project_info, editable))
    for section in sections:
        body = "".join(render_condition(i, c) for i, c in enumerate(section.conditions, start=1))
        parts.append(_section(section.sequence_number, section.title, body, "space-y-2 mt-3 text-sm leading-6"))
    parts.append(
        '<div class="mt-10 pt-6 border-t border-gray-200 text-center text-xs text-gray-500">'
        "<div>본 견적조건서는 견적 조건서 생성기를 통해 생성되었습니다.</div>"
        f"<div>생성일시: {format_generated_at(moment)}</div>"
        f"<div>총 조건 수: {count_conditions(project_info, sections)}개</div>"
        "</div>"
    )
    return '<div class="max-w-4xl mx-auto">' + "".join(parts) + "</div>"


class DocumentAssembly:
    """
    Keeps the document region in step with the selection.

    Subscribes to the SelectionSet; every notification regroups the annotated
    selection and re-renders the region, so sections are never cached.
    """

    def __init__(
        self,
        selection: SelectionSet,
        project_info: ProjectInfo | None = None,
        region: DocumentRegion | None = None,
        clock: Callable[[], datetime] = datetime.now,
        editable: bool = True,
    ):
        self.project_info = project_info or ProjectInfo()
        self.region = region or DocumentRegion()
        self.work_type = ""
        self.editable = editable
        self.conditions: list[SelectedClause] = []
        self.sections: list[DocumentSection] = []
        self.renders = 0
        self._clock = clock
        self._unsubscribe = selection.subscribe(self._on_selection)

    def _on_selection(self, conditions: list[SelectedClause]) -> None:
        self.conditions = list(conditions)
        self.sections = group_sections(self.conditions)
        self.render()

    def render(self) -> str:
        self.region.inner_html = render_document(
            self.project_info,
            self.sections,
            work_type=self.work_type,
            generated_at=self._clock(),
            editable=self.editable,
        )
        self.renders += 1
        return self.region.inner_html

    def set_project_info(self, info: ProjectInfo) -> None:
        self.project_info = info
        self.render()

    def set_work_type(self, work_type: str | None) -> None:
        self.work_type = work_type or ""
        self.render()

    @property
    def total_conditions(self) -> int:
        return count_conditions(self.project_info, self.sections)

    def close(self) -> None:
        self._unsubscribe()
