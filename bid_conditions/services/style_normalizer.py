"""Print-safe rewriting of the utility classes used by the document preview.

The same rule table drives both the inline rewrite of a markup snapshot and
the literal stylesheet embedded in the print document, so the two can never
disagree. Classes without a rule are left exactly as they are.
"""

from __future__ import annotations

from bs4 import BeautifulSoup

PRINT_FONT_FAMILY = "Arial, sans-serif"

NORMALIZATION_RULES: dict[str, dict[str, str]] = {
    # layout
    "flex": {"display": "flex"},
    "flex-1": {"flex": "1 1 0%"},
    "flex-shrink-0": {"flex-shrink": "0"},
    "flex-wrap": {"flex-wrap": "wrap"},
    "grid": {"display": "grid", "border-collapse": "collapse"},
    "grid-cols-2": {"grid-template-columns": "repeat(2, minmax(0, 1fr))"},
    "gap-2": {"gap": "0.5rem"},
    "gap-3": {"gap": "0.75rem"},
    "gap-8": {"gap": "2rem"},
    "items-center": {"align-items": "center"},
    "items-start": {"align-items": "flex-start"},
    "justify-center": {"justify-content": "center"},
    "relative": {"position": "relative"},
    "overflow-hidden": {"overflow": "hidden"},
    "overflow-y-auto": {"overflow-y": "visible"},
    "h-full": {"height": "auto"},
    # spacing
    "mb-2": {"margin-bottom": "0.5rem"},
    "mb-3": {"margin-bottom": "0.75rem"},
    "mb-6": {"margin-bottom": "1.5rem"},
    "mb-8": {"margin-bottom": "2rem"},
    "mt-1": {"margin-top": "0.25rem"},
    "mt-2": {"margin-top": "0.5rem"},
    "mt-3": {"margin-top": "0.75rem"},
    "mt-10": {"margin-top": "2.5rem"},
    "ml-2": {"margin-left": "0.5rem"},
    "ml-4": {"margin-left": "1rem"},
    "ml-6": {"margin-left": "1.5rem"},
    "ml-8": {"margin-left": "2rem"},
    "mx-1": {"margin-left": "0.25rem", "margin-right": "0.25rem"},
    "mx-auto": {"margin-left": "auto", "margin-right": "auto"},
    "p-3": {"padding": "0.75rem"},
    "p-4": {"padding": "1rem"},
    "p-6": {"padding": "1.5rem"},
    "pb-1": {"padding-bottom": "0.25rem"},
    "pl-6": {"padding-left": "1.5rem"},
    "pt-6": {"padding-top": "1.5rem"},
    "px-2": {"padding-left": "0.5rem", "padding-right": "0.5rem"},
    "px-3": {"padding-left": "0.75rem", "padding-right": "0.75rem"},
    "py-1": {"padding-top": "0.25rem", "padding-bottom": "0.25rem"},
    "py-2": {"padding-top": "0.5rem", "padding-bottom": "0.5rem"},
    # sizing
    "w-12": {"width": "3rem"},
    "w-16": {"width": "4rem"},
    "w-20": {"width": "5rem"},
    "w-24": {"width": "6rem"},
    "w-50": {"width": "12.5rem"},
    "h-5": {"height": "1.25rem"},
    "h-7": {"height": "1.75rem"},
    "h-20": {"height": "5rem"},
    "min-w-0": {"min-width": "0px"},
    "max-w-4xl": {"max-width": "56rem"},
    # typography
    "text-xs": {"font-size": "0.75rem", "line-height": "1rem"},
    "text-sm": {"font-size": "0.875rem", "line-height": "1.25rem"},
    "text-lg": {"font-size": "1.125rem", "line-height": "1.75rem"},
    "leading-6": {"line-height": "1.5rem"},
    "font-medium": {"font-weight": "500"},
    "font-semibold": {"font-weight": "600"},
    "font-bold": {"font-weight": "700"},
    "text-left": {"text-align": "left"},
    "text-center": {"text-align": "center"},
    "text-right": {"text-align": "right"},
    "text-pretty": {"text-wrap": "pretty"},
    "underline": {"text-decoration": "underline"},
    "text-gray-400": {"color": "#9ca3af"},
    "text-gray-500": {"color": "#6b7280"},
    "text-gray-600": {"color": "#4b5563"},
    "text-blue-600": {"color": "#2563eb"},
    "text-red-600": {"color": "#dc2626"},
    # borders and backgrounds
    "border": {"border-width": "1px", "border-style": "solid"},
    "border-t": {"border-top": "1px solid #e5e7eb"},
    "border-b": {"border-bottom": "none"},
    "border-r": {"border-right": "1px solid #d1d5db"},
    "border-l-4": {"border-left-width": "4px", "border-left-style": "solid"},
    "border-gray-200": {"border-color": "#e5e7eb"},
    "border-gray-300": {"border-color": "#d1d5db", "border-width": "1px", "border-style": "solid"},
    "border-yellow-400": {"border-color": "#f59e0b", "border-width": "2px", "border-style": "solid"},
    "rounded": {"border-radius": "0.25rem"},
    "rounded-md": {"border-radius": "0.375rem"},
    "rounded-lg": {"border-radius": "0.5rem"},
    "bg-white": {"background-color": "#ffffff"},
    "bg-gray-50": {"background-color": "#f9fafb"},
    "bg-blue-50": {"background-color": "#eff6ff"},
    "bg-yellow-100": {"background-color": "#fef3c7"},
    # interaction-only classes become inert on paper
    "cursor-pointer": {"cursor": "default"},
    "transition-colors": {"transition-property": "none"},
    "object-contain": {"object-fit": "contain"},
}

IMAGE_RULE = {
    "max-width": "100%",
    "height": "auto",
    "page-break-inside": "avoid",
    "break-inside": "avoid",
    "display": "block",
}

PLAIN_FIELD_RULE = {
    "background-color": "transparent",
    "border": "none",
    "padding": "0",
    "margin": "0",
    "outline": "none",
    "box-shadow": "none",
}

# Highlight rules repeated under @media print so browsers keep the colours.
PRINT_COLOR_CLASSES = ("bg-yellow-100", "border-yellow-400", "text-red-600", "bg-blue-50", "bg-gray-50", "border-gray-300")

STATIC_PRINT_CSS = """
.space-y-2 > * + * { margin-top: 0.5rem !important; }
.space-y-3 > * + * { margin-top: 0.75rem !important; }
.space-y-6 > * + * { margin-top: 1.5rem !important; }
table { border-collapse: collapse !important; }
"""


def split_declarations(style: str) -> list[str]:
    """Split on ';' outside quotes and parentheses, so url("data:...;base64,...") stays whole."""
    chunks: list[str] = []
    current: list[str] = []
    depth = 0
    quote = ""
    for ch in style:
        if quote:
            if ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")" and depth:
            depth -= 1
        elif ch == ";" and not depth:
            chunks.append("".join(current))
            current = []
            continue
        current.append(ch)
    chunks.append("".join(current))
    return chunks


def parse_style(style: str | None) -> dict[str, str]:
    declarations: dict[str, str] = {}
    for chunk in split_declarations(style or ""):
        prop, sep, value = chunk.partition(":")
        prop = prop.strip().lower()
        value = value.strip()
        if sep and prop and value:
            declarations[prop] = value
    return declarations


def format_style(declarations: dict[str, str]) -> str:
    return "; ".join(f"{prop}: {value}" for prop, value in declarations.items())


def _apply(declarations: dict[str, str], rule: dict[str, str]) -> None:
    for prop, value in rule.items():
        declarations[prop] = value


def _plain_text_for(el) -> str:
    if el.name == "textarea":
        return el.get_text()
    input_type = str(el.get("type") or "text").lower()
    if input_type == "checkbox":
        return "☑" if el.has_attr("checked") else "☐"
    return str(el.get("value") or "")


def normalize_markup(markup: str) -> str:
    """Rewrite a markup snapshot into explicit, print-safe inline declarations."""
    soup = BeautifulSoup(markup or "", "html.parser")

    for el in soup.find_all(["input", "textarea"]):
        field = soup.new_tag("span")
        field.string = _plain_text_for(el)
        declarations = parse_style(el.get("style"))
        _apply(declarations, PLAIN_FIELD_RULE)
        field["style"] = format_style(declarations)
        if el.get("name"):
            field["data-field"] = el["name"]
        el.replace_with(field)

    for el in soup.find_all(True):
        declarations = parse_style(el.get("style"))
        for cls in el.get("class") or []:
            rule = NORMALIZATION_RULES.get(cls)
            if rule:
                _apply(declarations, rule)
        if el.name == "img":
            _apply(declarations, IMAGE_RULE)
        declarations["font-family"] = PRINT_FONT_FAMILY
        el["style"] = format_style(declarations)

    return soup.decode(formatter="minimal")


def _css_block(selector: str, rule: dict[str, str]) -> str:
    body = " ".join(f"{prop}: {value} !important;" for prop, value in rule.items())
    return f"{selector} {{ {body} }}"


def build_print_stylesheet() -> str:
    lines = [_css_block(f".{cls}", rule) for cls, rule in NORMALIZATION_RULES.items()]
    lines.append(_css_block("img", IMAGE_RULE))
    lines.append(_css_block('input[type="number"], input[type="text"]', PLAIN_FIELD_RULE))
    lines.append(STATIC_PRINT_CSS.strip())

    print_lines = [
        "body { -webkit-print-color-adjust: exact !important; print-color-adjust: exact !important; }",
    ]
    print_lines.extend(_css_block(f".{cls}", NORMALIZATION_RULES[cls]) for cls in PRINT_COLOR_CLASSES)
    print_lines.append(_css_block("img", IMAGE_RULE))
    lines.append("@media print {\n  " + "\n  ".join(print_lines) + "\n}")
    return "\n".join(lines)
