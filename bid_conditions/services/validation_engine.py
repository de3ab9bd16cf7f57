from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Any

IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)
IMAGE_EXTENSIONS = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def _result(errors: list[str]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors)


def validate_required_inputs(payload: dict[str, Any], labels: dict[str, str]) -> list[str]:
    """Return one message per blank field, in the order the labels are given."""
    messages: list[str] = []
    for key, label in labels.items():
        if not str(payload.get(key) or "").strip():
            messages.append(f"{label} is required.")
    return messages


def validate_export_data(data: Any) -> ValidationResult:
    # Conditions may be empty; only the project identity is mandatory.
    project = data.project_info
    errors = validate_required_inputs({"name": getattr(project, "name", "")}, {"name": "Project name"})
    return _result(errors)


def validate_clause_text(text: str, action: str = "analyze") -> ValidationResult:
    if not (text or "").strip():
        return _result([f"Enter the clause text before you {action}."])
    return _result([])


def detect_image_type(data: bytes) -> str | None:
    for signature, mime in IMAGE_SIGNATURES:
        if data.startswith(signature):
            return mime
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def validate_image_upload(
    file_name: str,
    data: bytes,
    max_bytes: int,
    content_type: str | None = None,
) -> ValidationResult:
    errors: list[str] = []
    declared = (content_type or "").strip().lower() or IMAGE_EXTENSIONS.get(PurePath(file_name).suffix.lower())
    if not declared or not declared.startswith("image/"):
        errors.append(f"{file_name}: only image files can be attached.")
    elif detect_image_type(data) is None:
        errors.append(f"{file_name}: file content is not a supported image (PNG, JPEG, GIF, WEBP).")

    if len(data) > max_bytes:
        errors.append(f"{file_name}: file is larger than {format_file_size(max_bytes)}.")
    return _result(errors)
