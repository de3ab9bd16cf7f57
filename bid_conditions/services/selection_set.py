from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Iterator, Sequence

from .catalog_parser import ClauseRecord, clause_key
from .validation_engine import IMAGE_EXTENSIONS, detect_image_type, validate_image_upload

DEFAULT_MAX_IMAGE_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class UploadedFile:
    file_name: str
    data: bytes = field(repr=False)
    content_type: str | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> "UploadedFile":
        src = Path(path)
        return cls(
            file_name=src.name,
            data=src.read_bytes(),
            content_type=IMAGE_EXTENSIONS.get(src.suffix.lower()),
        )


@dataclass(frozen=True)
class ImageAttachment:
    id: str
    clause_key: tuple[str, str]
    file_name: str
    content_type: str
    data: bytes = field(repr=False)
    preview: str = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SelectedClause:
    """A selected clause annotated with the images attached to it."""

    clause: ClauseRecord
    images: tuple[ImageAttachment, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return self.clause.key

    @property
    def text(self) -> str:
        return self.clause.text

    @property
    def major_category(self) -> str:
        return self.clause.major_category

    @property
    def sub_category(self) -> str:
        return self.clause.sub_category

    @property
    def is_important(self) -> bool:
        return self.clause.is_important

    @property
    def forced(self) -> bool:
        return self.clause.forced


@dataclass
class AttachResult:
    attached: list[ImageAttachment] = field(default_factory=list)
    rejected: list[str] = field(default_factory=list)


def create_image_preview(upload: UploadedFile) -> tuple[str, str]:
    """Return (content_type, data URL) for an uploaded image."""
    mime = detect_image_type(upload.data)
    if mime is None:
        raise ValueError(f"{upload.file_name}: image could not be decoded.")
    encoded = base64.b64encode(upload.data).decode("ascii")
    return mime, f"data:{mime};base64,{encoded}"


SelectionListener = Callable[[list[SelectedClause]], Any]


class SelectionSet:
    """
    Ordered, duplicate-free set of chosen clauses with per-clause images.

    Every mutation notifies subscribers synchronously with the annotated
    selection, so the assembled document never lags behind user actions.
    """

    def __init__(
        self,
        max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES,
        on_event: Callable[[str], Any] | None = None,
    ):
        self.max_image_bytes = max_image_bytes
        self._items: list[ClauseRecord] = []
        self._images: dict[tuple[str, str], list[ImageAttachment]] = {}
        self._listeners: list[SelectionListener] = []
        self._on_event = on_event

    # -- queries ---------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[ClauseRecord]:
        return iter(list(self._items))

    def __contains__(self, clause: object) -> bool:
        return isinstance(clause, ClauseRecord) and self.contains(clause)

    @property
    def items(self) -> list[ClauseRecord]:
        return list(self._items)

    def keys(self) -> list[tuple[str, str]]:
        return [clause_key(c) for c in self._items]

    def contains(self, clause: ClauseRecord) -> bool:
        key = clause_key(clause)
        return any(clause_key(c) == key for c in self._items)

    def images_for(self, clause: ClauseRecord) -> list[ImageAttachment]:
        return list(self._images.get(clause_key(clause), []))

    def annotated(self) -> list[SelectedClause]:
        return [
            SelectedClause(clause=c, images=tuple(self._images.get(clause_key(c), [])))
            for c in self._items
        ]

    # -- subscriptions ---------------------------------------------------------

    def subscribe(self, listener: SelectionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self.annotated())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.annotated()
        for listener in list(self._listeners):
            listener(snapshot)

    def _event(self, msg: str) -> None:
        if self._on_event:
            self._on_event(msg)

    # -- mutations -------------------------------------------------------------

    def _drop(self, keys: set[tuple[str, str]]) -> None:
        self._items = [c for c in self._items if clause_key(c) not in keys]
        for key in keys:
            self._images.pop(key, None)

    def add(self, clause: ClauseRecord) -> bool:
        if self.contains(clause):
            return False
        self._items.append(clause)
        self._event(f"SELECTION action=add size={len(self._items)}")
        self._notify()
        return True

    def remove_one(self, clause: ClauseRecord) -> bool:
        if not self.contains(clause):
            return False
        self._drop({clause_key(clause)})
        self._event(f"SELECTION action=remove size={len(self._items)}")
        self._notify()
        return True

    def toggle(self, clause: ClauseRecord) -> bool:
        """Add the clause if absent, remove it if present. Returns the new membership."""
        if self.contains(clause):
            self.remove_one(clause)
            return False
        self.add(clause)
        return True

    def remove_all(self) -> None:
        self._items = []
        self._images = {}
        self._event("SELECTION action=clear size=0")
        self._notify()

    def select_all(self, view: Sequence[ClauseRecord]) -> bool:
        """
        Toggle-all over the visible view only.

        When every clause of the view is already selected, exactly those are
        deselected; otherwise the missing ones are appended in view order.
        Returns True when the view ends up selected.
        """
        if not view:
            return False
        if all(self.contains(c) for c in view):
            self.deselect_all(view)
            return False

        for clause in view:
            if not self.contains(clause):
                self._items.append(clause)
        self._event(f"SELECTION action=select_all view={len(view)} size={len(self._items)}")
        self._notify()
        return True

    def deselect_all(self, view: Sequence[ClauseRecord] | None = None) -> None:
        if view is None:
            self.remove_all()
            return
        self._drop({clause_key(c) for c in view})
        self._event(f"SELECTION action=deselect_all view={len(view)} size={len(self._items)}")
        self._notify()

    def attach_images(self, clause: ClauseRecord, files: Iterable[UploadedFile]) -> AttachResult:
        """Validate and attach each file independently; a bad file never aborts the batch."""
        key = clause_key(clause)
        result = AttachResult()
        for upload in files:
            check = validate_image_upload(
                upload.file_name,
                upload.data,
                self.max_image_bytes,
                content_type=upload.content_type,
            )
            if not check.is_valid:
                result.rejected.extend(check.errors)
                continue
            try:
                mime, preview = create_image_preview(upload)
            except ValueError as exc:
                self._event(f"IMAGE status=failed file={upload.file_name} error={exc}")
                result.rejected.append(str(exc))
                continue
            result.attached.append(
                ImageAttachment(
                    id=uuid.uuid4().hex,
                    clause_key=key,
                    file_name=upload.file_name,
                    content_type=mime,
                    data=upload.data,
                    preview=preview,
                )
            )

        if result.attached:
            self._images.setdefault(key, []).extend(result.attached)
            self._event(f"IMAGE status=attached count={len(result.attached)} rejected={len(result.rejected)}")
            self._notify()
        return result

    def detach_image(self, clause: ClauseRecord, image_id: str) -> bool:
        key = clause_key(clause)
        current = self._images.get(key, [])
        remaining = [img for img in current if img.id != image_id]
        if len(remaining) == len(current):
            return False
        if remaining:
            self._images[key] = remaining
        else:
            self._images.pop(key, None)
        self._notify()
        return True
