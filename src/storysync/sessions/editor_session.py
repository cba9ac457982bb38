"""Editor session aggregate."""

from __future__ import annotations

from ..events import ContentUpdated

__all__ = ["EditorSession"]


class EditorSession:
    """Holds the latest content seen for one open editor.

    Content only changes through :meth:`apply_local_change` (the text host
    edited the document) and :meth:`apply_remote_sync` (the render surface sent
    new content); both report the mutation as a :class:`ContentUpdated` event.
    """

    __slots__ = ("_id", "_content")

    def __init__(self, document_id: str, content: str) -> None:
        self._id = document_id
        self._content = content

    @property
    def id(self) -> str:
        return self._id

    def snapshot(self) -> str:
        return self._content

    def apply_local_change(self, text: str) -> ContentUpdated:
        self._content = text
        return ContentUpdated(document_id=self._id, origin="local", text=text)

    def apply_remote_sync(self, text: str) -> ContentUpdated:
        self._content = text
        return ContentUpdated(document_id=self._id, origin="remote", text=text)

    def __repr__(self) -> str:
        return f"EditorSession(id={self._id!r}, length={len(self._content)})"
