"""Local filesystem adapters for the document, workspace and watch ports."""

from .watch_observer import WatchObserver
from .workspace_files import FileDocumentPort, LocalWorkspaceFiles

__all__ = ["FileDocumentPort", "LocalWorkspaceFiles", "WatchObserver"]
