"""Editor sessions, the synchronization coordinator and host wiring."""

from .coordinator import SessionCoordinator, SessionState
from .editor_provider import EditorBinding, MessageRenderSurface, StoryEditorProvider
from .editor_session import EditorSession
from .messages import (
    Command,
    DisplayDomainStoryCommand,
    InitializeWebviewCommand,
    SyncDocumentCommand,
    parse_command,
)
from .ports import DocumentPort, RenderSurfacePort

__all__ = [
    "Command",
    "DisplayDomainStoryCommand",
    "DocumentPort",
    "EditorBinding",
    "EditorSession",
    "InitializeWebviewCommand",
    "MessageRenderSurface",
    "RenderSurfacePort",
    "SessionCoordinator",
    "SessionState",
    "StoryEditorProvider",
    "SyncDocumentCommand",
    "parse_command",
]
