"""Icon directory scanning, startup repair and live watching."""

from .icon_watcher import FanOutReport, IconWatcherController
from .ports import WorkspaceFiles
from .read_icon_service import ReadIconService

__all__ = ["FanOutReport", "IconWatcherController", "ReadIconService", "WorkspaceFiles"]
