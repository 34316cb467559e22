"""boardsync: priority-ordered issue board with optimistic edits, undo and polling sync."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("boardsync")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from boardsync.core import Issue
from boardsync.session import BoardSession

__all__ = ["BoardSession", "Issue", "__version__"]
