"""Repository node abstraction.

Fetching one path yields exactly one node: a file or a directory.
Symlinks, submodules and other non-tree content types are returned as
files; their remote type is kept in the file metadata.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def normalize_path(path: str) -> str:
    """Strip surrounding slashes; the repository root is ``""``."""
    return (path or "").strip("/")


class RepositoryNode(ABC):
    """Abstract base class for repository nodes.

    Defines the minimal interface the walker needs to classify a
    fetch result.
    """

    path: str

    @abstractmethod
    def is_leaf(self) -> bool:
        """Check if this node is a file (has no children).

        Returns:
            True for files, False for directories
        """
        pass

    def identifier(self) -> str:
        """Get unique identifier for this node.

        Returns:
            Repository-relative path
        """
        return self.path

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ChildEntry:
    """One entry of a directory listing, in the order the fetcher returned it."""

    path: str
    name: str
    type: str = "file"
    sha: Optional[str] = None
    size: Optional[int] = None


@dataclass
class FileNode(RepositoryNode):
    """A file (or opaque non-tree entry) in the repository."""

    path: str
    name: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            self.name = self.path.rsplit("/", 1)[-1]

    def is_leaf(self) -> bool:
        return True

    @property
    def size(self) -> Optional[int]:
        return self.metadata.get("size")

    @property
    def sha(self) -> Optional[str]:
        return self.metadata.get("sha")


@dataclass
class DirectoryNode(RepositoryNode):
    """A directory and its ordered child entries."""

    path: str
    children: List[ChildEntry] = field(default_factory=list)

    def is_leaf(self) -> bool:
        return False
