"""Pull request data models."""

from dataclasses import dataclass, field
from typing import Any


class FileStatus:
    """GitHub file change statuses the pipeline distinguishes."""

    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class FileChange:
    """A single file in a pull request's change set."""

    filename: str
    status: str  # "added", "modified", "removed" (other GitHub values fail status checks)
    patch: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FileChange":
        """Build from a GitHub ``pulls/{n}/files`` item (or the PR_FILES env payload)."""
        return cls(
            filename=data["filename"],
            status=data.get("status", FileStatus.MODIFIED),
            patch=data.get("patch"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"filename": self.filename, "status": self.status}
        if self.patch is not None:
            data["patch"] = self.patch
        return data


@dataclass(frozen=True)
class PullRequestContext:
    """Normalized, immutable description of the pull request under validation."""

    title: str
    body: str
    number: str
    author: str
    branch_name: str
    head_commit: str
    files: tuple[FileChange, ...] = field(default_factory=tuple)

    @property
    def single_file(self) -> FileChange | None:
        return self.files[0] if len(self.files) == 1 else None
