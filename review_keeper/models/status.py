"""Change-tracking status models"""
from dataclasses import dataclass, field
from typing import Any, List

from review_keeper.constants import TASKS_REQUIREMENT
from review_keeper.exceptions import MalformedOutputError


def _string_list(value: Any, key: str, source: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MalformedOutputError(source, f"'{key}' must be a list of strings")
    return list(value)


@dataclass
class Artifact:
    """An item produced while working on a change."""
    id: str
    status: str
    output_path: str = ""
    missing_deps: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any, source: str = "status") -> "Artifact":
        if not isinstance(data, dict):
            raise MalformedOutputError(source, "artifact must be an object")
        artifact_id = data.get("id")
        status = data.get("status")
        if not isinstance(artifact_id, str) or not isinstance(status, str):
            raise MalformedOutputError(source, "artifact requires string 'id' and 'status'")
        output_path = data.get("outputPath") or ""
        if not isinstance(output_path, str):
            raise MalformedOutputError(source, "artifact 'outputPath' must be a string")
        return cls(
            id=artifact_id,
            status=status,
            output_path=output_path,
            missing_deps=_string_list(data.get("missingDeps"), "missingDeps", source),
        )


@dataclass
class Status:
    """Snapshot of a worktree's change-tracking state.

    An empty change_name means the tool ran and found no active change; a
    missing Status (None) means derivation failed or the tool is absent.
    """
    change_name: str = ""
    is_complete: bool = False
    apply_requires: List[str] = field(default_factory=list)
    artifacts: List[Artifact] = field(default_factory=list)

    @property
    def has_change(self) -> bool:
        return bool(self.change_name)

    @property
    def ready_for_apply(self) -> bool:
        return not self.apply_requires

    @property
    def needs_task_apply(self) -> bool:
        """True when "tasks" is the one and only outstanding requirement."""
        return not self.is_complete and self.apply_requires == [TASKS_REQUIREMENT]

    @classmethod
    def from_dict(cls, data: Any, source: str = "status") -> "Status":
        """Build a Status from the change tool's `status --json` payload."""
        if not isinstance(data, dict):
            raise MalformedOutputError(source, "expected a JSON object")

        change_name = data.get("changeName", "")
        if change_name is None:
            change_name = ""
        if not isinstance(change_name, str):
            raise MalformedOutputError(source, "'changeName' must be a string")

        is_complete = data.get("isComplete", False)
        if not isinstance(is_complete, bool):
            raise MalformedOutputError(source, "'isComplete' must be a boolean")

        artifacts_data = data.get("artifacts") or []
        if not isinstance(artifacts_data, list):
            raise MalformedOutputError(source, "'artifacts' must be a list")

        return cls(
            change_name=change_name,
            is_complete=is_complete,
            apply_requires=_string_list(data.get("applyRequires"), "applyRequires", source),
            artifacts=[Artifact.from_dict(a, source) for a in artifacts_data],
        )


def parse_change_names(data: Any, source: str = "list") -> List[str]:
    """Extract change names, in listing order, from `list --json` output."""
    if not isinstance(data, dict):
        raise MalformedOutputError(source, "expected a JSON object")
    changes = data.get("changes")
    if changes is None:
        return []
    if not isinstance(changes, list):
        raise MalformedOutputError(source, "'changes' must be a list")

    names = []
    for change in changes:
        if not isinstance(change, dict) or not isinstance(change.get("name"), str):
            raise MalformedOutputError(source, "each change requires a string 'name'")
        names.append(change["name"])
    return names
