"""Change events and the pending batch they reduce into."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SourceFileChanged:
    """An F# source file of the project changed."""

    path: str


@dataclass(frozen=True)
class ProjectFileChanged:
    """The project file or a dependent file (props, referenced project) changed."""

    path: str


ChangeEvent = SourceFileChanged | ProjectFileChanged


@dataclass
class PendingChangeBatch:
    project_changed: bool = False
    changed_project_files: set[str] = field(default_factory=set)
    changed_source_files: set[str] = field(default_factory=set)

    def add(self, event: ChangeEvent) -> None:
        if isinstance(event, ProjectFileChanged):
            self.project_changed = True
            self.changed_project_files.add(event.path)
        else:
            self.changed_source_files.add(event.path)

    def is_empty(self) -> bool:
        return not self.project_changed and not self.changed_source_files

    @property
    def total_count(self) -> int:
        return len(self.changed_project_files) + len(self.changed_source_files)
