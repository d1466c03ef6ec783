from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class Dependency:
    name: str
    version: str
    is_dev: bool = False


@dataclass(frozen=True)
class SkillRequirement:
    library_name: str
    version_range: str


@dataclass(frozen=True)
class Skill:
    id: str
    name: str
    description: str
    requirement: SkillRequirement
    content_locator: str
    author: str | None = None


@dataclass(frozen=True)
class SkillIndex:
    version: str
    skills: tuple[Skill, ...]


@dataclass(frozen=True)
class MatchedSkill:
    skill: Skill
    dependency: Dependency

    @property
    def label(self) -> str:
        text = f"{self.skill.name} ({self.dependency.name}@{self.dependency.version})"
        if self.skill.author:
            text = f"{self.skill.name} - by {self.skill.author} ({self.dependency.name}@{self.dependency.version})"
        return text


class TargetKind(Enum):
    PRIMARY_ASSISTANT = "cursor"
    SECONDARY_ASSISTANT = "claude"


@dataclass(frozen=True)
class Target:
    kind: TargetKind
    path: Path
    preexisting: bool


@dataclass(frozen=True)
class InstallationResult:
    skill_id: str
    succeeded: bool
    written_paths: tuple[Path, ...] = ()
    error: str | None = None
    write_errors: tuple[str, ...] = ()

    @property
    def complete(self) -> bool:
        """True when the fetch succeeded and every target write landed."""
        return self.succeeded and not self.write_errors
