from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from .client import HelpMeAIError
from .models import InstallationResult, MatchedSkill, Skill, Target

logger = logging.getLogger(__name__)

SKILL_FILE_EXTENSION = ".md"


class ContentSource(Protocol):
    def fetch_skill_content(self, skill: Skill) -> bytes:
        ...


def skill_filename(skill: Skill) -> str:
    return f"{skill.id}{SKILL_FILE_EXTENSION}"


def _write_bytes_atomic(path: Path, data: bytes) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_bytes(data)
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def write_skill(skill: Skill, content: bytes, target: Target) -> Path:
    """Write one skill document verbatim into one target, replacing any earlier copy."""
    target.path.mkdir(parents=True, exist_ok=True)
    dest = target.path / skill_filename(skill)
    _write_bytes_atomic(dest, content)
    return dest


class SkillInstaller:
    def __init__(self, source: ContentSource) -> None:
        self.source = source

    def install_one(self, match: MatchedSkill, targets: list[Target]) -> InstallationResult:
        skill = match.skill
        try:
            content = self.source.fetch_skill_content(skill)
        except HelpMeAIError as e:
            logger.info("Failed to fetch %s: %s", skill.id, e)
            return InstallationResult(skill_id=skill.id, succeeded=False, error=str(e))

        written: list[Path] = []
        write_errors: list[str] = []
        for target in targets:
            try:
                written.append(write_skill(skill, content, target))
            except OSError as e:
                logger.info("Failed to write %s to %s: %s", skill.id, target.path, e)
                write_errors.append(f"{target.path}: {e}")
                continue
            logger.debug("Wrote %s", written[-1])

        return InstallationResult(
            skill_id=skill.id,
            succeeded=True,
            written_paths=tuple(written),
            write_errors=tuple(write_errors),
        )

    def install(self, selected: list[MatchedSkill], targets: list[Target]) -> list[InstallationResult]:
        """
        Fetch each skill once and write it to every target, in selection order.

        A fetch failure marks that skill failed and moves on; a write failure
        is recorded against the skill without stopping the other targets. A
        skill counts as succeeded whenever its content was fetched.
        """
        return [self.install_one(match, targets) for match in selected]
