from __future__ import annotations

from typing import Iterable

from .models import Dependency, MatchedSkill, Skill, SkillIndex
from .versions import matches


def find_matching_dependency(skill: Skill, dependencies: Iterable[Dependency]) -> Dependency | None:
    requirement = skill.requirement
    for dep in dependencies:
        if dep.name != requirement.library_name:
            continue
        if matches(dep.version, requirement.version_range):
            return dep
    return None


def match_skills(dependencies: list[Dependency], index: SkillIndex) -> list[MatchedSkill]:
    """
    Pair each skill with the first dependency that satisfies it.

    Output follows index order, so it is stable regardless of how the
    manifest orders its dependencies. Unmatched skills are simply omitted.
    """
    deps = list(dependencies)
    matched: list[MatchedSkill] = []
    for skill in index.skills:
        dep = find_matching_dependency(skill, deps)
        if dep is not None:
            matched.append(MatchedSkill(skill=skill, dependency=dep))
    return matched
