import unittest

from helpmeai.matcher import match_skills
from helpmeai.models import Dependency, Skill, SkillIndex, SkillRequirement


def _skill(skill_id: str, library: str, version_range: str) -> Skill:
    return Skill(
        id=skill_id,
        name=skill_id.replace("-", " ").title(),
        description=f"Guidance for {library}",
        requirement=SkillRequirement(library_name=library, version_range=version_range),
        content_locator=f"skills/{skill_id}.md",
    )


class TestMatchSkills(unittest.TestCase):
    def test_only_satisfying_range_matches(self) -> None:
        index = SkillIndex(
            version="1.0.0",
            skills=(
                _skill("react-query-v4", "@tanstack/react-query", ">=4.0.0 <5.0.0"),
                _skill("react-query-v5", "@tanstack/react-query", ">=5.0.0"),
            ),
        )
        deps = [Dependency(name="@tanstack/react-query", version="5.2.0")]

        matched = match_skills(deps, index)

        self.assertEqual([m.skill.id for m in matched], ["react-query-v5"])
        self.assertEqual(matched[0].dependency, deps[0])

    def test_output_follows_index_order_not_dependency_order(self) -> None:
        index = SkillIndex(
            version="1.0.0",
            skills=(_skill("zod", "zod", "*"), _skill("react", "react", "^18.0.0"), _skill("jest", "jest", "*")),
        )
        deps = [
            Dependency(name="jest", version="29.7.0", is_dev=True),
            Dependency(name="react", version="18.2.0"),
            Dependency(name="zod", version="3.22.4"),
        ]

        forward = match_skills(deps, index)
        backward = match_skills(list(reversed(deps)), index)

        self.assertEqual([m.skill.id for m in forward], ["zod", "react", "jest"])
        self.assertEqual([m.skill.id for m in backward], ["zod", "react", "jest"])

    def test_first_satisfying_dependency_wins(self) -> None:
        index = SkillIndex(version="1.0.0", skills=(_skill("react-18", "react", "^18.0.0"),))
        deps = [
            Dependency(name="react", version="17.0.2"),
            Dependency(name="react", version="18.1.0"),
            Dependency(name="react", version="18.2.0", is_dev=True),
        ]

        matched = match_skills(deps, index)

        self.assertEqual(len(matched), 1)
        self.assertEqual(matched[0].dependency.version, "18.1.0")

    def test_one_dependency_can_satisfy_several_skills(self) -> None:
        index = SkillIndex(
            version="1.0.0",
            skills=(_skill("next-basics", "next", "*"), _skill("next-app-router", "next", ">=13.4.0")),
        )
        deps = [Dependency(name="next", version="14.1.0")]

        self.assertEqual([m.skill.id for m in match_skills(deps, index)], ["next-basics", "next-app-router"])

    def test_unmatched_skills_and_bad_versions_are_skipped(self) -> None:
        index = SkillIndex(
            version="1.0.0",
            skills=(_skill("vue", "vue", "^3.0.0"), _skill("react", "react", ">=18.0.0")),
        )
        deps = [Dependency(name="react", version="latest")]

        self.assertEqual(match_skills(deps, index), [])

    def test_is_idempotent(self) -> None:
        index = SkillIndex(
            version="1.0.0",
            skills=(_skill("a", "lib-a", "^1.0.0"), _skill("b", "lib-b", "*"), _skill("c", "lib-a", "~1.2.0")),
        )
        deps = [Dependency(name="lib-b", version="0.0.1"), Dependency(name="lib-a", version="^1.2.3")]

        self.assertEqual(match_skills(deps, index), match_skills(deps, index))
