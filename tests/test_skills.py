import pytest

from aspnet_dev_agent.errors import SkillFormatError, SkillNotFound
from aspnet_dev_agent.skills.loader import (
    SEPARATOR,
    discover_skills,
    get_skill,
    load_skill_content,
    parse_front_matter,
)

BUNDLED = ["csharp-conventions", "http-requests", "project-architecture", "service-auto-start", "service-discovery"]


def _make_skill(root, name, body="# Title\n", description="Does things"):
    skill_dir = root / name
    skill_dir.mkdir(parents=True)
    (skill_dir / "SKILL.md").write_text(
        f"---\nname: {name}\ndescription: {description}\n---\n\n{body}", encoding="utf-8"
    )
    return skill_dir


class TestParseFrontMatter:
    def test_splits_meta_and_body(self):
        meta, body = parse_front_matter("---\nname: x\ndescription: y\n---\n\n# Body\n")
        assert meta == {"name": "x", "description": "y"}
        assert body == "# Body\n"

    def test_no_front_matter(self):
        assert parse_front_matter("# Just text\n") == ({}, "# Just text\n")

    def test_unclosed(self):
        with pytest.raises(SkillFormatError, match="not closed"):
            parse_front_matter("---\nname: x\n# Body\n")

    def test_not_a_mapping(self):
        with pytest.raises(SkillFormatError, match="mapping"):
            parse_front_matter("---\n- a\n- b\n---\nbody")


class TestDiscoverSkills:
    def test_bundled_skills(self):
        names = [s.name for s in discover_skills()]
        assert names == BUNDLED

    def test_bundled_skills_have_descriptions(self):
        for skill in discover_skills():
            assert skill.description, skill.name

    def test_references_listed(self):
        skill = get_skill("csharp-conventions")
        assert skill.references == ["error-handling.md", "naming.md"]

    def test_custom_root(self, tmp_path):
        _make_skill(tmp_path, "b-skill")
        _make_skill(tmp_path, "a-skill")
        (tmp_path / "not-a-skill").mkdir()
        assert [s.name for s in discover_skills(tmp_path)] == ["a-skill", "b-skill"]

    def test_unknown_skill(self):
        with pytest.raises(SkillNotFound) as exc_info:
            get_skill("rust-conventions")
        assert "csharp-conventions" in str(exc_info.value)


class TestLoadSkillContent:
    def test_load_single_skill_without_front_matter(self):
        content = load_skill_content(["service-discovery"])
        assert content.startswith("# Service discovery")
        assert "/openapi/v1.json" in content

    def test_joins_with_separator(self, tmp_path):
        _make_skill(tmp_path, "one", body="first\n")
        _make_skill(tmp_path, "two", body="second\n")
        assert load_skill_content(["one", "two"], root=tmp_path) == "first" + SEPARATOR + "second"

    def test_include_references(self):
        content = load_skill_content(["csharp-conventions"], include_references=True)
        assert "csharp-conventions/references/naming.md" in content
        assert "Generic type parameters" in content
