"""Skill loader: finds the bundled skill documents and joins them into agent context."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from aspnet_dev_agent.errors import SkillFormatError, SkillNotFound

SKILLS_DIR = Path(__file__).parent

SKILL_FILE = "SKILL.md"
REFERENCES_DIR = "references"
SEPARATOR = "\n\n---\n\n"


class Skill(BaseModel):
    name: str
    description: str = ""
    path: Path
    body: str
    references: list[str] = Field(default_factory=list)

    def reference_text(self, name: str) -> str:
        return (self.path / REFERENCES_DIR / name).read_text(encoding="utf-8")


def parse_front_matter(text: str) -> tuple[dict, str]:
    """Split ``---``-delimited YAML front matter from a Markdown body."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != "---":
        return {}, text

    for i in range(1, len(lines)):
        if lines[i].strip() == "---":
            try:
                meta = yaml.safe_load("".join(lines[1:i])) or {}
            except yaml.YAMLError as e:
                raise SkillFormatError(f"Invalid front matter: {e}") from e
            if not isinstance(meta, dict):
                raise SkillFormatError("Front matter must be a YAML mapping")
            return meta, "".join(lines[i + 1:]).lstrip("\n")

    raise SkillFormatError("Front matter is not closed with '---'")


def load_skill(skill_dir: Path) -> Skill:
    skill_dir = Path(skill_dir)
    text = (skill_dir / SKILL_FILE).read_text(encoding="utf-8")
    try:
        meta, body = parse_front_matter(text)
    except SkillFormatError as e:
        raise SkillFormatError(f"{skill_dir / SKILL_FILE}: {e}") from e

    ref_dir = skill_dir / REFERENCES_DIR
    references = sorted(
        str(p.relative_to(ref_dir)).replace("\\", "/") for p in ref_dir.rglob("*") if p.is_file()
    ) if ref_dir.is_dir() else []

    return Skill(
        name=str(meta.get("name") or skill_dir.name),
        description=str(meta.get("description") or "").strip(),
        path=skill_dir,
        body=body,
        references=references,
    )


def discover_skills(root: Path | None = None) -> list[Skill]:
    """Every directory under ``root`` that holds a SKILL.md, sorted by name."""
    root = Path(root) if root else SKILLS_DIR
    skills = [load_skill(p.parent) for p in root.glob(f"*/{SKILL_FILE}")]
    if (root / SKILL_FILE).is_file():
        skills.append(load_skill(root))
    return sorted(skills, key=lambda s: s.name)


def get_skill(name: str, root: Path | None = None) -> Skill:
    skills = discover_skills(root)
    for skill in skills:
        if skill.name == name or skill.path.name == name:
            return skill
    raise SkillNotFound(name, [s.name for s in skills])


def load_skill_content(names: list[str], root: Path | None = None, include_references: bool = False) -> str:
    """Load and concatenate the given skills, optionally with their reference files."""
    parts = []
    for name in names:
        skill = get_skill(name, root)
        parts.append(skill.body.strip())
        if include_references:
            for ref in skill.references:
                parts.append(f"<!-- {skill.name}/{REFERENCES_DIR}/{ref} -->\n{skill.reference_text(ref).strip()}")
    return SEPARATOR.join(parts)
