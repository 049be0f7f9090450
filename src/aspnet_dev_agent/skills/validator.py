"""Checks that skill documents are correct as documentation.

Relative links must resolve, and code fences in languages we can parse
(JSON, YAML, Python) must parse.
"""

import ast
import json
import re
from pathlib import Path

import yaml

from aspnet_dev_agent.errors import SkillFormatError
from aspnet_dev_agent.skills.loader import SKILL_FILE, parse_front_matter

_LINK = re.compile(r"(?<!!)\[[^\]]*\]\(([^)\s]+)(?:\s+\"[^\"]*\")?\)|!\[[^\]]*\]\(([^)\s]+)\)")
_FENCE = re.compile(r"^(\s*)(```+|~~~+)\s*([\w+-]*)")
_EXTERNAL = ("http://", "https://", "mailto:", "#")

FENCE_PARSERS = {
    "json": "json",
    "yaml": "yaml",
    "yml": "yaml",
    "python": "python",
    "py": "python",
}


def markdown_files(skill_dir: Path) -> list[Path]:
    return sorted(p for p in Path(skill_dir).rglob("*.md") if p.is_file())


def check_links(skill_dir: Path) -> dict[str, str]:
    """Report relative links that point at missing files.

    Returns dict of {"file:line": error_message}.
    """
    skill_dir = Path(skill_dir)
    errors = {}
    for md in markdown_files(skill_dir):
        in_fence = False
        for lineno, line in enumerate(md.read_text(encoding="utf-8").splitlines(), start=1):
            if _FENCE.match(line):
                in_fence = not in_fence
                continue
            if in_fence:
                continue
            for m in _LINK.finditer(line):
                target = m.group(1) or m.group(2)
                if target.startswith(_EXTERNAL):
                    continue
                target = target.split("#", 1)[0]
                if not (md.parent / target).exists():
                    errors[f"{_rel(md, skill_dir)}:{lineno}"] = f"Broken link: {target}"
    return errors


def check_code_fences(skill_dir: Path) -> dict[str, str]:
    """Check fenced blocks in JSON, YAML and Python for syntax errors.

    Returns dict of {"file:line": error_message}.
    """
    skill_dir = Path(skill_dir)
    errors = {}
    for md in markdown_files(skill_dir):
        for lineno, lang, code, closed in _iter_fences(md.read_text(encoding="utf-8")):
            key = f"{_rel(md, skill_dir)}:{lineno}"
            if not closed:
                errors[key] = "Unterminated code fence"
                continue
            error = validate_snippet(lang, code)
            if error:
                errors[key] = error
    return errors


def check_front_matter(skill_dir: Path) -> dict[str, str]:
    skill_dir = Path(skill_dir)
    skill_file = skill_dir / SKILL_FILE
    if not skill_file.is_file():
        return {SKILL_FILE: "Missing SKILL.md"}
    try:
        meta, _ = parse_front_matter(skill_file.read_text(encoding="utf-8"))
    except SkillFormatError as e:
        return {SKILL_FILE: str(e)}

    errors = {}
    for field in ("name", "description"):
        if not meta.get(field):
            errors[f"{SKILL_FILE}:{field}"] = f"Front matter is missing '{field}'"
    if meta.get("name") and meta["name"] != skill_dir.name:
        errors[f"{SKILL_FILE}:name"] = f"Name '{meta['name']}' does not match directory '{skill_dir.name}'"
    return errors


def validate_snippet(lang: str, code: str) -> str | None:
    parser = FENCE_PARSERS.get(lang.lower())
    if parser == "json":
        try:
            json.loads(code)
        except json.JSONDecodeError as e:
            return f"JSONDecodeError: {e.msg} (line {e.lineno})"
    elif parser == "yaml":
        try:
            list(yaml.safe_load_all(code))
        except yaml.YAMLError as e:
            return f"YAMLError: {e}"
    elif parser == "python":
        try:
            ast.parse(code)
        except SyntaxError as e:
            return f"SyntaxError: {e.msg} (line {e.lineno})"
    return None


def validate_skill(skill_dir: Path) -> dict[str, str]:
    """Run all checks on one skill directory."""
    errors = {}
    errors.update(check_front_matter(skill_dir))
    errors.update(check_links(skill_dir))
    errors.update(check_code_fences(skill_dir))
    return errors


def _iter_fences(text: str):
    """Yield (line, language, code, closed) for each fenced block."""
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        m = _FENCE.match(lines[i])
        if not m:
            i += 1
            continue
        marker, lang, start = m.group(2), m.group(3), i + 1
        body = []
        i += 1
        closed = False
        while i < len(lines):
            if lines[i].strip().startswith(marker[0] * len(marker)) and not lines[i].strip().strip(marker[0]):
                closed = True
                break
            body.append(lines[i])
            i += 1
        yield start, lang, "\n".join(body), closed
        i += 1


def _rel(path: Path, root: Path) -> str:
    return str(path.relative_to(root)).replace("\\", "/")
