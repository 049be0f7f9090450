"""launchSettings.json lookup.

ASP.NET projects keep named launch profiles in Properties/launchSettings.json.
Each profile may carry an ``applicationUrl`` (one or more URLs separated by
``;``) and an optional ``launchUrl`` relative to it.
"""

import json
import re
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from aspnet_dev_agent.errors import LaunchSettingsError

LAUNCH_SETTINGS_PATH = Path("Properties") / "launchSettings.json"

WILDCARD_HOSTS = {"*", "+", "0.0.0.0", "[::]"}


class LaunchProfile(BaseModel):
    """A single named launch profile."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = ""
    command_name: str = Field("", alias="commandName")
    application_url: str | None = Field(None, alias="applicationUrl")
    launch_url: str | None = Field(None, alias="launchUrl")
    launch_browser: bool = Field(False, alias="launchBrowser")
    environment_variables: dict[str, str] = Field(default_factory=dict, alias="environmentVariables")

    def urls(self) -> list[str]:
        if not self.application_url:
            return []
        return [u.strip() for u in self.application_url.split(";") if u.strip()]

    def base_url(self, prefer_scheme: str = "http") -> str | None:
        """Pick one URL from ``applicationUrl``, preferring the given scheme."""
        urls = self.urls()
        if not urls:
            return None
        chosen = next((u for u in urls if urlsplit(u).scheme == prefer_scheme), urls[0])
        return _localize(chosen)


class LaunchSettings(BaseModel):
    model_config = ConfigDict(extra="ignore")

    profiles: dict[str, LaunchProfile] = Field(default_factory=dict)

    def model_post_init(self, __context) -> None:
        for name, profile in self.profiles.items():
            profile.name = name


def find_launch_settings(project_dir: Path) -> Path | None:
    """Return the launchSettings.json path for a project directory, if present."""
    path = Path(project_dir) / LAUNCH_SETTINGS_PATH
    if path.is_file():
        return path
    logger.debug(f"No launch settings at {path}")
    return None


def load_launch_settings(path: Path) -> LaunchSettings:
    """Load launchSettings.json, tolerating comments and trailing commas."""
    try:
        text = Path(path).read_text(encoding="utf-8-sig")
    except OSError as e:
        raise LaunchSettingsError(f"Cannot read {path}: {e}") from e

    try:
        data = json.loads(_strip_json_comments(text))
    except json.JSONDecodeError as e:
        raise LaunchSettingsError(f"Invalid JSON in {path}: {e.msg} (line {e.lineno})") from e

    if not isinstance(data, dict):
        raise LaunchSettingsError(f"{path} does not contain a JSON object")

    try:
        return LaunchSettings(**data)
    except ValidationError as e:
        raise LaunchSettingsError(f"Unexpected launch settings in {path}: {e}") from e


def select_profile(settings: LaunchSettings, name: str | None = None) -> LaunchProfile:
    """Select the named profile, or the first runnable one with a URL."""
    if name:
        if name not in settings.profiles:
            available = ", ".join(settings.profiles) or "none"
            raise LaunchSettingsError(f"Unknown launch profile '{name}' (available: {available})")
        return settings.profiles[name]

    with_url = [p for p in settings.profiles.values() if p.application_url]
    for profile in with_url:
        if profile.command_name == "Project":
            return profile
    if with_url:
        return with_url[0]
    raise LaunchSettingsError("No launch profile defines an applicationUrl")


def resolve_profile(project_dir: Path, profile: str | None = None) -> LaunchProfile | None:
    """Load and select a profile for the project; None when the file is absent."""
    path = find_launch_settings(project_dir)
    if path is None:
        if profile:
            raise LaunchSettingsError(f"Profile '{profile}' requested but {LAUNCH_SETTINGS_PATH} was not found")
        return None
    return select_profile(load_launch_settings(path), profile)


def resolve_base_url(
    project_dir: Path,
    profile: str | None = None,
    default_url: str = "http://localhost:5000",
    prefer_scheme: str = "http",
) -> str:
    """Base URL of the project's service, falling back to ``default_url``."""
    selected = resolve_profile(project_dir, profile)
    if selected is None:
        logger.info(f"Falling back to default address {default_url}")
        return default_url
    url = selected.base_url(prefer_scheme)
    logger.debug(f"Using profile '{selected.name}' -> {url}")
    return url or default_url


def _localize(url: str) -> str:
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.netloc.startswith("[::]"):
        host = "[::]"
    if host not in WILDCARD_HOSTS:
        return url.rstrip("/")
    netloc = "localhost" if parts.port is None else f"localhost:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, "", "")).rstrip("/")


_COMMENT_OR_STRING = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.DOTALL)
_TRAILING_COMMA = re.compile(r'"(?:\\.|[^"\\])*"|,(\s*[}\]])', re.DOTALL)


def _strip_json_comments(text: str) -> str:
    def drop_comment(m: re.Match) -> str:
        s = m.group(0)
        return s if s.startswith('"') else ""

    def drop_comma(m: re.Match) -> str:
        return m.group(1) if m.group(1) is not None else m.group(0)

    text = _COMMENT_OR_STRING.sub(drop_comment, text)
    return _TRAILING_COMMA.sub(drop_comma, text)
