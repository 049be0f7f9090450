"""Exceptions raised by aspnet-dev-agent.

A failed health probe is not an error; everything else that stops a
workflow derives from AgentError so the CLI can report it in one line.
"""


class AgentError(Exception):
    """Base class for all errors reported to the user."""


class SkillNotFound(AgentError):
    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        hint = ", ".join(available) if available else "none"
        super().__init__(f"Unknown skill '{name}' (available: {hint})")


class SkillFormatError(AgentError):
    """SKILL.md front matter is missing or malformed."""


class LaunchSettingsError(AgentError):
    """launchSettings.json cannot be read or has no usable profile."""


class ProcessStartError(AgentError):
    """The service process could not be started or exited right away."""


class BrowserOpenError(AgentError):
    """The OS browser opener failed."""


class OpenApiFetchError(AgentError):
    """No OpenAPI document could be downloaded."""

    def __init__(self, base_url: str, attempts: list[tuple[str, str]]):
        self.base_url = base_url
        self.attempts = attempts
        lines = [f"No OpenAPI document found at {base_url}"]
        lines.extend(f"  {url}: {outcome}" for url, outcome in attempts)
        super().__init__("\n".join(lines))


class HttpFileError(AgentError):
    """A .http request file cannot be parsed."""

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)
