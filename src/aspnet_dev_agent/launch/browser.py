"""Build the launch URL and hand it to the OS browser opener."""

import re
import subprocess
import sys

from loguru import logger

from aspnet_dev_agent.errors import BrowserOpenError

_CMD_SPECIAL = re.compile(r"([&|<>^()])")


def build_launch_url(base_url: str, launch_url: str | None = None) -> str:
    """Join a profile's ``launchUrl`` onto its base URL."""
    if not launch_url:
        return base_url
    if "://" in launch_url:
        return launch_url
    return f"{base_url.rstrip('/')}/{launch_url.lstrip('/')}"


def browser_command(url: str, platform: str = sys.platform) -> list[str]:
    if platform.startswith("win"):
        # "start" treats the first quoted argument as the window title;
        # cmd would split the URL at an unescaped "&"
        return ["cmd", "/c", "start", "", _CMD_SPECIAL.sub(r"^\1", url)]
    if platform == "darwin":
        return ["open", url]
    return ["xdg-open", url]


def open_browser(url: str, platform: str = sys.platform) -> None:
    cmd = browser_command(url, platform)
    logger.debug(f"Opening browser: {cmd}")
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=15)
    except (OSError, subprocess.TimeoutExpired) as e:
        raise BrowserOpenError(f"Could not open {url}: {e}") from e
    if result.returncode != 0:
        detail = (result.stderr or result.stdout).strip() or f"exit code {result.returncode}"
        raise BrowserOpenError(f"Could not open {url}: {detail}")
