"""Start the service when it is not already listening.

The sequence is: probe, start, wait a fixed delay, probe once more.
There is no retry loop.
"""

import os
import subprocess
import tempfile
import time
from pathlib import Path

from loguru import logger
from pydantic import BaseModel

from aspnet_dev_agent.errors import ProcessStartError
from aspnet_dev_agent.launch.probe import is_running


class StartResult(BaseModel):
    """Outcome of the auto-start workflow."""

    base_url: str
    already_running: bool = False
    started: bool = False
    running: bool = False
    pid: int | None = None
    log_path: Path | None = None


def build_run_command(project_dir: Path, profile_name: str | None = None, executable: str = "dotnet") -> list[str]:
    cmd = [executable, "run", "--project", str(project_dir)]
    if profile_name:
        cmd += ["--launch-profile", profile_name]
    return cmd


def start_service(
    project_dir: Path,
    profile_name: str | None = None,
    executable: str = "dotnet",
    log_path: Path | None = None,
) -> subprocess.Popen:
    """Spawn the service in the background.

    Output goes to ``log_path`` when given, otherwise it is discarded.
    """
    # dotnet resolves --project against cwd, so both must be absolute
    project_dir = Path(project_dir).resolve()
    cmd = build_run_command(project_dir, profile_name, executable)
    logger.info(f"Starting service: {' '.join(cmd)}")

    kwargs: dict = {}
    if os.name == "nt":
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        kwargs["start_new_session"] = True

    log_file = open(log_path, "wb") if log_path is not None else subprocess.DEVNULL
    try:
        return subprocess.Popen(
            cmd,
            cwd=str(project_dir),
            stdin=subprocess.DEVNULL,
            stdout=log_file,
            stderr=subprocess.STDOUT,
            **kwargs,
        )
    except OSError as e:
        raise ProcessStartError(f"Could not run '{cmd[0]}': {e}") from e
    finally:
        # The child keeps its own handle
        if log_path is not None:
            log_file.close()


def ensure_running(
    base_url: str,
    project_dir: Path,
    profile_name: str | None = None,
    start: bool = True,
    probe_timeout: float = 2.0,
    startup_delay: float = 5.0,
    executable: str = "dotnet",
) -> StartResult:
    """Probe the service; if it is down and ``start`` is set, start it and re-check once."""
    if is_running(base_url, timeout=probe_timeout):
        return StartResult(base_url=base_url, already_running=True, running=True)

    if not start:
        return StartResult(base_url=base_url)

    log_path = _new_log_path()
    try:
        proc = start_service(project_dir, profile_name, executable, log_path=log_path)
    except ProcessStartError:
        log_path.unlink(missing_ok=True)
        raise
    time.sleep(startup_delay)

    exit_code = proc.poll()
    if exit_code is not None:
        output = _read_output(log_path)
        log_path.unlink(missing_ok=True)
        raise ProcessStartError(output or f"'{executable} run' exited with code {exit_code}")

    running = is_running(base_url, timeout=probe_timeout)
    if not running:
        logger.warning(f"Service started (pid {proc.pid}) but {base_url} is not answering yet")
    return StartResult(
        base_url=base_url,
        started=True,
        running=running,
        pid=proc.pid,
        log_path=log_path,
    )


def _new_log_path() -> Path:
    fd, name = tempfile.mkstemp(prefix="aspnet-agent-", suffix=".log")
    os.close(fd)
    return Path(name)


def _read_output(log_path: Path) -> str:
    try:
        return log_path.read_text(encoding="utf-8", errors="replace").strip()
    except OSError:
        return ""
