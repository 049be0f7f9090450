from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from aspnet_dev_agent.errors import ProcessStartError
from aspnet_dev_agent.launch.process import build_run_command, ensure_running, start_service

BASE_URL = "http://localhost:5080"


def _proc(exit_code=None, pid=4242) -> MagicMock:
    proc = MagicMock()
    proc.poll.return_value = exit_code
    proc.pid = pid
    return proc


class TestBuildRunCommand:
    def test_with_profile(self):
        cmd = build_run_command(Path("src/Todo.Api"), "http")
        assert cmd == ["dotnet", "run", "--project", str(Path("src/Todo.Api")), "--launch-profile", "http"]

    def test_without_profile(self):
        assert "--launch-profile" not in build_run_command(Path("."))

    def test_custom_executable(self):
        assert build_run_command(Path("."), executable="/usr/share/dotnet/dotnet")[0] == "/usr/share/dotnet/dotnet"


class TestStartService:
    @patch("aspnet_dev_agent.launch.process.subprocess.Popen")
    def test_spawns_in_project_dir(self, MockPopen, tmp_path):
        MockPopen.return_value = _proc()
        start_service(tmp_path, "http", log_path=tmp_path / "out.log")

        args, kwargs = MockPopen.call_args
        assert args[0][:2] == ["dotnet", "run"]
        assert kwargs["cwd"] == str(tmp_path)

    @patch("aspnet_dev_agent.launch.process.subprocess.Popen")
    def test_relative_project_dir_is_resolved(self, MockPopen, tmp_path, monkeypatch):
        project = tmp_path / "src" / "Todo.Api"
        project.mkdir(parents=True)
        monkeypatch.chdir(tmp_path)
        MockPopen.return_value = _proc()

        start_service(Path("src/Todo.Api"), "http")

        args, kwargs = MockPopen.call_args
        cmd = args[0]
        assert kwargs["cwd"] == str(project.resolve())
        assert cmd[cmd.index("--project") + 1] == str(project.resolve())

    @patch("aspnet_dev_agent.launch.process.subprocess.Popen")
    def test_missing_executable_surfaces_os_error(self, MockPopen, tmp_path):
        MockPopen.side_effect = FileNotFoundError(2, "No such file or directory", "dotnet")
        with pytest.raises(ProcessStartError, match="No such file or directory"):
            start_service(tmp_path)


@patch("aspnet_dev_agent.launch.process.time.sleep")
@patch("aspnet_dev_agent.launch.process.subprocess.Popen")
@patch("aspnet_dev_agent.launch.process.is_running")
class TestEnsureRunning:
    def test_already_running_does_not_start(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.return_value = True
        result = ensure_running(BASE_URL, tmp_path)

        assert result.already_running and result.running
        MockPopen.assert_not_called()
        mock_sleep.assert_not_called()

    def test_no_start_reports_not_running(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.return_value = False
        result = ensure_running(BASE_URL, tmp_path, start=False)

        assert not result.running and not result.started
        MockPopen.assert_not_called()

    def test_starts_waits_and_rechecks_once(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.side_effect = [False, True]
        MockPopen.return_value = _proc()

        result = ensure_running(BASE_URL, tmp_path, profile_name="http", startup_delay=3.0)

        assert result.started and result.running
        assert result.pid == 4242
        mock_sleep.assert_called_once_with(3.0)
        assert mock_running.call_count == 2

    def test_still_down_after_recheck(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.return_value = False
        MockPopen.return_value = _proc()

        result = ensure_running(BASE_URL, tmp_path)

        assert result.started and not result.running
        assert result.log_path is not None
        assert mock_running.call_count == 2

    def test_early_exit_surfaces_output_verbatim(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.return_value = False
        output = "Program.cs(3,1): error CS1002: ; expected"

        def spawn(cmd, **kwargs):
            kwargs["stdout"].write(output.encode() + b"\n")
            return _proc(exit_code=1)

        MockPopen.side_effect = spawn
        with pytest.raises(ProcessStartError) as exc_info:
            ensure_running(BASE_URL, tmp_path)
        assert str(exc_info.value) == output

    def test_early_exit_without_output(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.return_value = False
        MockPopen.return_value = _proc(exit_code=3)
        with pytest.raises(ProcessStartError, match="exited with code 3"):
            ensure_running(BASE_URL, tmp_path)

    def test_early_exit_removes_log(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.return_value = False
        MockPopen.return_value = _proc(exit_code=1)
        log_path = tmp_path / "out.log"
        with patch("aspnet_dev_agent.launch.process._new_log_path", return_value=log_path):
            with pytest.raises(ProcessStartError):
                ensure_running(BASE_URL, tmp_path)
        assert not log_path.exists()

    def test_spawn_failure_removes_log(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.return_value = False
        MockPopen.side_effect = FileNotFoundError(2, "No such file or directory", "dotnet")
        log_path = tmp_path / "out.log"
        with patch("aspnet_dev_agent.launch.process._new_log_path", return_value=log_path):
            with pytest.raises(ProcessStartError):
                ensure_running(BASE_URL, tmp_path)
        assert not log_path.exists()
        mock_sleep.assert_not_called()

    def test_log_kept_while_service_runs(self, mock_running, MockPopen, mock_sleep, tmp_path):
        mock_running.side_effect = [False, True]
        MockPopen.return_value = _proc()
        result = ensure_running(BASE_URL, tmp_path)
        assert result.log_path.exists()
        result.log_path.unlink()
