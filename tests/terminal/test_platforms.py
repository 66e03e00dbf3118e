"""
Unit тесты для platforms.py
"""

from workspace_mcp.tools.terminal.platforms import resolve_profile, terminal_environment


class TestShellProfile:
    """Тесты таблицы возможностей платформ"""

    def test_windows_profile(self):
        profile = resolve_profile("win32")

        assert profile.shell == "powershell.exe"
        assert profile.args == ("-NoLogo", "-NoExit")
        assert profile.clear_command == "cls"
        assert profile.line_terminator == "\r\n"
        assert profile.greeting_delay == 0.8
        assert profile.backend == "winpty"

    def test_posix_profile_prefers_user_shell(self, monkeypatch):
        monkeypatch.setenv("SHELL", "/usr/bin/zsh")
        profile = resolve_profile("linux")

        assert profile.shell == "/usr/bin/zsh"
        assert profile.args == ("-l",)
        assert profile.clear_command == "clear"
        assert profile.line_terminator == "\r"
        assert profile.greeting_delay == 0.5

    def test_posix_profile_falls_back_to_bash(self, monkeypatch):
        monkeypatch.delenv("SHELL", raising=False)

        assert resolve_profile("darwin").shell == "/bin/bash"

    def test_explicit_shell_override_drops_default_args(self):
        profile = resolve_profile("linux", shell="/bin/sh")

        assert profile.argv == ["/bin/sh"]

    def test_explicit_shell_args(self):
        profile = resolve_profile("win32", shell="cmd.exe", shell_args=["/Q"])

        assert profile.argv == ["cmd.exe", "/Q"]

    def test_windows_cd_uses_backslashes(self):
        profile = resolve_profile("win32")

        assert profile.cd_command("C:/Users/me/proj") == 'cd "C:\\Users\\me\\proj"'

    def test_posix_cd_keeps_path(self):
        profile = resolve_profile("linux", shell="/bin/sh")

        assert profile.cd_command("/home/me/my proj") == 'cd "/home/me/my proj"'

    def test_terminal_environment_forces_color(self, monkeypatch):
        monkeypatch.setenv("TERM", "dumb")
        env = terminal_environment()

        assert env["TERM"] == "xterm-256color"
        assert env["COLORTERM"] == "truecolor"
