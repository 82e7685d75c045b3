"""Tests for repokeeper.preflight."""

from pathlib import Path
from unittest.mock import patch

from repokeeper.preflight import CheckResult, PreflightChecker, PreflightReport


class TestPreflightReport:
    """Tests for report aggregation."""

    def test_warnings_do_not_fail(self) -> None:
        report = PreflightReport(
            checks=[
                CheckResult(name="a", passed=True, message="ok"),
                CheckResult(name="b", passed=False, message="meh", severity="warning"),
            ]
        )

        assert report.passed
        assert [c.name for c in report.warnings] == ["b"]
        assert report.errors == []

    def test_error_fails(self) -> None:
        report = PreflightReport(checks=[CheckResult(name="a", passed=False, message="bad")])

        assert not report.passed
        assert "[FAIL] a: bad" in str(report)


class TestPreflightChecker:
    """Tests for PreflightChecker against real repositories."""

    def test_clean_repo_passes(self, tmp_repo: Path) -> None:
        (tmp_repo / ".gitattributes").write_text("* text=auto eol=lf\n")

        report = PreflightChecker(tmp_repo).run_all()

        assert report.passed
        names = [c.name for c in report.checks]
        assert names == ["git executable", "Work tree", "Branch", "Clean tree", "EOL policy", "Submodules"]
        eol = next(c for c in report.checks if c.name == "EOL policy")
        assert eol.message == "eol=lf autocrlf=input"

    def test_dirty_repo_warns(self, tmp_repo: Path) -> None:
        (tmp_repo / "pending.txt").write_text("wip\n")

        report = PreflightChecker(tmp_repo).run_all()

        assert report.passed
        assert any(c.name == "Clean tree" for c in report.warnings)

    def test_detached_head_warns(self, tmp_repo: Path, git) -> None:
        git(tmp_repo, "checkout", "-q", "--detach")

        report = PreflightChecker(tmp_repo).run_all()

        assert report.passed
        assert any(c.name == "Branch" for c in report.warnings)

    def test_missing_attributes_warns(self, tmp_repo: Path) -> None:
        report = PreflightChecker(tmp_repo).run_all()

        assert any(c.name == "EOL policy" for c in report.warnings)

    def test_not_a_repository_fails(self, tmp_path: Path) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()

        report = PreflightChecker(plain).run_all()

        assert not report.passed
        assert [c.name for c in report.checks] == ["git executable", "Work tree"]

    def test_git_missing_stops_early(self, tmp_repo: Path) -> None:
        with patch("repokeeper.preflight.git_available", return_value=False):
            report = PreflightChecker(tmp_repo).run_all()

        assert not report.passed
        assert len(report.checks) == 1

    def test_restores_cwd(self, tmp_repo: Path, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        PreflightChecker(tmp_repo).run_all()

        assert Path.cwd().resolve() == tmp_path.resolve()
