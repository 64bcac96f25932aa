import subprocess
from unittest import mock

from roster.version import PACKAGE_VERSION, VERSION, git_hash, version_string


def _completed(returncode, stdout):
    return subprocess.CompletedProcess(
        args=["git", "rev-parse", "--short", "HEAD"],
        returncode=returncode,
        stdout=stdout,
        stderr="",
    )


def test_git_hash_strips_output():
    with mock.patch("roster.version.subprocess.run", return_value=_completed(0, "abc1234\n")):
        assert git_hash() == "abc1234"


def test_git_hash_runs_rev_parse():
    with mock.patch(
        "roster.version.subprocess.run", return_value=_completed(0, "abc1234\n")
    ) as run:
        result = git_hash()
    assert result == "abc1234"
    assert run.call_args.args[0] == ["git", "rev-parse", "--short", "HEAD"]


def test_git_hash_failure_gives_empty():
    with mock.patch("roster.version.subprocess.run", return_value=_completed(128, "")):
        assert git_hash() == ""


def test_git_hash_without_git_gives_empty():
    with mock.patch("roster.version.subprocess.run", side_effect=FileNotFoundError):
        assert git_hash() == ""


def test_release_version_is_package_version():
    with mock.patch("roster.version.subprocess.run") as run:
        assert version_string(False) == PACKAGE_VERSION
    run.assert_not_called()


def test_dev_version_carries_hash():
    with mock.patch("roster.version.subprocess.run", return_value=_completed(0, "deadbee\n")):
        assert version_string(True) == f"(dev) {PACKAGE_VERSION}-deadbee"


def test_default_version_constant_matches_release():
    assert VERSION == version_string(False)