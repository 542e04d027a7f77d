"""Unit tests for the command line interface."""

from unittest.mock import AsyncMock

from pytest import MonkeyPatch
from typer.testing import CliRunner

from fork_sync_manager.configuration import cli
from fork_sync_manager.synchronize.exceptions import AuthenticationError
from fork_sync_manager.synchronize.models import SyncOutcome, SyncOutcomeKind
from fork_sync_manager.synchronize.results import ForkCheckResult, ForkSyncRunResult, build_run_report

from .utils import make_divergence, make_fork

runner = CliRunner()

CLEAN_ENV: dict[str, str | None] = {
    "GITHUB_PAT_TOKEN": "ghp_token",
    "GITHUB_APP_ID": None,
    "GITHUB_APP_PRIVATE_KEY_PATH": None,
    "GITHUB_APP_INSTALLATION_ID": None,
    "SPECIFIC_REPO": None,
    "GITHUB_STEP_SUMMARY": None,
    "README_PATH": None,
    "FORCE_SYNC": None,
    "BATCH_SIZE": None,
    "COMMIT_README": None,
}


def make_run_result() -> ForkSyncRunResult:
    synced = make_fork(full_name="octocat/alpha")
    failed = make_fork(full_name="octocat/bravo")
    report = build_run_report(
        [
            SyncOutcome(fork=synced, kind=SyncOutcomeKind.SYNCED_CLEAN_MERGE),
            SyncOutcome(fork=failed, kind=SyncOutcomeKind.FAILED, detail="Push failed after 3 attempts"),
        ]
    )
    return ForkSyncRunResult([synced, failed], report, needing_sync=2, batch_count=1)


def test_sync_exits_zero_when_some_forks_fail(monkeypatch: MonkeyPatch) -> None:
    """Test that per-fork failures do not fail the command."""
    workflow = AsyncMock(return_value=make_run_result())
    monkeypatch.setattr(cli, "run_fork_sync_workflow", workflow)

    # When
    result = runner.invoke(cli.typer_app, ["sync", "octocat", "--force-sync", "--batch-size", "10"], env=CLEAN_ENV)

    # Then
    assert result.exit_code == 0, result.output
    assert "Synced: 1" in result.output
    assert "octocat/bravo: Push failed after 3 attempts" in result.output
    config = workflow.await_args.args[0]
    assert config.account == "octocat"
    assert config.force_sync is True
    assert config.batch_size == 10


def test_sync_exits_one_on_structural_error(monkeypatch: MonkeyPatch) -> None:
    """Test that a structural failure fails the command."""
    monkeypatch.setattr(cli, "run_fork_sync_workflow", AsyncMock(side_effect=AuthenticationError("GitHub rejected the credentials (HTTP 401)")))

    result = runner.invoke(cli.typer_app, ["sync", "octocat"], env=CLEAN_ENV)

    assert result.exit_code == 1


def test_sync_exits_one_on_invalid_configuration(monkeypatch: MonkeyPatch) -> None:
    """Test that invalid configuration fails before any work is done."""
    workflow = AsyncMock()
    monkeypatch.setattr(cli, "run_fork_sync_workflow", workflow)

    result = runner.invoke(cli.typer_app, ["sync", "octocat", "--batch-size", "0"], env=CLEAN_ENV)

    assert result.exit_code == 1
    workflow.assert_not_awaited()


def test_check_lists_forks_needing_sync(monkeypatch: MonkeyPatch) -> None:
    """Test that the check command prints the diverged forks."""
    divergence = make_divergence(make_fork(full_name="octocat/alpha", parent_full_name="upstream/alpha"), upstream_branch="develop")
    in_sync = SyncOutcome(fork=make_fork(full_name="octocat/bravo"), kind=SyncOutcomeKind.ALREADY_IN_SYNC, detail="Up to date")
    check_result = ForkCheckResult([divergence.fork, in_sync.fork], [in_sync], [divergence])
    monkeypatch.setattr(cli, "run_fork_check_workflow", AsyncMock(return_value=check_result))

    result = runner.invoke(cli.typer_app, ["check", "octocat"], env=CLEAN_ENV)

    assert result.exit_code == 0, result.output
    assert "Needing sync: 1" in result.output
    assert "octocat/alpha <- upstream/alpha:develop" in result.output
