"""Unit tests for the strategy ladder."""

import pytest

from fork_sync_manager.synchronize.models import SyncOutcomeKind
from fork_sync_manager.synchronize.strategy import INITIAL_STATE, LadderState, advance, run_strategy_ladder


class ScriptedExecutor:
    """Answers strategy attempts from a fixed script."""

    def __init__(self, answers: dict[LadderState, bool]) -> None:
        self.answers = answers
        self.attempted: list[LadderState] = []

    async def attempt(self, state: LadderState) -> bool:
        self.attempted.append(state)
        return self.answers.get(state, False)


@pytest.mark.parametrize(
    "state,succeeded,force_sync,expected",
    [
        pytest.param(LadderState.CLEAN_MERGE, True, False, SyncOutcomeKind.SYNCED_CLEAN_MERGE, id="clean merge succeeds"),
        pytest.param(LadderState.CLEAN_MERGE, False, False, LadderState.UNRELATED_HISTORIES_MERGE, id="clean merge fails"),
        pytest.param(LadderState.CLEAN_MERGE, False, True, LadderState.UNRELATED_HISTORIES_MERGE, id="clean merge fails with force"),
        pytest.param(
            LadderState.UNRELATED_HISTORIES_MERGE,
            True,
            False,
            SyncOutcomeKind.SYNCED_UNRELATED_HISTORIES_MERGE,
            id="unrelated merge succeeds",
        ),
        pytest.param(LadderState.UNRELATED_HISTORIES_MERGE, False, False, SyncOutcomeKind.FAILED, id="unrelated merge fails"),
        pytest.param(LadderState.UNRELATED_HISTORIES_MERGE, False, True, LadderState.FORCED_RESET, id="unrelated merge fails with force"),
        pytest.param(LadderState.FORCED_RESET, True, True, SyncOutcomeKind.SYNCED_FORCED_RESET, id="reset succeeds"),
        pytest.param(LadderState.FORCED_RESET, False, True, SyncOutcomeKind.FAILED, id="reset fails"),
    ],
)
def test_advance_transitions(state: LadderState, succeeded: bool, force_sync: bool, expected: object) -> None:
    """Test every transition of the ladder."""
    assert advance(state, succeeded, force_sync) == expected


def test_initial_state_is_clean_merge() -> None:
    """Test that the ladder always starts with the least destructive strategy."""
    assert INITIAL_STATE == LadderState.CLEAN_MERGE


@pytest.mark.asyncio
async def test_ladder_stops_at_first_success() -> None:
    """Test that later strategies are not attempted once one succeeds."""
    executor = ScriptedExecutor({LadderState.CLEAN_MERGE: True})

    kind, attempted = await run_strategy_ladder(executor, force_sync=True)

    assert kind == SyncOutcomeKind.SYNCED_CLEAN_MERGE
    assert attempted == [LadderState.CLEAN_MERGE]


@pytest.mark.asyncio
async def test_ladder_never_resets_without_force_sync() -> None:
    """Test that a fork whose merges both fail is not overwritten unless forced."""
    executor = ScriptedExecutor({})

    kind, attempted = await run_strategy_ladder(executor, force_sync=False)

    assert kind == SyncOutcomeKind.FAILED
    assert LadderState.FORCED_RESET not in executor.attempted
    assert attempted == [LadderState.CLEAN_MERGE, LadderState.UNRELATED_HISTORIES_MERGE]


@pytest.mark.asyncio
async def test_ladder_resets_with_force_sync() -> None:
    """Test that forcing reaches the reset after both merges fail."""
    executor = ScriptedExecutor({LadderState.FORCED_RESET: True})

    kind, attempted = await run_strategy_ladder(executor, force_sync=True)

    assert kind == SyncOutcomeKind.SYNCED_FORCED_RESET
    assert attempted == [LadderState.CLEAN_MERGE, LadderState.UNRELATED_HISTORIES_MERGE, LadderState.FORCED_RESET]
