"""The strategy ladder used to converge a fork branch onto its upstream.

The ladder is a small state machine. Each state is a strategy; after it runs,
:func:`advance` decides the next state or the terminal outcome. Strategies are
tried from least to most destructive and the forced reset is only reachable
when the caller explicitly asked for it.
"""

from enum import Enum
from typing import Protocol

import structlog

from fork_sync_manager.synchronize.models import SyncOutcomeKind

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class LadderState(str, Enum):
    """Strategies of the ladder, in the order they are attempted."""

    CLEAN_MERGE = "clean_merge"
    UNRELATED_HISTORIES_MERGE = "unrelated_histories_merge"
    FORCED_RESET = "forced_reset"


INITIAL_STATE = LadderState.CLEAN_MERGE

SUCCESS_OUTCOMES: dict[LadderState, SyncOutcomeKind] = {
    LadderState.CLEAN_MERGE: SyncOutcomeKind.SYNCED_CLEAN_MERGE,
    LadderState.UNRELATED_HISTORIES_MERGE: SyncOutcomeKind.SYNCED_UNRELATED_HISTORIES_MERGE,
    LadderState.FORCED_RESET: SyncOutcomeKind.SYNCED_FORCED_RESET,
}


def advance(state: LadderState, succeeded: bool, force_sync: bool) -> LadderState | SyncOutcomeKind:
    """Return the state that follows a strategy attempt, or the terminal outcome."""
    if succeeded:
        return SUCCESS_OUTCOMES[state]
    if state == LadderState.CLEAN_MERGE:
        return LadderState.UNRELATED_HISTORIES_MERGE
    if state == LadderState.UNRELATED_HISTORIES_MERGE and force_sync:
        return LadderState.FORCED_RESET
    return SyncOutcomeKind.FAILED


class StrategyExecutor(Protocol):
    """Runs one strategy of the ladder against a working copy."""

    async def attempt(self, state: LadderState) -> bool:
        """Run the strategy for state and report whether it converged the branch."""
        ...


async def run_strategy_ladder(executor: StrategyExecutor, force_sync: bool) -> tuple[SyncOutcomeKind, list[LadderState]]:
    """Drive the ladder until it reaches a terminal outcome.

    Returns:
        The terminal outcome and the strategies that were attempted, in order.
    """
    attempted: list[LadderState] = []
    current: LadderState | SyncOutcomeKind = INITIAL_STATE
    while isinstance(current, LadderState):
        attempted.append(current)
        succeeded = await executor.attempt(current)
        logger.info("Strategy attempted", strategy=current.value, succeeded=succeeded)
        current = advance(current, succeeded, force_sync)
    return current, attempted
