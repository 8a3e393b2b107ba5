"""
keeper.py - Permissionless claim keeper

Liquidation bot for the collateral engine. Each step advances the ledger
clock, then scans live entries in id order and claims every entry whose
previewed claim is not a no-op. Claim errors propagate to the caller.
"""

from __future__ import annotations
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .engine import ClaimOutcome, ClaimResult, CollateralEngine
from .oracle import NO_ORACLE, OracleRate


# Oracle lookup: debt_id -> rate for that debt's currency
OracleSource = Callable[[str], OracleRate]


class ClaimKeeper:
    """
    Steps time forward and claims whatever is claimable.

    Example:
        keeper = ClaimKeeper(engine, caller="keeper")
        results = keeper.run(timestamps)
    """

    def __init__(
        self,
        engine: CollateralEngine,
        caller: str,
        oracles: Optional[OracleSource] = None,
    ):
        self.engine = engine
        self.caller = caller
        self.oracles: OracleSource = oracles or (lambda debt_id: NO_ORACLE)
        self.verbose = engine.ledger.verbose
        self.history: List[ClaimResult] = []

    def claimable(self) -> Dict[int, ClaimOutcome]:
        """Entries whose claim would act right now, by entry id."""
        found: Dict[int, ClaimOutcome] = {}
        for entry in self.engine.store.live_entries():
            outcome = self.engine.preview_claim(entry.debt_id, self.oracles(entry.debt_id))
            if outcome != ClaimOutcome.NONE:
                found[entry.id] = outcome
        return found

    def step(self, timestamp: datetime) -> List[ClaimResult]:
        """
        Advance time to `timestamp` and claim every claimable entry.

        Returns:
            Results of the claims made this step
        """
        self.engine.ledger.advance_time(timestamp)
        results: List[ClaimResult] = []

        for entry_id in sorted(self.claimable()):
            entry = self.engine.store.get(entry_id)
            result = self.engine.claim(
                self.engine.debt_ledger, entry.debt_id, self.oracles(entry.debt_id), caller=self.caller,
            )
            if self.verbose:
                print(f"[KEEPER] {timestamp:%Y-%m-%d} entry {entry_id}: {result.outcome.name}, paid {result.paid}")
            results.append(result)

        self.history.extend(results)
        return results

    def run(
        self,
        timestamps: List[datetime],
        on_tick: Optional[Callable[[datetime], None]] = None,
    ) -> List[ClaimResult]:
        """
        Step through a sequence of timestamps.

        Args:
            timestamps: Times to process, in order
            on_tick: Called with each timestamp before the keeper claims,
                e.g. to move rates or add debt

        Returns:
            All claim results
        """
        all_results: List[ClaimResult] = []
        for timestamp in timestamps:
            if on_tick is not None:
                on_tick(timestamp)
            all_results.extend(self.step(timestamp))
        return all_results
