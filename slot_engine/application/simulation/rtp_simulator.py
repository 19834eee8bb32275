# slot_engine/application/simulation/rtp_simulator.py
import logging
import numbers
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from slot_engine.domain.machine.entities.outcome_tier import OutcomeTier
from slot_engine.domain.machine.entities.slot_machine import SlotMachine
from slot_engine.infrastructure.concurrency.task_executor import ExecutionMode, TaskExecutor


@dataclass
class SimulationResult:
    """Raw per-spin data of a simulation run."""
    machine_id: str
    bet: float
    payouts: np.ndarray
    tiers: List[OutcomeTier]
    reward_names: List[Optional[str]]
    duration: float = 0.0
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def spin_count(self) -> int:
        return len(self.payouts)


class RtpSimulator:
    """
    Monte-Carlo spin simulation of a single machine.

    The requested spins are split into batches that run through the task
    executor. Machines draw from a thread-local RNG, so batches on different
    worker threads never share generator state.
    """
    def __init__(self, execution_mode: ExecutionMode = ExecutionMode.SEQUENTIAL,
                 max_workers: Optional[int] = None, batch_size: int = 10000):
        """
        Args:
            execution_mode: Run batches sequentially or on a thread pool
            max_workers: Thread pool size for MULTITHREAD mode
            batch_size: Spins per batch
        """
        self.logger = logging.getLogger("application.simulation.rtp")
        self.executor = TaskExecutor(execution_mode, max_workers)
        self.batch_size = max(1, int(batch_size))

    def run(self, machine: SlotMachine, spin_count: int, bet: float = 1.0,
            progress_callback=None) -> SimulationResult:
        """
        Spin ``machine`` ``spin_count`` times at a fixed bet.

        Args:
            machine: Machine to simulate
            spin_count: Total number of spins
            bet: Bet per spin
            progress_callback: Optional callable receiving (completed, total) batches

        Returns:
            SimulationResult with the payout and tier of every spin

        Raises:
            ValueError: If spin_count or bet is not positive
        """
        if spin_count <= 0:
            raise ValueError(f"Spin count must be positive, got {spin_count}")
        if isinstance(bet, bool) or not isinstance(bet, numbers.Real) or not bet > 0:
            raise ValueError(f"Bet must be a positive number, got {bet!r}")

        batch_sizes = [self.batch_size] * (spin_count // self.batch_size)
        if spin_count % self.batch_size:
            batch_sizes.append(spin_count % self.batch_size)

        self.logger.info(
            f"Simulating {spin_count} spins on {machine.id} at bet {bet} in {len(batch_sizes)} batches"
        )

        tasks = [lambda size=size: self._run_batch(machine, size, bet) for size in batch_sizes]

        start = time.time()
        batches = self.executor.execute_with_progress(tasks, progress_callback)
        duration = time.time() - start

        payouts = np.concatenate([batch["payouts"] for batch in batches])
        tiers = [tier for batch in batches for tier in batch["tiers"]]
        reward_names = [name for batch in batches for name in batch["rewards"]]

        self.logger.info(f"Simulation of {machine.id} finished in {duration:.2f}s")
        return SimulationResult(machine.id, bet, payouts, tiers, reward_names, duration,
                                {"batches": len(batch_sizes), "batch_size": self.batch_size,
                                 "mode": self.executor.mode.name})

    def _run_batch(self, machine: SlotMachine, size: int, bet: float) -> Dict[str, Any]:
        payouts = np.zeros(size, dtype=float)
        tiers = []
        rewards = []

        for i in range(size):
            outcome = machine.spin(bet)
            payouts[i] = outcome.payout
            tiers.append(outcome.tier)
            rewards.append(outcome.reward.rule.describe() if outcome.reward else None)

        self.logger.debug(f"Batch of {size} spins paid {payouts.sum():.2f}")
        return {"payouts": payouts, "tiers": tiers, "rewards": rewards}
