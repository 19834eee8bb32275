# slot_engine/application/analysis/rtp_analyzer.py
import logging
from collections import Counter
from typing import Any, Dict

import numpy as np

from slot_engine.application.simulation.rtp_simulator import SimulationResult
from slot_engine.domain.machine.entities.outcome_tier import TierTable


class RtpAnalyzer:
    """
    Statistics over a simulation run, compared with the machine's tier table.
    """
    def __init__(self):
        self.logger = logging.getLogger("application.analysis.rtp")

    def analyze(self, result: SimulationResult, tier_table: TierTable) -> Dict[str, Any]:
        """
        Build the report for one simulation run.

        Args:
            result: Simulation output
            tier_table: Tier table of the simulated machine

        Returns:
            Report dictionary with performance, tier and configuration sections
        """
        payouts = result.payouts
        spins = result.spin_count
        total_bet = result.bet * spins
        total_win = float(np.sum(payouts)) if spins else 0.0

        wins = payouts[payouts > 0]
        observed_rtp = total_win / total_bet if total_bet > 0 else 0.0

        report = {
            "machine_id": result.machine_id,
            "performance": {
                "total_spins": spins,
                "bet": result.bet,
                "total_bet": total_bet,
                "total_win": total_win,
                "net_result": total_win - total_bet,
                "observed_rtp": observed_rtp,
                "hit_rate": len(wins) / spins if spins else 0.0,
                "max_win": float(np.max(payouts)) if spins else 0.0,
                "avg_win": float(np.mean(wins)) if len(wins) else 0.0,
                "payout_std": float(np.std(payouts)) if spins else 0.0,
                "duration": result.duration,
            },
            "tiers": self._tier_breakdown(result, tier_table),
            "rewards": dict(Counter(name for name in result.reward_names if name).most_common()),
            "configured": {
                "target_rtp": tier_table.target_rtp,
                "tolerance": tier_table.tolerance,
                "expected_rtp": tier_table.expected_rtp(),
                "calibrated": tier_table.is_calibrated(),
            },
        }

        self.logger.info(
            f"Machine {result.machine_id}: observed RTP {observed_rtp:.4f}, "
            f"expected {tier_table.expected_rtp():.4f}, hit rate {report['performance']['hit_rate']:.4f}"
        )
        return report

    def _tier_breakdown(self, result: SimulationResult, tier_table: TierTable) -> Dict[str, Dict[str, float]]:
        spins = result.spin_count
        counts = Counter(result.tiers)
        tier_index = np.array([tier.value for tier in result.tiers]) if spins else np.array([])

        breakdown = {}
        for tier, spec in tier_table.items():
            tier_payouts = result.payouts[tier_index == tier.value] if spins else np.array([])
            breakdown[tier.value] = {
                "count": counts.get(tier, 0),
                "observed_frequency": counts.get(tier, 0) / spins if spins else 0.0,
                "configured_probability": spec.probability,
                "mean_payout": float(np.mean(tier_payouts)) if len(tier_payouts) else 0.0,
            }
        return breakdown
