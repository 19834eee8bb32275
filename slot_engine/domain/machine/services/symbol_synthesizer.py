# slot_engine/domain/machine/services/symbol_synthesizer.py
import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..entities.outcome_tier import OutcomeTier
from ..entities.symbol import Symbol, ValueTier
from ..entities.symbol_grid import SymbolGrid
from ..entities.symbol_registry import SymbolRegistry

DEFAULT_MAX_ATTEMPTS = 100
DEFAULT_LOSS_THRESHOLD = 3
DEFAULT_LARGE_HIGH_CHANCE = 0.3


class SymbolSynthesizer:
    """
    Builds a reel result that is consistent with an already chosen outcome tier.

    Winning tiers place a symbol from the tier's value pool on a number of
    randomly chosen reels and fill the rest with symbols that cannot complete
    another line. LOSS results are assembled reel by reel under usage caps and
    then validated; a candidate that would still pay is regenerated.
    """
    def __init__(self, registry: SymbolRegistry,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 loss_threshold: int = DEFAULT_LOSS_THRESHOLD,
                 jackpot_symbol_id: Optional[str] = None,
                 large_high_chance: float = DEFAULT_LARGE_HIGH_CHANCE,
                 fallback_order: Optional[Sequence[str]] = None):
        """
        Args:
            registry: Symbol registry of the machine
            max_attempts: LOSS candidates generated before the fallback is used
            loss_threshold: Match count at which a row would start paying
            jackpot_symbol_id: Symbol filling every reel on a jackpot
            large_high_chance: Chance that a LARGE win uses three high-value symbols
            fallback_order: Symbol ids cycled over the reels when LOSS retries run out;
                defaults to the non-wildcard symbols in configuration order
        """
        self.registry = registry
        self.max_attempts = max(1, int(max_attempts))
        self.loss_threshold = max(2, int(loss_threshold))
        self.jackpot_symbol_id = jackpot_symbol_id
        self.large_high_chance = large_high_chance
        self.logger = logging.getLogger("domain.machine.synthesizer")

        self._pools = registry.value_pools()
        self._non_wildcards = [s for s in registry.symbols if not registry.is_wildcard(s)]
        if fallback_order:
            self._fallback = [registry.get(symbol_id) for symbol_id in fallback_order]
        else:
            self._fallback = self._non_wildcards or registry.symbols

        self._generators: Dict[OutcomeTier, Callable[[int, object], List[Symbol]]] = {
            OutcomeTier.LOSS: self._generate_loss,
            OutcomeTier.SMALL: self._generate_small,
            OutcomeTier.MEDIUM: self._generate_medium,
            OutcomeTier.LARGE: self._generate_large,
            OutcomeTier.HUGE: self._generate_huge,
            OutcomeTier.JACKPOT: self._generate_jackpot,
        }

    # ---- public operations ----

    def generate_symbols(self, tier: OutcomeTier, reel_count: int, rng) -> List[Optional[Symbol]]:
        """
        Generate one unvalidated candidate row for ``tier``.

        Args:
            tier: Outcome tier already selected for the spin
            reel_count: Number of reels
            rng: RNG strategy

        Returns:
            List of ``reel_count`` symbols (all None for an empty registry)
        """
        if self.registry.is_empty():
            return [None] * reel_count
        return self._generators[tier](reel_count, rng)

    def generate_validated(self, tier: OutcomeTier, reel_count: int, rng) -> List[Optional[Symbol]]:
        """
        Generate a row for ``tier``, retrying LOSS candidates that would pay.

        After ``max_attempts`` rejected LOSS candidates the deterministic
        fallback row is returned instead.
        """
        if tier != OutcomeTier.LOSS or self.registry.is_empty():
            return self.generate_symbols(tier, reel_count, rng)

        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generate_symbols(tier, reel_count, rng)
            if self.is_valid_loss(candidate):
                return candidate
            self.logger.debug(f"Rejected LOSS candidate {[s.id for s in candidate]} (attempt {attempt})")

        self.logger.warning(
            f"No valid LOSS result after {self.max_attempts} attempts, using fallback row"
        )
        return self.loss_fallback(reel_count)

    def is_valid_loss(self, symbols: Sequence[Optional[Symbol]]) -> bool:
        """True if no non-wildcard symbol reaches the loss threshold, wildcards included."""
        for symbol in self._non_wildcards:
            if self.registry.count_matches(symbol, symbols) >= self.loss_threshold:
                return False
        return True

    def loss_fallback(self, reel_count: int) -> List[Optional[Symbol]]:
        """The fallback order cycled over the reels."""
        if not self._fallback:
            return [None] * reel_count
        return [self._fallback[i % len(self._fallback)] for i in range(reel_count)]

    def generate_grid(self, tier: OutcomeTier, rows: int, columns: int, rng) -> SymbolGrid:
        """
        Build a full grid whose middle row carries the outcome.

        The middle row comes from ``generate_validated``; every other cell is a
        plain weighted draw.
        """
        middle_index = rows // 2
        cells = []
        for row in range(rows):
            if row == middle_index:
                cells.append(self.generate_validated(tier, columns, rng))
            else:
                cells.append([self.registry.get_random_symbol(rng) for _ in range(columns)])
        return SymbolGrid(cells)

    # ---- LOSS ----

    def _generate_loss(self, reel_count: int, rng) -> List[Symbol]:
        usage: Dict[str, int] = {}
        wildcard_placed = False
        result = []

        for _ in range(reel_count):
            candidates = self._loss_candidates(usage, wildcard_placed)
            if not candidates:
                candidates = self._least_used(usage, wildcard_placed)

            symbol = rng.choice(candidates)
            usage[symbol.id] = usage.get(symbol.id, 0) + 1
            if self.registry.is_wildcard(symbol):
                wildcard_placed = True
            result.append(symbol)

        return result

    def _loss_candidates(self, usage: Dict[str, int], wildcard_placed: bool) -> List[Symbol]:
        # With a wildcard on the row every other symbol is held one use lower
        cap = self.loss_threshold - (2 if wildcard_placed else 1)
        candidates = []
        for symbol in self.registry.symbols:
            if self.registry.is_wildcard(symbol):
                if wildcard_placed:
                    continue
                targets = self.registry.substitutes_for(symbol)
                if all(usage.get(target, 0) < self.loss_threshold - 1 for target in targets):
                    candidates.append(symbol)
            elif usage.get(symbol.id, 0) < cap:
                candidates.append(symbol)
        return candidates

    def _least_used(self, usage: Dict[str, int], wildcard_placed: bool) -> List[Symbol]:
        pool = [s for s in self.registry.symbols
                if not (wildcard_placed and self.registry.is_wildcard(s))]
        if pool:
            lowest = min(usage.get(s.id, 0) for s in pool)
            return [s for s in pool if usage.get(s.id, 0) == lowest]

        ordered = sorted(self._non_wildcards, key=lambda s: usage.get(s.id, 0))
        return ordered[:3] or self.registry.symbols

    # ---- winning tiers ----

    def _pool(self, *tiers: ValueTier) -> List[Symbol]:
        for tier in tiers:
            if self._pools[tier]:
                return self._pools[tier]
        return self.registry.symbols

    def _generate_small(self, reel_count: int, rng) -> List[Symbol]:
        return self._place_win(rng.choice(self._pool(ValueTier.LOW)), 3, reel_count, rng)

    def _generate_medium(self, reel_count: int, rng) -> List[Symbol]:
        count = rng.get_random_int(3, 4)
        return self._place_win(rng.choice(self._pool(ValueTier.MID, ValueTier.LOW)), count, reel_count, rng)

    def _generate_large(self, reel_count: int, rng) -> List[Symbol]:
        high = self._pools[ValueTier.HIGH]
        if high and rng.get_random_fraction() < self.large_high_chance:
            return self._place_win(rng.choice(high), 3, reel_count, rng)

        count = rng.get_random_int(4, 5)
        return self._place_win(rng.choice(self._pool(ValueTier.MID, ValueTier.LOW)), count, reel_count, rng)

    def _generate_huge(self, reel_count: int, rng) -> List[Symbol]:
        count = rng.get_random_int(4, 5)
        return self._place_win(rng.choice(self._pool(ValueTier.HIGH, ValueTier.MID)), count, reel_count, rng)

    def _generate_jackpot(self, reel_count: int, rng) -> List[Symbol]:
        symbol = self.registry.get(self.jackpot_symbol_id) if self.jackpot_symbol_id else None
        if symbol is None and self._pools[ValueTier.HIGH]:
            symbol = self._pools[ValueTier.HIGH][0]
        if symbol is None:
            symbol = self.registry.get_random_symbol(rng)
        return [symbol] * reel_count

    def _place_win(self, winner: Symbol, count: int, reel_count: int, rng) -> List[Symbol]:
        """Put ``winner`` on ``count`` random reels and fill the rest with non-matching symbols."""
        count = min(count, reel_count)
        winning_reels = set(rng.shuffle(list(range(reel_count)))[:count])

        excluded = set(self.registry.accepted_for(winner))
        if self.registry.is_wildcard(winner):
            # Every symbol the winner stands in for already counts the winning reels
            excluded |= self.registry.substitutes_for(winner)
        complement = [s for s in self._non_wildcards if s != winner and s.id not in excluded]

        usage: Dict[str, int] = {}
        result = []
        for reel in range(reel_count):
            if reel in winning_reels:
                result.append(winner)
                continue

            filler = [s for s in complement if usage.get(s.id, 0) < self.loss_threshold - 1]
            if not filler and complement:
                lowest = min(usage.get(s.id, 0) for s in complement)
                filler = [s for s in complement if usage.get(s.id, 0) == lowest]
            if not filler:
                filler = [winner]

            symbol = rng.choice(filler)
            usage[symbol.id] = usage.get(symbol.id, 0) + 1
            result.append(symbol)

        return result
