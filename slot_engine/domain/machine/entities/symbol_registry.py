# slot_engine/domain/machine/entities/symbol_registry.py
import bisect
import logging
from typing import Dict, FrozenSet, Generic, Iterable, List, Mapping, Optional, TypeVar

from .symbol import Symbol, ValueTier

T = TypeVar("T")


class WeightedRegistry(Generic[T]):
    """
    Weighted random collection.

    Elements are stored against cumulative weight boundaries, so a draw is a
    binary search over the boundaries: a uniform integer in
    [0, total_weight) resolves to the first boundary strictly greater than it.
    """
    def __init__(self):
        self.logger = logging.getLogger("domain.machine.symbols")
        self._boundaries: List[int] = []
        self._elements: List[T] = []
        self._total_weight = 0

    def add_element(self, element: T, weight: int) -> None:
        """Register ``element``; a weight <= 0 is ignored."""
        if weight <= 0:
            self.logger.debug(f"Ignoring {element!r} with non-positive weight {weight}")
            return
        self._total_weight += int(weight)
        self._boundaries.append(self._total_weight)
        self._elements.append(element)

    def get_random_element(self, rng) -> Optional[T]:
        """
        Draw one element with probability proportional to its weight.

        Args:
            rng: RNG strategy

        Returns:
            The drawn element, or None when nothing is registered
        """
        if not self._elements or self._total_weight <= 0:
            return None

        roll = rng.get_random_int(0, self._total_weight - 1)
        return self._elements[bisect.bisect_right(self._boundaries, roll)]

    def clear(self) -> None:
        self._boundaries.clear()
        self._elements.clear()
        self._total_weight = 0

    @property
    def total_weight(self) -> int:
        return self._total_weight

    def is_empty(self) -> bool:
        return not self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def __iter__(self):
        return iter(self._elements)


class SymbolRegistry:
    """
    The configured symbol set of one machine.

    Holds the symbols in configuration order, a weighted registry for random
    draws and the directional equivalence map ``required id -> accepted ids``.
    A registry is built once and never mutated while spins read it; a reload
    builds a new one.
    """
    def __init__(self, symbols: Iterable[Symbol],
                 equivalents: Optional[Mapping[str, Iterable[str]]] = None):
        """
        Args:
            symbols: Symbols in configuration order
            equivalents: Mapping of symbol id to the ids of the symbols it can
                stand in for. ``{"star": ["seven", "cherry"]}`` makes a star
                count as a seven and as a cherry, not the other way round.

        Raises:
            KeyError: If an equivalence mentions an unknown symbol id
        """
        self.logger = logging.getLogger("domain.machine.symbols")
        self._symbols: Dict[str, Symbol] = {}
        self._weighted: WeightedRegistry[Symbol] = WeightedRegistry()

        for symbol in symbols:
            if symbol.weight <= 0:
                self.logger.debug(f"Ignoring symbol {symbol.id} with non-positive weight {symbol.weight}")
                continue
            self._symbols[symbol.id] = symbol
            self._weighted.add_element(symbol, symbol.weight)

        accepted: Dict[str, set] = {symbol_id: set() for symbol_id in self._symbols}
        for substitute_id, target_ids in (equivalents or {}).items():
            if substitute_id not in self._symbols:
                raise KeyError(substitute_id)
            for target_id in target_ids:
                if target_id not in self._symbols:
                    raise KeyError(target_id)
                if target_id != substitute_id:
                    accepted[target_id].add(substitute_id)

        self._accepted: Dict[str, FrozenSet[str]] = {
            symbol_id: frozenset(ids) for symbol_id, ids in accepted.items()
        }
        self._wildcards: FrozenSet[str] = frozenset(
            substitute for ids in self._accepted.values() for substitute in ids
        )

    # ---- equivalence ----

    def matches(self, required: Optional[Symbol], candidate: Optional[Symbol]) -> bool:
        """
        True if ``candidate`` satisfies a check for ``required``.

        Identity always matches; otherwise the candidate must have been
        registered as an equivalent of the required symbol. Empty cells never
        match.
        """
        if required is None or candidate is None:
            return False
        if required.id == candidate.id:
            return True
        return candidate.id in self._accepted.get(required.id, ())

    def matches_all(self, required: Symbol, candidates: Iterable[Optional[Symbol]]) -> bool:
        return all(self.matches(required, candidate) for candidate in candidates)

    def count_matches(self, required: Symbol, candidates: Iterable[Optional[Symbol]]) -> int:
        return sum(1 for candidate in candidates if self.matches(required, candidate))

    def accepted_for(self, symbol: Symbol) -> FrozenSet[str]:
        """Ids of the symbols accepted in place of ``symbol`` (identity excluded)."""
        return self._accepted.get(symbol.id, frozenset())

    def substitutes_for(self, symbol: Symbol) -> FrozenSet[str]:
        """Ids of the symbols ``symbol`` is accepted for."""
        return frozenset(
            required_id for required_id, ids in self._accepted.items() if symbol.id in ids
        )

    def is_wildcard(self, symbol: Optional[Symbol]) -> bool:
        return symbol is not None and symbol.id in self._wildcards

    @property
    def wildcards(self) -> List[Symbol]:
        return [symbol for symbol in self._symbols.values() if symbol.id in self._wildcards]

    # ---- lookup and draws ----

    def get(self, symbol_id: str) -> Optional[Symbol]:
        return self._symbols.get(symbol_id)

    def get_random_symbol(self, rng) -> Optional[Symbol]:
        return self._weighted.get_random_element(rng)

    @property
    def symbols(self) -> List[Symbol]:
        return list(self._symbols.values())

    @property
    def total_weight(self) -> int:
        return self._weighted.total_weight

    def is_empty(self) -> bool:
        return self._weighted.is_empty()

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol_id: str) -> bool:
        return symbol_id in self._symbols

    # ---- value tiers ----

    def value_pools(self) -> Dict[ValueTier, List[Symbol]]:
        """
        Group symbols into high/mid/low pools.

        Configured ``value_tier`` classifications are used when at least one
        symbol is classified high or mid (unclassified symbols then count as
        low). Otherwise symbols are sorted by ascending weight and split in
        thirds: the rarest third is high value, the next third mid.
        """
        pools = {tier: [] for tier in ValueTier}
        symbols = self.symbols

        if any(symbol.value_tier in (ValueTier.HIGH, ValueTier.MID) for symbol in symbols):
            for symbol in symbols:
                pools[symbol.value_tier or ValueTier.LOW].append(symbol)
            return pools

        ordered = sorted(symbols, key=lambda s: s.weight)
        third = len(ordered) // 3
        for i, symbol in enumerate(ordered):
            if i < third:
                pools[ValueTier.HIGH].append(symbol)
            elif i < third * 2:
                pools[ValueTier.MID].append(symbol)
            else:
                pools[ValueTier.LOW].append(symbol)
        return pools

    def __repr__(self) -> str:
        return f"SymbolRegistry(symbols={len(self._symbols)}, wildcards={sorted(self._wildcards)})"
