# slot_engine/domain/machine/factories/machine_factory.py
import logging
import os
from typing import Any, Dict, List, Mapping, Optional

from ..entities.outcome_tier import (DEFAULT_RTP_TOLERANCE, DEFAULT_TARGET_RTP, OutcomeTier,
                                     TierSpec, TierTable)
from ..entities.reward_command import InvalidExpressionError, RewardCommand
from ..entities.reward_rule import ExactMatchReward, PatternReward, RewardRule, RowReward
from ..entities.slot_machine import DEFAULT_COLUMNS, DEFAULT_ROWS, SlotMachine
from ..entities.symbol import Symbol, ValueTier
from ..entities.symbol_registry import SymbolRegistry
from ..services.pattern_matcher import PatternKind
from ..services.symbol_synthesizer import (DEFAULT_LARGE_HIGH_CHANCE, DEFAULT_LOSS_THRESHOLD,
                                           DEFAULT_MAX_ATTEMPTS, SymbolSynthesizer)
from slot_engine.infrastructure.rng.rng_provider import RNGProvider


class MachineConfigError(ValueError):
    """A machine configuration that parses but cannot describe a working machine."""
    pass


class MachineFactory:
    """
    Factory for creating SlotMachine instances from configuration dictionaries.

    All semantic validation happens here, so a machine that comes out of the
    factory can always spin.
    """
    def __init__(self, rng_provider: Optional[RNGProvider] = None):
        """
        Initialize the machine factory.

        Args:
            rng_provider: RNG provider for the machines' strategies
        """
        self.logger = logging.getLogger("domain.machine.factory")
        self.rng_provider = rng_provider or RNGProvider()

    def create_machine(self, machine_id: str, config: Dict[str, Any],
                       rng_strategy_name: str = "mersenne") -> SlotMachine:
        """
        Create a new slot machine instance.

        Args:
            machine_id: Unique identifier for the machine
            config: Machine configuration dictionary
            rng_strategy_name: Name of RNG strategy to use

        Returns:
            Initialized SlotMachine instance

        Raises:
            MachineConfigError: If the configuration is invalid
        """
        self.logger.info(f"Creating slot machine: {machine_id}")

        rows, columns = self._parse_grid(config.get("grid") or {})
        tier_table = self._parse_tier_table(config.get("tiers"), config.get("rtp") or {})
        registry = self._parse_symbols(config.get("symbols"))

        rules: List[RewardRule] = []
        rules.extend(self._parse_row_rewards(config.get("symbols"), registry))
        rules.extend(self._parse_exact_matches(config.get("exact_matches") or [], registry))
        rules.extend(self._parse_patterns(config.get("patterns") or {}, registry))

        synthesizer = self._parse_synthesis(config.get("synthesis") or {}, registry, columns)

        if not tier_table.is_calibrated():
            self.logger.warning(
                f"Machine {machine_id}: expected RTP {tier_table.expected_rtp():.4f} is outside "
                f"{tier_table.target_rtp} +/- {tier_table.tolerance}"
            )

        # A machine is shared by worker threads; each thread gets its own generator
        rng_seed = config.get("rng_seed", None)
        try:
            rng_strategy = self.rng_provider.get_thread_local_rng(rng_strategy_name, rng_seed)
        except ValueError as e:
            raise self._error(str(e)) from e
        self.logger.debug(f"Using RNG strategy: {rng_strategy_name}, seed: {rng_seed}")

        return SlotMachine(machine_id, registry, tier_table, rules, synthesizer,
                           rows=rows, columns=columns, rng_strategy=rng_strategy, config=config)

    def create_machine_from_file(self, config_loader, file_path: str,
                                 machine_id: Optional[str] = None,
                                 schema_path: Optional[str] = None,
                                 rng_strategy_name: str = "mersenne") -> SlotMachine:
        """
        Create a machine from a configuration file.

        Args:
            config_loader: Configuration loader instance
            file_path: Path to configuration file
            machine_id: Optional explicit machine ID (overrides ID in config)
            schema_path: Optional JSON schema checked before semantic validation
            rng_strategy_name: Name of RNG strategy to use

        Returns:
            Initialized SlotMachine instance
        """
        self.logger.info(f"Creating machine from file: {file_path}")

        config = config_loader.load_file(file_path, schema_path)

        if machine_id is None:
            machine_id = config.get("machine_id") or os.path.splitext(os.path.basename(file_path))[0]

        return self.create_machine(machine_id, config, rng_strategy_name)

    # ---- parsing ----

    def _error(self, message: str) -> MachineConfigError:
        self.logger.error(message)
        return MachineConfigError(message)

    def _parse_grid(self, grid_config: Mapping[str, Any]):
        rows = grid_config.get("rows", DEFAULT_ROWS)
        columns = grid_config.get("columns", DEFAULT_COLUMNS)
        for name, value in (("rows", rows), ("columns", columns)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise self._error(f"Grid {name} must be a positive integer, got {value!r}")
        return rows, columns

    def _parse_tier_table(self, tiers_config: Optional[Mapping[str, Any]],
                          rtp_config: Mapping[str, Any]) -> TierTable:
        target = float(rtp_config.get("target", DEFAULT_TARGET_RTP))
        tolerance = float(rtp_config.get("tolerance", DEFAULT_RTP_TOLERANCE))

        if not tiers_config:
            default = TierTable.default()
            return TierTable(dict(default.items()), target, tolerance)

        specs = {}
        for name, entry in tiers_config.items():
            try:
                tier = OutcomeTier.parse(name)
            except ValueError:
                raise self._error(f"Unknown outcome tier: {name}")

            entry = entry or {}
            try:
                if "multiplier" in entry:
                    low = high = float(entry["multiplier"])
                else:
                    low = float(entry.get("min_multiplier", 0.0))
                    high = float(entry.get("max_multiplier", low))
                specs[tier] = TierSpec(float(entry.get("probability", 0.0)), low, high)
            except (TypeError, ValueError) as e:
                raise self._error(f"Invalid settings for tier {name}: {e}")

        try:
            return TierTable(specs, target, tolerance)
        except ValueError as e:
            raise self._error(str(e)) from e

    def _parse_symbols(self, symbols_config: Optional[List[Dict[str, Any]]]) -> SymbolRegistry:
        if not symbols_config:
            raise self._error("Machine configuration defines no symbols")

        symbols = []
        equivalents = {}
        seen = set()
        for entry in symbols_config:
            symbol_id = entry.get("id")
            if not symbol_id:
                raise self._error(f"Symbol entry without id: {entry}")
            symbol_id = str(symbol_id)
            if symbol_id in seen:
                raise self._error(f"Duplicate symbol id: {symbol_id}")
            seen.add(symbol_id)

            try:
                value_tier = ValueTier.parse(entry.get("value_tier"))
            except ValueError:
                raise self._error(f"Unknown value tier '{entry.get('value_tier')}' for symbol {symbol_id}")

            weight = entry.get("weight", 0)
            if isinstance(weight, bool) or not isinstance(weight, int):
                raise self._error(f"Weight of symbol {symbol_id} must be an integer, got {weight!r}")
            if weight <= 0:
                raise self._error(f"Weight of symbol {symbol_id} must be positive, got {weight}")

            symbols.append(Symbol(symbol_id, weight, value_tier, entry.get("name")))
            if entry.get("equivalents"):
                equivalents[symbol_id] = [str(target) for target in entry["equivalents"]]

        try:
            return SymbolRegistry(symbols, equivalents)
        except KeyError as e:
            raise self._error(f"Unknown symbol id in equivalents: {e.args[0]}") from e

    def _parse_commands(self, commands_config: Any, context: str) -> List[RewardCommand]:
        if not isinstance(commands_config, list) or not commands_config:
            raise self._error(f"Reward {context} needs a non-empty list of commands")
        try:
            return [RewardCommand.parse(raw) for raw in commands_config]
        except InvalidExpressionError as e:
            raise self._error(f"Reward {context}: {e}") from e

    def _lookup(self, registry: SymbolRegistry, symbol_id: Any, context: str) -> Symbol:
        symbol = registry.get(str(symbol_id))
        if symbol is None:
            raise self._error(f"Unknown symbol id '{symbol_id}' in {context}")
        return symbol

    def _parse_row_rewards(self, symbols_config: List[Dict[str, Any]],
                           registry: SymbolRegistry) -> List[RewardRule]:
        rules = []
        for entry in symbols_config:
            symbol = registry.get(str(entry["id"]))
            for reward in entry.get("rewards") or []:
                count = reward.get("count")
                if isinstance(count, bool) or not isinstance(count, int) or count < 1:
                    raise self._error(f"Reward count for {symbol.id} must be a positive integer, got {count!r}")
                commands = self._parse_commands(reward.get("commands"), f"{symbol.id}x{count}")
                rules.append(RowReward(symbol, count, commands))
        return rules

    def _parse_exact_matches(self, exact_config: List[Dict[str, Any]],
                             registry: SymbolRegistry) -> List[RewardRule]:
        rules = []
        for index, entry in enumerate(exact_config):
            ids = entry.get("symbols") or []
            if not ids:
                raise self._error(f"Exact match #{index} lists no symbols")
            symbols = [self._lookup(registry, symbol_id, f"exact match #{index}") for symbol_id in ids]
            commands = self._parse_commands(entry.get("commands"), f"exact match #{index}")
            rules.append(ExactMatchReward(symbols, commands))
        return rules

    def _parse_patterns(self, patterns_config: Mapping[str, Any],
                        registry: SymbolRegistry) -> List[RewardRule]:
        rules = []
        for name, entry in patterns_config.items():
            entry = entry or {}
            try:
                kind = PatternKind.parse(entry.get("type", ""))
            except ValueError:
                raise self._error(f"Unknown pattern type '{entry.get('type')}' for pattern {name}")

            required = None
            if entry.get("item") is not None:
                required = self._lookup(registry, entry["item"], f"pattern {name}")

            commands = self._parse_commands(entry.get("commands"), f"pattern {name}")
            rules.append(PatternReward(str(name), kind, commands, required))
        return rules

    def _parse_synthesis(self, synthesis_config: Mapping[str, Any],
                         registry: SymbolRegistry, columns: int) -> SymbolSynthesizer:
        max_attempts = synthesis_config.get("max_attempts", DEFAULT_MAX_ATTEMPTS)
        loss_threshold = synthesis_config.get("loss_threshold", DEFAULT_LOSS_THRESHOLD)

        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise self._error(f"synthesis.max_attempts must be a positive integer, got {max_attempts!r}")
        if isinstance(loss_threshold, bool) or not isinstance(loss_threshold, int) or loss_threshold < 2:
            raise self._error(f"synthesis.loss_threshold must be an integer >= 2, got {loss_threshold!r}")

        jackpot_id = synthesis_config.get("jackpot_symbol")
        if jackpot_id is not None:
            jackpot_id = self._lookup(registry, jackpot_id, "synthesis.jackpot_symbol").id

        large_high_chance = synthesis_config.get("large_high_chance", DEFAULT_LARGE_HIGH_CHANCE)
        if isinstance(large_high_chance, bool) or not isinstance(large_high_chance, (int, float)) \
                or not 0 <= large_high_chance <= 1:
            raise self._error(f"synthesis.large_high_chance must be within [0, 1], got {large_high_chance!r}")

        fallback_order = synthesis_config.get("fallback_order")
        if fallback_order is not None:
            fallback_order = self._parse_fallback_order(fallback_order, registry, loss_threshold, columns)

        return SymbolSynthesizer(registry, max_attempts=max_attempts, loss_threshold=loss_threshold,
                                 jackpot_symbol_id=jackpot_id, large_high_chance=float(large_high_chance),
                                 fallback_order=fallback_order)

    def _parse_fallback_order(self, fallback_order: Any, registry: SymbolRegistry,
                              loss_threshold: int, columns: int) -> List[str]:
        if not isinstance(fallback_order, list) or not fallback_order:
            raise self._error("synthesis.fallback_order must be a non-empty list of symbol ids")

        order = []
        for symbol_id in fallback_order:
            symbol = self._lookup(registry, symbol_id, "synthesis.fallback_order")
            if registry.is_wildcard(symbol):
                raise self._error(f"Wildcard {symbol.id} cannot be part of synthesis.fallback_order")
            order.append(symbol.id)

        # The fallback row must itself be a loss
        uses = max(sum(1 for i in range(columns) if order[i % len(order)] == symbol_id) for symbol_id in order)
        if uses >= loss_threshold:
            raise self._error(
                f"synthesis.fallback_order puts a symbol on {uses} of {columns} reels; "
                f"it must stay below the loss threshold {loss_threshold}"
            )
        return order
