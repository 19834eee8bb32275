# slot_engine/main.py
import os
import sys
import json
import logging
import argparse

from slot_engine.infrastructure.config.loaders.yaml_loader import ConfigError, YamlConfigLoader
from slot_engine.infrastructure.config.validators.schema_validator import SchemaValidator
from slot_engine.infrastructure.logging.log_manager import initialize_logging
from slot_engine.infrastructure.rng.rng_provider import RNGProvider
from slot_engine.infrastructure.concurrency.task_executor import ExecutionMode

from slot_engine.domain.machine.factories.machine_factory import MachineConfigError, MachineFactory

from slot_engine.application.registry.machine_registry import CONFIG_ROOT, DEFAULT_SCHEMA_PATH
from slot_engine.application.simulation.rtp_simulator import RtpSimulator
from slot_engine.application.analysis.rtp_analyzer import RtpAnalyzer

DEFAULT_SIMULATION_CONFIG = os.path.normpath(os.path.join(CONFIG_ROOT, "simulation", "default_simulation.yaml"))
DEFAULT_MACHINE_CONFIG = os.path.normpath(os.path.join(CONFIG_ROOT, "machines", "classic_slots.yaml"))


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Slot payout engine RTP simulator")

    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_SIMULATION_CONFIG,
        help="Path to simulation configuration file"
    )

    parser.add_argument(
        "-m", "--machine",
        default=None,
        help="Path to machine configuration file (overrides the simulation config)"
    )

    parser.add_argument(
        "-n", "--spins",
        type=int,
        default=None,
        help="Number of spins to simulate"
    )

    parser.add_argument(
        "--bet",
        type=float,
        default=None,
        help="Bet per spin"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Base RNG seed for a reproducible run"
    )

    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Write the JSON report to this file"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--no-concurrency",
        action="store_true",
        help="Run simulation batches sequentially"
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point for the RTP simulator."""
    args = parse_arguments(argv)

    config_loader = YamlConfigLoader(SchemaValidator())

    try:
        config = config_loader.load_with_fallbacks([args.config, DEFAULT_SIMULATION_CONFIG])
    except ConfigError as e:
        print(f"Error loading configuration: {str(e)}")
        return 1

    log_config = config.get("logging", {}) or {}
    if args.verbose:
        log_config["level"] = "DEBUG"
        log_config["console_level"] = "DEBUG"

    initialize_logging(log_config)
    logger = logging.getLogger("main")
    logger.info(f"Configuration file: {args.config}")

    sim_config = config.get("simulation", {}) or {}
    rng_config = config.get("rng", {}) or {}
    machine_config = config.get("machine", {}) or {}

    spins = args.spins if args.spins is not None else sim_config.get("spins", 100000)
    bet = args.bet if args.bet is not None else sim_config.get("bet", 1.0)
    use_concurrency = sim_config.get("use_concurrency", True) and not args.no_concurrency
    machine_path = args.machine or machine_config.get("config") or DEFAULT_MACHINE_CONFIG

    try:
        machine_settings = config_loader.load_file(machine_path, DEFAULT_SCHEMA_PATH)

        seed = args.seed if args.seed is not None else rng_config.get("seed")
        if seed is not None:
            machine_settings["rng_seed"] = seed

        machine_id = machine_config.get("id") or machine_settings.get("machine_id") or \
            os.path.splitext(os.path.basename(machine_path))[0]

        factory = MachineFactory(RNGProvider())
        machine = factory.create_machine(machine_id, machine_settings,
                                         rng_config.get("strategy", "mersenne"))
    except (ConfigError, MachineConfigError) as e:
        logger.error(f"Cannot build machine from {machine_path}: {str(e)}")
        return 1

    execution_mode = ExecutionMode.MULTITHREAD if use_concurrency else ExecutionMode.SEQUENTIAL
    simulator = RtpSimulator(execution_mode,
                             max_workers=sim_config.get("max_workers"),
                             batch_size=sim_config.get("batch_size", 10000))

    try:
        result = simulator.run(machine, spins, bet)
    except ValueError as e:
        logger.error(f"Simulation failed: {str(e)}")
        return 1

    report = RtpAnalyzer().analyze(result, machine.tier_table)
    report["machine"] = machine.get_info()

    performance = report["performance"]
    logger.info("=" * 60)
    logger.info("SIMULATION COMPLETED")
    logger.info("=" * 60)
    logger.info(f"Total spins: {performance['total_spins']:,}")
    logger.info(f"Total bet: {performance['total_bet']:,.2f}")
    logger.info(f"Total win: {performance['total_win']:,.2f}")
    logger.info(f"Observed RTP: {performance['observed_rtp']:.4f} ({performance['observed_rtp']*100:.2f}%)")
    logger.info(f"Expected RTP: {report['configured']['expected_rtp']:.4f}")
    logger.info(f"Hit rate: {performance['hit_rate']:.4f}")

    output_path = args.output or (config.get("output", {}) or {}).get("report_path")
    if output_path:
        output_dir = os.path.dirname(output_path)
        if output_dir:
            os.makedirs(output_dir, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)
        logger.info(f"Report written to {output_path}")
    else:
        print(json.dumps(report, indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
