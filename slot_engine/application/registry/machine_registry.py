# slot_engine/application/registry/machine_registry.py
import logging
import os
import threading
from typing import Dict, List, Optional

from slot_engine.domain.machine.entities.slot_machine import SlotMachine
from slot_engine.domain.machine.factories.machine_factory import MachineConfigError, MachineFactory
from slot_engine.infrastructure.config.loaders.yaml_loader import ConfigError, FileNotFoundConfigError

CONFIG_ROOT = os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "config")
DEFAULT_MACHINE_DIR = os.path.normpath(os.path.join(CONFIG_ROOT, "machines"))
DEFAULT_SCHEMA_PATH = os.path.normpath(os.path.join(CONFIG_ROOT, "schemas", "machine_schema.json"))


class MachineRegistry:
    """
    Registry of configured slot machines.

    Machines are immutable snapshots. Reloading builds the replacement
    completely before swapping it in under the registry lock, so a spin that
    already holds the old machine finishes on it and a failed reload leaves
    the old machine in place.
    """
    def __init__(self, config_loader, machine_factory: Optional[MachineFactory] = None,
                 rng_provider=None, schema_path: Optional[str] = DEFAULT_SCHEMA_PATH,
                 rng_strategy_name: str = "mersenne"):
        """
        Initialize the machine registry.

        Args:
            config_loader: Configuration loader for machine configs
            machine_factory: Optional machine factory (created if not provided)
            rng_provider: Optional RNG provider for the created factory
            schema_path: JSON schema machine files are validated against
            rng_strategy_name: RNG strategy used for loaded machines
        """
        self.logger = logging.getLogger("application.registry.machine")
        self.config_loader = config_loader
        self.machine_factory = machine_factory or MachineFactory(rng_provider)
        self.schema_path = schema_path
        self.rng_strategy_name = rng_strategy_name

        self._lock = threading.Lock()
        self._machines: Dict[str, SlotMachine] = {}
        self._sources: Dict[str, str] = {}  # machine_id -> config file

    def load_machines(self, config_dir: str = DEFAULT_MACHINE_DIR) -> List[str]:
        """
        Load every machine configuration file in a directory.

        A file that fails to load is logged and skipped.

        Returns:
            List of loaded machine IDs

        Raises:
            FileNotFoundConfigError: If the directory does not exist
        """
        self.logger.info(f"Loading machines from {config_dir}")

        if not os.path.isdir(config_dir):
            self.logger.error(f"Machine directory not found: {config_dir}")
            raise FileNotFoundConfigError(config_dir)

        loaded = []
        for filename in sorted(os.listdir(config_dir)):
            if not filename.endswith((".yaml", ".yml")):
                continue
            try:
                loaded.append(self.load_machine(os.path.join(config_dir, filename)))
            except (ConfigError, MachineConfigError) as e:
                self.logger.error(f"Failed to load machine from {filename}: {str(e)}")

        self.logger.info(f"Loaded {len(loaded)} machines")
        return loaded

    def load_machine(self, config_path: str, machine_id: Optional[str] = None) -> str:
        """
        Load a single machine from a configuration file.

        Returns:
            ID of the loaded machine

        Raises:
            ConfigError: If the file cannot be read or fails schema validation
            MachineConfigError: If the configuration is semantically invalid
        """
        self.logger.info(f"Loading machine from {config_path}")

        machine = self.machine_factory.create_machine_from_file(
            self.config_loader, config_path, machine_id, self.schema_path, self.rng_strategy_name
        )

        with self._lock:
            self._machines[machine.id] = machine
            self._sources[machine.id] = config_path

        self.logger.info(f"Loaded machine {machine.id}")
        return machine.id

    def reload_machine(self, machine_id: str, config_path: Optional[str] = None) -> SlotMachine:
        """
        Rebuild a machine from its configuration file and swap it in.

        Args:
            machine_id: Machine to reload
            config_path: File to load from; defaults to the file it was loaded from

        Returns:
            The new machine

        Raises:
            KeyError: If no source file is known for the machine
        """
        path = config_path or self._sources.get(machine_id)
        if path is None:
            raise KeyError(f"No configuration source known for machine {machine_id}")

        # Built outside the lock; only the swap is guarded
        machine = self.machine_factory.create_machine_from_file(
            self.config_loader, path, machine_id, self.schema_path, self.rng_strategy_name
        )

        with self._lock:
            previous = self._machines.get(machine_id)
            self._machines[machine_id] = machine
            self._sources[machine_id] = path

        self.logger.info(f"Reloaded machine {machine_id} from {path}"
                         + (" (new)" if previous is None else ""))
        return machine

    def get_machine(self, machine_id: str) -> Optional[SlotMachine]:
        """
        Get a machine by ID.

        Returns:
            SlotMachine instance or None if not found
        """
        with self._lock:
            machine = self._machines.get(machine_id)

        if machine is None:
            self.logger.warning(f"Machine not found: {machine_id}")
        return machine

    def get_machine_ids(self) -> List[str]:
        with self._lock:
            return list(self._machines.keys())

    def get_machine_count(self) -> int:
        with self._lock:
            return len(self._machines)

    def add_machine(self, machine: SlotMachine) -> None:
        """Register an already built machine."""
        with self._lock:
            self._machines[machine.id] = machine
        self.logger.debug(f"Added machine {machine.id} to registry")

    def remove_machine(self, machine_id: str) -> bool:
        """
        Remove a machine from the registry.

        Returns:
            True if removed, False if not found
        """
        with self._lock:
            removed = self._machines.pop(machine_id, None) is not None
            self._sources.pop(machine_id, None)

        if removed:
            self.logger.debug(f"Removed machine {machine_id} from registry")
        return removed

    def clear(self) -> None:
        """Clear all machines from the registry."""
        with self._lock:
            self._machines.clear()
            self._sources.clear()
        self.logger.debug("Cleared all machines from registry")
