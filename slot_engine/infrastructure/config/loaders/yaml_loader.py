# slot_engine/infrastructure/config/loaders/yaml_loader.py
import os
import yaml
import json
import logging
from typing import Dict, Any, List, Optional


class ConfigError(Exception):
    """Base class for errors raised while loading or validating configuration files."""
    pass


class FileNotFoundConfigError(ConfigError):
    """A configuration file or directory does not exist."""
    def __init__(self, path, message=None):
        self.path = path
        self.message = message or f"Configuration file or directory not found: {path}"
        super().__init__(self.message)


class YamlParseError(ConfigError):
    """A YAML document could not be parsed."""
    def __init__(self, file_path, yaml_error):
        self.file_path = file_path
        self.yaml_error = yaml_error
        self.message = f"Error parsing YAML file {file_path}: {str(yaml_error)}"
        super().__init__(self.message)


class SchemaValidationError(ConfigError):
    """A configuration document does not satisfy its JSON schema."""
    def __init__(self, file_path, errors):
        self.file_path = file_path
        self.errors = errors
        error_msg = "\n  - ".join([""] + errors)
        self.message = f"Configuration validation failed for {file_path}:{error_msg}"
        super().__init__(self.message)


class YamlConfigLoader:
    """
    Loads machine and simulation YAML files, optionally validating them
    against a JSON schema.

    In strict mode (the default) a missing file, a parse error or a schema
    violation raises; otherwise the supplied default configuration is used
    and the problem is logged.
    """
    def __init__(self, schema_validator=None):
        """
        Args:
            schema_validator: Optional validator used when a schema path is given
        """
        self.logger = logging.getLogger("infrastructure.config.loader")
        self.schema_validator = schema_validator
        self.strict_mode = True

    def set_strict_mode(self, strict: bool = True):
        """
        Enable or disable strict mode.

        Args:
            strict: Whether missing or invalid files should raise
        """
        self.strict_mode = strict
        return self

    def load_file(self, file_path: str, schema_path: Optional[str] = None,
                  default_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Load a single YAML file and optionally validate it.

        Args:
            file_path: Path to the YAML file
            schema_path: Optional path to a JSON schema to validate against
            default_config: Returned when the file is missing or broken and
                strict mode is off

        Returns:
            Parsed configuration dictionary

        Raises:
            FileNotFoundConfigError: If the file does not exist (strict mode)
            YamlParseError: If the YAML cannot be parsed (strict mode)
            SchemaValidationError: If validation fails (strict mode)
        """
        if not os.path.isfile(file_path):
            self.logger.error(f"Configuration file not found: {file_path}")

            if default_config is not None and not self.strict_mode:
                self.logger.warning(f"Using default configuration instead of missing file: {file_path}")
                return default_config

            raise FileNotFoundConfigError(file_path)

        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            error = YamlParseError(file_path, e)
            self.logger.error(error.message)

            if default_config is not None and not self.strict_mode:
                self.logger.warning(f"Using default configuration due to parse error in {file_path}")
                return default_config

            raise error from e

        self.logger.debug(f"Successfully loaded configuration from {file_path}")

        # Empty file
        if config is None:
            self.logger.warning(f"Empty configuration file: {file_path}")
            config = default_config if default_config is not None else {}

        if schema_path and self.schema_validator:
            schema = self._load_schema(schema_path)
            is_valid, errors = self.schema_validator.validate(config, schema)

            if not is_valid:
                error = SchemaValidationError(file_path, errors)

                if self.strict_mode:
                    raise error

                self.logger.warning(f"{error.message}\nUsing unvalidated configuration.")
            else:
                self.logger.debug(f"Successfully validated configuration against schema: {schema_path}")

        return config

    def load_directory(self, directory_path: str, schema_path: Optional[str] = None,
                       ignore_errors: bool = False) -> Dict[str, Dict[str, Any]]:
        """
        Load every YAML file in a directory.

        Args:
            directory_path: Directory containing YAML files
            schema_path: Optional schema applied to every file
            ignore_errors: Keep going when a single file fails

        Returns:
            Mapping of file name (without extension) to configuration

        Raises:
            FileNotFoundConfigError: If the directory does not exist (strict mode)
        """
        if not os.path.isdir(directory_path):
            self.logger.error(f"Configuration directory not found: {directory_path}")

            if not self.strict_mode:
                self.logger.warning(f"Returning empty configuration for missing directory: {directory_path}")
                return {}

            raise FileNotFoundConfigError(directory_path)

        yaml_files = sorted(f for f in os.listdir(directory_path)
                            if f.endswith('.yaml') or f.endswith('.yml'))

        if not yaml_files:
            self.logger.warning(f"No YAML files found in {directory_path}")
            return {}

        configs = {}
        errors = []

        for filename in yaml_files:
            file_path = os.path.join(directory_path, filename)
            config_name = os.path.splitext(filename)[0]

            try:
                configs[config_name] = self.load_file(file_path, schema_path)
            except ConfigError as e:
                errors.append(f"{filename}: {str(e)}")
                if not ignore_errors and self.strict_mode:
                    raise

        if errors:
            self.logger.error(f"Errors occurred while loading files from {directory_path}:\n" +
                              "\n".join(f"  - {err}" for err in errors))

        failed_count = len(yaml_files) - len(configs)
        self.logger.info(
            f"Loaded {len(configs)} configuration files from {directory_path}" +
            (f" ({failed_count} failed)" if failed_count > 0 else "")
        )

        return configs

    def _load_schema(self, schema_path: str) -> Dict[str, Any]:
        """
        Load a JSON schema file.

        Raises:
            FileNotFoundConfigError: If the schema file does not exist
            ConfigError: If the schema is not valid JSON
        """
        if not os.path.isfile(schema_path):
            error_msg = f"Schema file not found: {schema_path}"
            self.logger.error(error_msg)
            raise FileNotFoundConfigError(schema_path, error_msg)

        try:
            with open(schema_path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except json.JSONDecodeError as e:
            error_msg = f"Error parsing schema file {schema_path}: {str(e)}"
            self.logger.error(error_msg)
            raise ConfigError(error_msg) from e

    def load_with_fallbacks(self, file_paths: List[str], schema_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load the first file in ``file_paths`` that loads successfully.

        Args:
            file_paths: Candidate paths in priority order
            schema_path: Optional schema applied to the candidate

        Returns:
            The first successfully loaded configuration

        Raises:
            ConfigError: If every candidate fails and strict mode is on
        """
        errors = []
        original_strict_mode = self.strict_mode

        try:
            # Each candidate must raise so the next one gets a chance
            self.strict_mode = True

            for path in file_paths:
                try:
                    config = self.load_file(path, schema_path)
                    self.logger.info(f"Successfully loaded configuration from {path}")
                    return config
                except ConfigError as e:
                    errors.append(f"{path}: {str(e)}")

            error_msg = "All configuration files failed to load:\n" + "\n".join(f"  - {err}" for err in errors)
            self.logger.error(error_msg)

            if original_strict_mode:
                raise ConfigError(error_msg)

            self.logger.warning("Using empty configuration as fallback")
            return {}

        finally:
            self.strict_mode = original_strict_mode
