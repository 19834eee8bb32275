# slot_engine/infrastructure/config/validators/schema_validator.py
import jsonschema
import logging
from typing import Dict, Any, Tuple, List


class SchemaValidator:
    """
    Validates configuration data against JSON schemas.
    """
    def __init__(self):
        self.logger = logging.getLogger("infrastructure.config.validator")

    def validate(self, config: Dict[str, Any], schema: Dict[str, Any]) -> Tuple[bool, List[str]]:
        """
        Validate a configuration against a JSON schema.

        Every violation is reported, not just the first one, so a broken
        machine file can be fixed in one pass.

        Args:
            config: The configuration dictionary to validate
            schema: The JSON schema to validate against

        Returns:
            Tuple of (is_valid, error_messages)
        """
        try:
            validator_cls = jsonschema.validators.validator_for(schema)
            validator_cls.check_schema(schema)
        except jsonschema.exceptions.SchemaError as e:
            self.logger.error(f"Invalid schema: {e.message}")
            return False, [f"Schema error: {e.message}"]

        validator = validator_cls(schema)
        errors = []
        for error in sorted(validator.iter_errors(config), key=lambda e: list(e.path)):
            error_path = '.'.join(str(p) for p in error.path) if error.path else 'root'
            errors.append(f"At {error_path}: {error.message}")

        for message in errors:
            self.logger.error(f"Schema validation error: {message}")

        return not errors, errors

