# slot_engine/infrastructure/logging/log_manager.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional, Union


DEFAULT_LOGGING_CONFIG = {
    'level': 'INFO',
    'console': True,
    'console_level': 'INFO',
    'file': {
        'enabled': False,
        'path': 'logs/slot_engine.log',
        'level': 'DEBUG',
        'max_bytes': 10 * 1024 * 1024,  # 10 MB
        'backup_count': 5
    },
    'loggers': {
        'domain.machine': {'level': 'INFO'},
        'application': {'level': 'INFO'},
        'infrastructure.rng': {'level': 'WARNING'}
    }
}


class LogManager:
    """
    Centralized logging configuration manager.
    """
    def __init__(self):
        self.root_logger = logging.getLogger()
        self.loggers = {}  # name -> logger
        self.handlers = {}  # name -> handler
        self.initialized = False

    def initialize(self, config: Dict[str, Any], force: bool = False):
        """
        Initialize logging system based on configuration.

        Args:
            config: Logging configuration dictionary
            force: Reconfigure even if already initialized
        """
        if self.initialized and not force:
            return

        log_level = self._get_log_level(config.get('level', 'INFO'))
        log_format = config.get('format', '%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        log_date_format = config.get('date_format', '%Y-%m-%d %H:%M:%S')
        console_enabled = config.get('console', True)
        file_config = config.get('file', {}) or {}

        self.root_logger.setLevel(log_level)

        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()

        formatter = logging.Formatter(log_format, log_date_format)

        if console_enabled:
            console_level = self._get_log_level(config.get('console_level', log_level))
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(console_level)
            console_handler.setFormatter(formatter)
            self.root_logger.addHandler(console_handler)
            self.handlers['console'] = console_handler

        if file_config.get('enabled', False):
            file_path = file_config.get('path', 'logs/slot_engine.log')
            file_level = self._get_log_level(file_config.get('level', log_level))

            log_dir = os.path.dirname(file_path)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)

            file_handler = RotatingFileHandler(
                file_path,
                maxBytes=file_config.get('max_bytes', 10 * 1024 * 1024),
                backupCount=file_config.get('backup_count', 5)
            )
            file_handler.setLevel(file_level)
            file_handler.setFormatter(formatter)
            self.root_logger.addHandler(file_handler)
            self.handlers['file'] = file_handler

        # Parents before children so a child's level is applied last
        logger_configs = config.get('loggers', {}) or {}
        for logger_name in sorted(logger_configs.keys(), key=lambda x: len(x.split('.'))):
            logger_config = logger_configs[logger_name] or {}
            logger_level = self._get_log_level(logger_config.get('level', log_level))

            logger = logging.getLogger(logger_name)
            logger.setLevel(logger_level)
            logger.propagate = logger_config.get('propagate', True)
            self.loggers[logger_name] = logger

            self.root_logger.debug(
                f"Configured logger '{logger_name}' with level={logging.getLevelName(logger_level)}, "
                f"propagate={logger.propagate}"
            )

        self.root_logger.debug("Logging system initialized")
        self.initialized = True

    def _get_log_level(self, level_name: Union[str, int]) -> int:
        """
        Convert a log level name to its numeric value.

        Args:
            level_name: Level name (DEBUG, INFO, etc.) or numeric value

        Returns:
            Numeric log level, INFO for unknown names
        """
        if isinstance(level_name, int):
            return level_name

        level_map = {
            'CRITICAL': logging.CRITICAL,
            'FATAL': logging.FATAL,
            'ERROR': logging.ERROR,
            'WARNING': logging.WARNING,
            'WARN': logging.WARN,
            'INFO': logging.INFO,
            'DEBUG': logging.DEBUG,
            'NOTSET': logging.NOTSET
        }

        return level_map.get(str(level_name).upper(), logging.INFO)


# Singleton instance
log_manager = LogManager()


def initialize_logging(config: Optional[Dict[str, Any]] = None) -> LogManager:
    """
    Initialize the logging system from the ``logging`` section of a
    simulation config, falling back to DEFAULT_LOGGING_CONFIG.

    Args:
        config: Optional logging configuration dictionary

    Returns:
        The shared LogManager
    """
    if not config:
        config = DEFAULT_LOGGING_CONFIG

    log_manager.initialize(config)
    return log_manager
