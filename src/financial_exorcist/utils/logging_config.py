"""
Centralized logging configuration for the Financial Exorcist.
Provides component-specific loggers, optionally with separate log files.
"""

import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from ..config import get_config

LOGGER_PREFIX = "exorcist"

DETAILED_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - "
    "%(funcName)s() - %(message)s"
)
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

# Module path fragment -> component
MODULE_COMPONENTS = {
    "possession_engine": "possession",
    "rules": "possession",
    "demons": "possession",
    "ritual_service": "ritual",
    "rituals": "ritual",
    "audit_logger": "audit",
    "audit_store": "audit",
    "events": "audit",
    "purity": "purity",
    "memory_impl": "store",
    "interfaces": "store",
    "exorcism_service": "service",
    "cli": "cli",
}


class ComponentLogger:
    """Manages component-specific logging."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _to_file = False
    _level = logging.INFO

    # Component definitions with their log files
    COMPONENTS = {
        "possession": {"level": logging.INFO, "file": "possession.log"},
        "ritual": {"level": logging.INFO, "file": "ritual.log"},
        "audit": {"level": logging.INFO, "file": "audit.log"},
        "purity": {"level": logging.INFO, "file": "purity.log"},
        "store": {"level": logging.INFO, "file": "store.log"},
        "service": {"level": logging.INFO, "file": "service.log"},
        "cli": {"level": logging.INFO, "file": "cli.log"},
        "main": {"level": logging.INFO, "file": "main.log"},
        "error": {"level": logging.ERROR, "file": "errors.log"},  # Centralized error log
    }

    @classmethod
    def initialize(
        cls,
        log_dir: Optional[str] = None,
        debug: Optional[bool] = None,
        to_file: Optional[bool] = None,
    ) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Without file logging the component loggers propagate to the root
        logger and the host application decides where records go.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components
            to_file: Write per-component log files. Defaults to config.app.log_to_file
        """
        if cls._initialized:
            return

        config = get_config()
        debug = config.app.debug if debug is None else debug
        cls._to_file = config.app.log_to_file if to_file is None else to_file
        cls._level = (
            logging.DEBUG
            if debug
            else getattr(logging, config.app.log_level.upper(), logging.INFO)
        )

        if cls._to_file:
            base_dir = Path(log_dir or config.app.log_dir)
            # Session-specific subdirectory
            cls._log_dir = base_dir / datetime.now().strftime("%Y%m%d_%H%M%S")
            cls._log_dir.mkdir(parents=True, exist_ok=True)

        for component_name in cls.COMPONENTS:
            cls._create_component_logger(component_name)

        cls._initialized = True

        main_logger = cls._loggers.get("main")
        if main_logger and cls._to_file:
            main_logger.info("=" * 80)
            main_logger.info("Financial Exorcist Logging System Initialized")
            main_logger.info(f"Log directory: {cls._log_dir}")
            main_logger.info(f"Debug mode: {debug}")
            main_logger.info("=" * 80)

    @classmethod
    def _create_component_logger(cls, component: str) -> None:
        """Create a component logger."""
        if component in cls._loggers:
            return

        logger = logging.getLogger(f"{LOGGER_PREFIX}.{component}")
        component_level = cls.COMPONENTS.get(component, {}).get("level", logging.INFO)
        level = max(cls._level, component_level) if component == "error" else cls._level
        logger.setLevel(level)

        if cls._to_file and cls._log_dir is not None:
            # Clear existing handlers
            logger.handlers.clear()
            logger.propagate = False

            file_name = cls.COMPONENTS.get(component, {}).get("file", f"{component}.log")
            file_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / file_name,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(
                logging.Formatter(DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
            )
            logger.addHandler(file_handler)

            # Console handler for errors
            if component in ("error", "main"):
                console_handler = logging.StreamHandler(sys.stderr)
                console_handler.setLevel(logging.ERROR)
                console_handler.setFormatter(
                    logging.Formatter(SIMPLE_FORMAT, datefmt="%H:%M:%S")
                )
                logger.addHandler(console_handler)

        cls._loggers[component] = logger

    @classmethod
    def resolve_component(cls, name: str) -> str:
        """Map a component name or module ``__name__`` to a component."""
        if name in cls.COMPONENTS:
            return name

        if "." in name:
            for part in reversed(name.split(".")):
                if part in MODULE_COMPONENTS:
                    return MODULE_COMPONENTS[part]
            return "main"

        return name

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (possession, ritual, audit, ...)
                      Can also be a module path like 'financial_exorcist.core.ritual_service'

        Returns:
            Logger instance for the component
        """
        if not cls._initialized:
            cls.initialize()

        component = cls.resolve_component(component)
        if component not in cls._loggers:
            cls._create_component_logger(component)
        return cls._loggers[component]

    @classmethod
    def log_exception(
        cls, component: str, exc: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log an exception with context to both the component and error logs.

        Args:
            component: Component where the exception occurred
            exc: The exception to log
            context: Additional context information
        """
        component_logger = cls.get_logger(component)
        error_logger = cls.get_logger("error")

        context_str = ""
        if context:
            context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

        component_logger.error(
            f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}",
            exc_info=exc,
        )
        error_logger.error(f"[{component}] {type(exc).__name__}: {exc}{context_str}")

    @classmethod
    def get_log_directory(cls) -> Optional[Path]:
        """Get the current log directory path."""
        return cls._log_dir

    @classmethod
    def shutdown(cls) -> None:
        """Close file handlers and forget all loggers (used by tests)."""
        for logger in cls._loggers.values():
            if cls._to_file:
                for handler in list(logger.handlers):
                    handler.close()
                    logger.removeHandler(handler)
                logger.propagate = True
        cls._loggers = {}
        cls._initialized = False
        cls._log_dir = None
        cls._to_file = False


# Convenience functions
def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def initialize_logging(
    log_dir: Optional[str] = None,
    debug: Optional[bool] = None,
    to_file: Optional[bool] = None,
) -> None:
    """Initialize the logging system."""
    ComponentLogger.initialize(log_dir=log_dir, debug=debug, to_file=to_file)


def log_exception(
    component: str, exc: Exception, context: Optional[Dict[str, Any]] = None
) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)


def get_log_directory() -> Optional[Path]:
    """Get the current log directory path."""
    return ComponentLogger.get_log_directory()
