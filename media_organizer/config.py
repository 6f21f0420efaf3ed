"""Configuration management for media organization."""

import os
import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional
import logging

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = ['jpg', 'raf', 'mov']
MAX_PARALLEL_JOBS = 64


class Config:
    """Manages organizer configuration loaded from an optional YAML file."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_path: Path to config file. If None, searches standard
                locations and falls back to built-in defaults.
        """
        if config_path is not None and not Path(config_path).exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        self.config_path = config_path or self._find_config_file()
        self.config: Dict[str, Any] = {}
        if self.config_path:
            self._load_config()

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in standard locations."""
        possible_paths = [
            Path.cwd() / "organizer.local.yml",
            Path.cwd() / "organizer.yml",
            Path.home() / ".config" / "media-organizer" / "config.yml",
        ]

        for config_file in possible_paths:
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return str(config_file.resolve())

        logger.debug("No configuration file found, using defaults")
        return None

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r') as f:
                self.config = yaml.safe_load(f) or {}
            logger.info(f"Loaded configuration from {self.config_path}")
        except Exception as e:
            logger.error(f"Failed to load config from {self.config_path}: {e}")
            raise

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key_path: Dot-separated path like 'media_organizer.process.parallel_jobs'
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def get_supported_types(self) -> List[str]:
        """Get the media types scanned when no filter is given."""
        types = self.get('media_organizer.types', SUPPORTED_TYPES)
        return [t.lower().lstrip('.') for t in types]

    def get_parallel_jobs(self) -> int:
        """Get number of worker threads per pool."""
        default = min((os.cpu_count() or 1) * 2, MAX_PARALLEL_JOBS)
        return self.get('media_organizer.process.parallel_jobs', default)

    def get_queue_size(self) -> int:
        """Get bounded work queue size."""
        return self.get('media_organizer.process.queue_size', 100)

    def get_progress_step(self) -> float:
        """Get percentage increment between progress log lines."""
        return float(self.get('media_organizer.process.progress_step', 20))

    def is_no_sooc(self) -> bool:
        """Check if JPEGs go directly into the date folder."""
        return self.get('media_organizer.layout.no_sooc', False)

    def get_min_free_space_mb(self) -> int:
        """Get space to keep free on the destination volume, in MB."""
        return self.get('media_organizer.safety.min_free_space_mb', 0)

    def should_verify_copies(self) -> bool:
        """Check if copies are re-fingerprinted after writing."""
        return self.get('media_organizer.safety.verify_copies', True)

    def get_log_level(self) -> str:
        """Get logging level."""
        return self.get('media_organizer.logging.level', 'INFO')

    def validate_config(self) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of validation error messages
        """
        errors = []

        types = self.get_supported_types()
        if not types:
            errors.append("No media types configured")
        for media_type in types:
            if media_type not in SUPPORTED_TYPES:
                errors.append(f"Unsupported media type: {media_type} "
                              f"(must be one of {', '.join(SUPPORTED_TYPES)})")

        parallel_jobs = self.get_parallel_jobs()
        if not isinstance(parallel_jobs, int) or not 1 <= parallel_jobs <= MAX_PARALLEL_JOBS:
            errors.append(f"Invalid parallel_jobs value: {parallel_jobs} (must be 1-{MAX_PARALLEL_JOBS})")

        queue_size = self.get_queue_size()
        if not isinstance(queue_size, int) or queue_size < 1:
            errors.append(f"Invalid queue_size value: {queue_size} (must be positive)")

        step = self.get_progress_step()
        if step <= 0 or step > 100:
            errors.append(f"Invalid progress_step value: {step} (must be in (0, 100])")

        if self.get_min_free_space_mb() < 0:
            errors.append("min_free_space_mb must not be negative")

        return errors

    def __str__(self) -> str:
        """String representation of configuration."""
        return f"Config(path={self.config_path}, types={self.get_supported_types()})"
