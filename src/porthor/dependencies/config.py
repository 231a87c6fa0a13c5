"""Config dependency for FastAPI."""

from __future__ import annotations

import os
from pathlib import Path

from ..config import Config
from ..constants import CONFIG_PATH

__all__ = ["ConfigDependency", "config_dependency"]


class ConfigDependency:
    """Load the configuration on first use and cache it.

    The configuration file is ``PORTHOR_CONFIG_PATH`` if that is set when the
    configuration is first needed, and otherwise the default path. Loading
    the configuration also configures logging.

    Parameters
    ----------
    path
        Explicit configuration path, overriding the environment.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._config: Config | None = None

    @property
    def path(self) -> Path:
        """Path from which the configuration is (or will be) loaded."""
        if self._path:
            return self._path
        return Path(os.getenv("PORTHOR_CONFIG_PATH", CONFIG_PATH))

    def config(self) -> Config:
        """Return the configuration, loading it if necessary."""
        if not self._config:
            self._config = self._load(self.path)
        return self._config

    def set_config_path(self, path: Path) -> None:
        """Switch to a different configuration file and load it.

        Used by the test suite.

        Parameters
        ----------
        path
            The new configuration path.
        """
        self._config = self._load(path)
        self._path = path

    def _load(self, path: Path) -> Config:
        config = Config.from_file(path)
        config.configure_logging()
        return config


config_dependency = ConfigDependency()
"""The shared configuration dependency."""
