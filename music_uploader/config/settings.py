"""
Configuration management for music-uploader

This module handles loading, validation, and management of application settings
from YAML files and environment variables. It provides a centralized
configuration object shared by the CLI, the Apple Music client and the
upload pipeline.

The configuration is organized into logical sections using dataclasses:
- Apple Music API settings (tokens, storefront, base URL)
- Playlist library location
- Upload pipeline behavior (concurrency, halt policy)
- Network behavior (timeouts, pacing, retries)
- Logging and token storage

Tokens should be provided through environment variables (or a .env file)
rather than stored in YAML files.
"""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, asdict
from dotenv import load_dotenv

from ..exceptions import ConfigError

# Load environment variables from .env file if present
load_dotenv()


@dataclass
class AppleMusicConfig:
    """
    Apple Music API configuration

    The developer token is the signed JWT issued for the Apple developer
    account; the user token is the Music User Token obtained through the
    MusicKit authorization flow. The storefront is the ISO 3166-1 alpha-2
    region code that scopes every catalog search.
    """
    developer_token: str = ""
    user_token: str = ""
    storefront: str = "au"
    api_base_url: str = "https://api.music.apple.com"


@dataclass
class LibraryConfig:
    """Location of the local playlist definition files"""
    playlists_directory: str = "Playlists"


@dataclass
class SyncConfig:
    """
    Upload pipeline configuration

    concurrency bounds how many catalog searches run at once for a playlist.
    The default of 1 searches tracks strictly one after another in file order.
    stop_on_create_failure abandons the rest of the run when a remote
    playlist cannot be created.
    """
    concurrency: int = 1
    stop_on_create_failure: bool = True


@dataclass
class NetworkConfig:
    """
    Network and HTTP configuration settings

    max_retries of 0 means a single attempt per request. Retries only apply
    to searches and track attaches, never to playlist creation.
    """
    user_agent: str = "music-uploader/1.0"
    request_timeout: int = 30
    requests_per_second: int = 10
    max_retries: int = 0
    retry_delay: float = 1.0
    retry_backoff: float = 2.0


@dataclass
class LoggingConfig:
    """Logging configuration and output settings"""
    level: str = "INFO"
    file: str = ""
    max_size: str = "10MB"
    backup_count: int = 3
    console_output: bool = True
    colored_output: bool = True


@dataclass
class SecurityConfig:
    """Where the Music User Token and the user config file are stored"""
    token_storage_path: str = "~/.music-uploader/tokens.json"
    config_directory: str = "~/.music-uploader/"


class Settings:
    """
    Main settings class that manages all configuration

    Loads settings from the first YAML file found, then applies
    environment variable overrides. Sections are exposed as attributes
    (settings.applemusic, settings.sync, ...).
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize settings from config file and environment variables

        Args:
            config_path: Path to custom config file, if None uses default locations
        """
        self.config_path = config_path
        self.config_dir = Path.home() / ".music-uploader"

        self.applemusic = AppleMusicConfig()
        self.library = LibraryConfig()
        self.sync = SyncConfig()
        self.network = NetworkConfig()
        self.logging = LoggingConfig()
        self.security = SecurityConfig()

        self._load_config()
        self._load_environment_variables()

    def _sections(self) -> Dict[str, Any]:
        return {
            'applemusic': self.applemusic,
            'library': self.library,
            'sync': self.sync,
            'network': self.network,
            'logging': self.logging,
            'security': self.security,
        }

    def _load_config(self) -> None:
        """
        Load configuration from YAML file

        Searches the explicit path first, then the user config directory and
        the working directory. The first file found is used.

        Raises:
            ConfigError: If an explicitly requested file is missing or any
                         config file contains invalid YAML
        """
        if self.config_path and not Path(self.config_path).exists():
            raise ConfigError(
                f"Config file not found: {self.config_path}",
                details={'file_path': str(self.config_path)}
            )

        config_paths = [
            self.config_path,
            self.config_dir / "config.yaml",
            Path("config/config.yaml"),
            Path("config.yaml")
        ]

        config_data = {}
        for path in config_paths:
            if path and Path(path).exists():
                try:
                    with open(path, 'r', encoding='utf-8') as f:
                        config_data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigError(
                        f"Invalid YAML in {path}: {e}",
                        details={'file_path': str(path)}
                    )
                self.loaded_from = Path(path)
                break
        else:
            self.loaded_from = None

        if not isinstance(config_data, dict):
            raise ConfigError(f"Config file {self.loaded_from} must contain a mapping")

        self._apply_config(config_data)

    def _apply_config(self, config_data: Dict[str, Any]) -> None:
        """
        Apply configuration data to dataclass instances

        Only attributes that exist on the target dataclass are updated;
        unknown sections and keys are ignored.

        Args:
            config_data: Dictionary containing configuration sections
        """
        config_mapping = self._sections()

        for section_name, section_data in config_data.items():
            if section_name in config_mapping and isinstance(section_data, dict):
                config_obj = config_mapping[section_name]
                for key, value in section_data.items():
                    if hasattr(config_obj, key):
                        setattr(config_obj, key, value)

    def _load_environment_variables(self) -> None:
        """
        Load sensitive configuration from environment variables

        Environment variables take precedence over file-based configuration.
        """
        env_mappings = {
            'APPLE_MUSIC_DEVELOPER_TOKEN': lambda v: setattr(self.applemusic, 'developer_token', v),
            'APPLE_MUSIC_USER_TOKEN': lambda v: setattr(self.applemusic, 'user_token', v),
            'APPLE_MUSIC_STOREFRONT': lambda v: setattr(self.applemusic, 'storefront', v),
            'MUSIC_UPLOADER_PLAYLISTS_DIR': lambda v: setattr(self.library, 'playlists_directory', v),
        }

        for env_var, setter in env_mappings.items():
            value = os.getenv(env_var)
            if value:
                setter(value)

    def get_playlists_directory(self) -> Path:
        """Return the playlist definitions directory with ~ expanded"""
        return Path(self.library.playlists_directory).expanduser()

    def get_config_directory(self) -> Path:
        """Return the configuration directory with ~ expanded"""
        return Path(self.security.config_directory).expanduser()

    def get_token_storage_path(self) -> Path:
        """Return the Music User Token storage file with ~ expanded"""
        return Path(self.security.token_storage_path).expanduser()

    def save_config(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Save current configuration to file

        Tokens are blanked before writing.

        Args:
            path: Custom path to save config, defaults to user config directory

        Returns:
            Path the configuration was written to

        Raises:
            ConfigError: If the configuration cannot be saved
        """
        if not path:
            target = self.get_config_directory() / "config.yaml"
        else:
            target = Path(path)

        config_data = {name: asdict(section) for name, section in self._sections().items()}

        config_data['applemusic']['developer_token'] = ""
        config_data['applemusic']['user_token'] = ""

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, 'w', encoding='utf-8') as f:
                yaml.dump(config_data, f, default_flow_style=False, indent=2)
        except OSError as e:
            raise ConfigError(f"Failed to save config to {target}: {e}", details={'file_path': str(target)})

        return target

    def validate(self) -> List[str]:
        """
        Validate current configuration

        Returns:
            List of human-readable problems, empty when the configuration is usable
        """
        from ..utils.validation import validate_storefront

        errors = []

        is_valid, error_msg = validate_storefront(self.applemusic.storefront)
        if not is_valid:
            errors.append(error_msg)

        if not self.applemusic.api_base_url.startswith(('http://', 'https://')):
            errors.append(f"Invalid API base URL: {self.applemusic.api_base_url}")

        if not isinstance(self.sync.concurrency, int) or self.sync.concurrency < 1:
            errors.append(f"Concurrency must be a positive integer: {self.sync.concurrency}")

        if not isinstance(self.network.max_retries, int) or self.network.max_retries < 0:
            errors.append(f"max_retries must be zero or a positive integer: {self.network.max_retries}")

        if self.network.requests_per_second < 1:
            errors.append(f"requests_per_second must be at least 1: {self.network.requests_per_second}")

        if self.network.request_timeout <= 0:
            errors.append(f"request_timeout must be positive: {self.network.request_timeout}")

        return errors

    def __str__(self) -> str:
        sections = [
            f"Storefront: {self.applemusic.storefront}",
            f"Playlists: {self.library.playlists_directory}",
            f"Concurrency: {self.sync.concurrency}",
            f"Retries: {self.network.max_retries}",
        ]
        return f"Settings({', '.join(sections)})"


# Global settings instance for singleton pattern
settings = Settings()


def get_settings() -> Settings:
    """
    Get the global settings instance

    Returns:
        The global Settings instance
    """
    return settings


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """
    Reload settings from configuration files

    Args:
        config_path: Optional path to specific config file

    Returns:
        New Settings instance with reloaded configuration
    """
    global settings
    settings = Settings(config_path)
    return settings
