# zen_wallet/core/config_manager.py - Configuration management

import os
import yaml
import json
import toml
from typing import Any, Dict, Optional
from pathlib import Path
from dataclasses import asdict, fields
from enum import Enum

from zen_wallet.core.config import WalletConfig
from zen_wallet.core.exceptions import ConfigError
from zen_wallet.utils.logging import logger

ENV_PREFIX = "ZEN_WALLET_"

class ConfigFormat(Enum):
    YAML = "yaml"
    JSON = "json"
    TOML = "toml"

class ConfigSource(Enum):
    FILE = "file"
    ENV = "environment"
    DEFAULT = "default"

class ConfigManager:
    def __init__(self, config_path: Optional[str] = None, auto_save: bool = False):
        self.config_path = config_path
        self.auto_save = auto_save
        self.config_format = ConfigFormat.YAML
        self.config_source = ConfigSource.DEFAULT
        self._values: Dict[str, Any] = {}
        self._load_config()
        self._apply_environment_overrides()
        self.config = WalletConfig(**self._values)

    def _load_config(self):
        """Load configuration from file or use defaults"""
        if not self.config_path:
            return

        config_file = Path(self.config_path)
        self.config_format = self._detect_format(config_file)
        if not config_file.exists():
            # Create default config file
            self.config = WalletConfig()
            self.save()
            return

        try:
            with open(config_file, 'r') as f:
                if self.config_format == ConfigFormat.YAML:
                    config_data = yaml.safe_load(f)
                elif self.config_format == ConfigFormat.JSON:
                    config_data = json.load(f)
                else:
                    config_data = toml.load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Error loading config file {config_file}: {e}")

        self._update_config_from_dict(config_data)
        self.config_source = ConfigSource.FILE
        logger.debug(f"Configuration loaded from {config_file}")

    def _detect_format(self, config_file: Path) -> ConfigFormat:
        suffix = config_file.suffix.lower()
        if suffix in ['.yaml', '.yml']:
            return ConfigFormat.YAML
        elif suffix == '.json':
            return ConfigFormat.JSON
        elif suffix == '.toml':
            return ConfigFormat.TOML
        raise ConfigError(f"Unsupported config format: {config_file.suffix}")

    def _update_config_from_dict(self, config_data: Optional[Dict[str, Any]]):
        """Update config from dictionary"""
        if not config_data:
            return

        # Files may nest the settings under a "wallet" section
        wallet_data = config_data.get('wallet', config_data)
        known = {config_field.name for config_field in fields(WalletConfig)}
        for key, value in wallet_data.items():
            if key in known:
                self._values[key] = value
            else:
                logger.warning(f"Ignoring unknown config key: {key}")

    def _apply_environment_overrides(self):
        """Apply ZEN_WALLET_<FIELD> environment variables"""
        overridden = False
        for config_field in fields(WalletConfig):
            raw = os.environ.get(ENV_PREFIX + config_field.name.upper())
            if raw is None:
                continue
            self._values[config_field.name] = self._coerce(config_field.name, raw)
            overridden = True

        if overridden:
            self.config_source = ConfigSource.ENV

    def _coerce(self, name: str, raw: str) -> Any:
        current = next(f.default for f in fields(WalletConfig) if f.name == name)
        try:
            if name == 'address_prefix':
                return int(raw, 16)
            if isinstance(current, bool):
                return raw.lower() in ('1', 'true', 'yes')
            if isinstance(current, int):
                return int(raw)
        except ValueError:
            raise ConfigError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw}")
        return raw

    def save(self):
        """Save current configuration to file"""
        if not self.config_path:
            return

        config_file = Path(self.config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        config_dict = {'wallet': self.to_dict()}

        try:
            with open(config_file, 'w') as f:
                if self.config_format == ConfigFormat.YAML:
                    yaml.dump(config_dict, f, default_flow_style=False)
                elif self.config_format == ConfigFormat.JSON:
                    json.dump(config_dict, f, indent=2)
                else:
                    toml.dump(config_dict, f)
        except OSError as e:
            raise ConfigError(f"Error saving config file {config_file}: {e}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary"""
        data = asdict(self.config)
        data['address_prefix'] = f"{self.config.address_prefix:02x}"
        # TOML has no null; drop unset optionals
        return {key: value for key, value in data.items() if value is not None}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value"""
        return getattr(self.config, key, default)

    def set(self, key: str, value: Any) -> bool:
        """Set configuration value"""
        if not hasattr(self.config, key):
            return False

        previous = getattr(self.config, key)
        setattr(self.config, key, value)
        try:
            self.config.validate()
        except ConfigError:
            setattr(self.config, key, previous)
            raise
        if self.auto_save:
            self.save()
        return True
