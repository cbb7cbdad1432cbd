"""
Configuration management for the port-forwarding manager
"""

import copy
import os
from typing import Dict, Any

import yaml


DEFAULT_CONFIG_PATH = "/etc/nft-forward/config.yaml"


class Config:
    """Configuration manager backed by a YAML file"""

    def __init__(self, config_path: str = DEFAULT_CONFIG_PATH):
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.loaded_from_file = False
        self.load()

    def load(self) -> None:
        """Load configuration from YAML file, merged over the defaults"""
        self.config = self._get_default_config()
        try:
            with open(self.config_path, 'r') as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError:
            self.loaded_from_file = False
            return

        if not isinstance(data, dict):
            raise yaml.YAMLError(f"Top level of {self.config_path} must be a mapping")

        _merge(self.config, data)
        self.loaded_from_file = True

    def reload(self) -> None:
        """Reload configuration from file"""
        self.load()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports nested keys with dot notation)"""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value by key (supports nested keys with dot notation)"""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save(self) -> None:
        """Save configuration to file"""
        directory = os.path.dirname(self.config_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(self.config_path, 'w') as f:
            yaml.safe_dump(self.config, f, default_flow_style=False)

    def _get_default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return copy.deepcopy({
            'general': {
                'log_level': 'INFO',
                'log_file': '/var/log/nft-forward/nft-forward.log',
                'lock_file': '/run/nft-forward.lock',
            },
            'nftables': {
                'binary': 'nft',
                'family': 'inet',
                'table': 'port_forward',
                'config_file': '/etc/nftables.conf',
                'service': 'nftables',
                'backup': True,
            },
            'kernel': {
                'sysctl_file': '/etc/sysctl.d/99-custom-forward-bbr.conf',
                'enable_bbr': True,
            },
            'validation': {
                'strict': False,
            },
            'environment': {
                'auto_install': True,
            },
            'notifications': {
                'discord': {
                    'enabled': False,
                    'webhook_url': '',
                    'username': 'nft-forward',
                },
            },
        })


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Recursively merge override into base in place"""
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
