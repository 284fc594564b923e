"""
Configuration management for the drone coordinates generator.
"""

from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, List, Union
import yaml
import json
from pathlib import Path

from .error_handling import ConfigurationError, handle_configuration_error
from .region_catalog import Region


DEFAULT_SERVICE_NAME = "Drone Coordinates Generator"


@dataclass
class ServiceConfig:
    """Configuration parameters for the coordinates generator service."""

    # Broadcast cadence
    interval_ms: int = 3000

    # Regions readings are generated in
    regions: List[Region] = field(default_factory=list)

    # MQTT settings
    mqtt_host: str = "localhost"
    mqtt_port: int = 1883
    mqtt_topic: str = "coordinates-broadcast"
    mqtt_inbound_topic: str = "coordinate"  # Empty string disables the inbound subscription
    mqtt_qos: int = 0
    mqtt_connect_timeout_s: float = 10.0  # Per attempt; the network loop keeps retrying afterwards
    client_id: str = ""

    # HTTP query API
    http_host: str = "0.0.0.0"
    http_port: int = 8080
    service_name: str = DEFAULT_SERVICE_NAME

    # Testing options
    deterministic_seed: Optional[int] = None
    offline_mode: bool = False  # Print JSON instead of MQTT

    def __post_init__(self):
        """Convert raw region mappings and validate."""
        self.regions = [
            region if isinstance(region, Region) else Region.from_dict(region)
            for region in (self.regions or [])
        ]
        self.validate()

    def validate(self) -> None:
        """
        Validate configuration parameters and raise clear errors for invalid values.

        Raises:
            ConfigurationError: If configuration parameters are invalid
        """
        if isinstance(self.interval_ms, bool) or not isinstance(self.interval_ms, (int, float)):
            raise ConfigurationError("Broadcast interval must be a number of milliseconds")

        if self.interval_ms <= 0:
            raise ConfigurationError("Broadcast interval must be positive")

        if not self.offline_mode and (not self.mqtt_host or not self.mqtt_host.strip()):
            raise ConfigurationError("MQTT host cannot be empty")

        if self.mqtt_port <= 0 or self.mqtt_port > 65535:
            raise ConfigurationError("MQTT port must be between 1 and 65535")

        if not (0 <= self.mqtt_qos <= 2):
            raise ConfigurationError("MQTT QoS must be 0, 1, or 2")

        if self.mqtt_connect_timeout_s < 0:
            raise ConfigurationError("MQTT connect timeout cannot be negative")

        if not self.mqtt_topic or not self.mqtt_topic.strip():
            raise ConfigurationError("MQTT topic cannot be empty")

        if self.http_port <= 0 or self.http_port > 65535:
            raise ConfigurationError("HTTP port must be between 1 and 65535")

        if not self.service_name or not self.service_name.strip():
            raise ConfigurationError("Service name cannot be empty")

        names = [region.name for region in self.regions]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ConfigurationError(f"Duplicate region names: {', '.join(duplicates)}")

    @property
    def interval_s(self) -> float:
        return self.interval_ms / 1000.0

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'ServiceConfig':
        """
        Create ServiceConfig from dictionary with proper error handling.

        ``cities`` is accepted as an alias for ``regions``.

        Args:
            config_dict: Dictionary containing configuration parameters

        Returns:
            ServiceConfig instance

        Raises:
            ConfigurationError: If configuration is invalid
        """
        config_dict = dict(config_dict)

        if 'cities' in config_dict:
            if 'regions' in config_dict:
                raise ConfigurationError("Specify either 'regions' or 'cities', not both")
            config_dict['regions'] = config_dict.pop('cities')

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration parameters: {', '.join(unknown)}")

        if config_dict.get('regions') is not None and not isinstance(config_dict['regions'], list):
            raise ConfigurationError("'regions' must be a list")

        try:
            return cls(**config_dict)
        except ConfigurationError:
            raise
        except Exception as e:
            raise handle_configuration_error(e, "configuration dictionary")

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'ServiceConfig':
        """
        Load configuration from YAML file with proper error handling.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            ServiceConfig instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            ConfigurationError: If the file cannot be parsed or is invalid
        """
        yaml_path = Path(yaml_path)

        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        try:
            with open(yaml_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise handle_configuration_error(e, str(yaml_path))

        if config_dict is None:
            config_dict = {}
        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file {yaml_path} must contain a mapping")

        return cls.from_dict(config_dict)

    @classmethod
    def from_json(cls, json_path: Union[str, Path]) -> 'ServiceConfig':
        """
        Load configuration from JSON file with proper error handling.

        Args:
            json_path: Path to JSON configuration file

        Returns:
            ServiceConfig instance

        Raises:
            FileNotFoundError: If JSON file doesn't exist
            ConfigurationError: If the file cannot be parsed or is invalid
        """
        json_path = Path(json_path)

        if not json_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {json_path}")

        try:
            with open(json_path, 'r', encoding='utf-8') as f:
                config_dict = json.load(f)
        except json.JSONDecodeError as e:
            raise handle_configuration_error(e, str(json_path))

        if not isinstance(config_dict, dict):
            raise ConfigurationError(f"Configuration file {json_path} must contain an object")

        return cls.from_dict(config_dict)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'ServiceConfig':
        """Load a .yaml, .yml or .json configuration file."""
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix in ('.yaml', '.yml'):
            return cls.from_yaml(path)
        if suffix == '.json':
            return cls.from_json(path)
        raise ConfigurationError(
            f"Unsupported configuration file format: {path.suffix} (supported: .yaml, .yml, .json)"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary.

        Returns:
            Dictionary representation of configuration
        """
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == 'regions':
                result[f.name] = [region.to_dict() for region in value]
            else:
                result[f.name] = value
        return result

    def to_yaml(self, yaml_path: Union[str, Path]) -> None:
        """
        Save configuration to YAML file.

        Args:
            yaml_path: Path where to save YAML configuration
        """
        yaml_path = Path(yaml_path)
        yaml_path.parent.mkdir(parents=True, exist_ok=True)

        with open(yaml_path, 'w', encoding='utf-8') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, indent=2, allow_unicode=True)

    def to_json(self, json_path: Union[str, Path]) -> None:
        """
        Save configuration to JSON file.

        Args:
            json_path: Path where to save JSON configuration
        """
        json_path = Path(json_path)
        json_path.parent.mkdir(parents=True, exist_ok=True)

        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
