"""
Configuration Parser for the Channel Simulation Framework

This module handles loading and validation of simulation configuration files.
"""

import json
import yaml
import jsonschema
import logging
from typing import Dict, Any
from pathlib import Path

from ..core.config import ChannelConfig, SimulationConfig

logger = logging.getLogger(__name__)

_VECTOR = {
    "type": "array",
    "items": {"type": "number"},
    "minItems": 3,
    "maxItems": 3
}


class ConfigParser:
    """
    Configuration parser and validator for simulation parameters
    """

    # JSON Schema for configuration validation
    CONFIG_SCHEMA = {
        "type": "object",
        "properties": {
            "simulation": {
                "type": "object",
                "properties": {
                    "simulation_time": {"type": "number", "exclusiveMinimum": 0},
                    "time_resolution": {"type": "number", "exclusiveMinimum": 0},
                    "trace": {"type": "string", "enum": ["snr", "rx_power"]},
                    "log_level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
                    "output_directory": {"type": "string"},
                    "trace_file": {"type": ["string", "null"]},
                    "enable_plots": {"type": "boolean"}
                },
                "required": ["simulation_time"],
                "additionalProperties": False
            },
            "link": {
                "type": "object",
                "properties": {
                    "tx_position": _VECTOR,
                    "rx_position": _VECTOR,
                    "tx_velocity": _VECTOR,
                    "rx_velocity": _VECTOR,
                    "track_beams": {"type": "boolean"},
                    "tx_power": {"type": "number"},
                    "noise_figure": {"type": "number", "minimum": 0},
                    "num_resource_blocks": {"type": "integer", "minimum": 1},
                    "resource_block_bandwidth": {"type": "number", "exclusiveMinimum": 0},
                    "active_resource_blocks": {
                        "type": ["array", "null"],
                        "items": {"type": "integer", "minimum": 0}
                    },
                    "antenna_rows": {"type": "integer", "minimum": 1},
                    "antenna_columns": {"type": "integer", "minimum": 1}
                },
                "additionalProperties": False
            },
            "channel": {
                "type": "object",
                "properties": {
                    "scenario": {"type": "string", "enum": ["Uma", "Umi", "Rma", "InH", "InF"]},
                    "frequency": {"type": "number", "exclusiveMinimum": 0},
                    "channel_update_period": {"type": "number", "minimum": 0},
                    "condition_update_period": {"type": "number", "minimum": 0},
                    "shadowing_enabled": {"type": "boolean"},
                    "foliage_loss_enabled": {"type": "boolean"},
                    "foliage_loss": {"type": "number", "minimum": 0},
                    "foliage_depth": {"type": "number", "minimum": 0},
                    "o2i_loss_type": {"type": "string", "enum": ["Low", "High"]},
                    "o2i_threshold": {"type": "number", "minimum": 0, "maximum": 1},
                    "seed": {"type": "integer", "minimum": 0},
                    "run": {"type": "integer", "minimum": 0},
                    "min_distance": {"type": "number", "exclusiveMinimum": 0},
                    "strict_frequency_range": {"type": "boolean"},
                    "building_height": {"type": "number", "minimum": 0},
                    "street_width": {"type": "number", "minimum": 0},
                    "inh_type": {"type": "string", "enum": ["mixed_office", "open_office"]},
                    "inf_type": {"type": "string", "enum": ["SL", "DL", "SH", "DH", "HH"]},
                    "clutter_density": {"type": "number", "minimum": 0, "maximum": 1},
                    "clutter_height": {"type": "number", "minimum": 0},
                    "clutter_size": {"type": "number", "exclusiveMinimum": 0},
                    "hall_volume": {"type": "number", "exclusiveMinimum": 0},
                    "hall_surface": {"type": "number", "exclusiveMinimum": 0}
                },
                "required": ["scenario", "frequency"],
                "additionalProperties": False
            }
        },
        "required": ["simulation", "channel"],
        "additionalProperties": False
    }

    @classmethod
    def load_config(cls, config_path: str) -> SimulationConfig:
        """
        Load configuration from a JSON or YAML file

        Args:
            config_path: Path to configuration file

        Returns:
            SimulationConfig object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If the file format is not supported
            jsonschema.ValidationError: If config doesn't match schema
            ConfigurationError: If values are inconsistent
        """
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        logger.info(f"Loading configuration from {config_path}")

        with open(config_file, 'r') as f:
            if config_file.suffix.lower() in ['.yaml', '.yml']:
                try:
                    config_data = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    logger.error(f"Invalid YAML in configuration file: {e}")
                    raise
            elif config_file.suffix.lower() == '.json':
                try:
                    config_data = json.load(f)
                except json.JSONDecodeError as e:
                    logger.error(f"Invalid JSON in configuration file: {e}")
                    raise
            else:
                raise ValueError(f"Unsupported configuration file format: {config_file.suffix}")

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> SimulationConfig:
        """Validate a configuration dictionary and convert it"""
        try:
            jsonschema.validate(config_data, cls.CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            logger.error(f"Configuration validation error: {e.message}")
            raise

        config = cls._dict_to_config(config_data)
        config.validate()
        logger.info("Configuration loaded and validated successfully")
        return config

    @classmethod
    def _dict_to_config(cls, config_data: Dict[str, Any]) -> SimulationConfig:
        """Convert configuration dictionary to SimulationConfig object"""

        sim_config = config_data.get('simulation', {})
        link_config = config_data.get('link', {})
        channel = ChannelConfig(**config_data['channel'])

        return SimulationConfig(
            # Simulation parameters
            simulation_time=sim_config.get('simulation_time', 1.0),
            time_resolution=sim_config.get('time_resolution', 0.01),
            trace=sim_config.get('trace', 'snr'),
            log_level=sim_config.get('log_level', 'INFO'),
            output_directory=sim_config.get('output_directory', 'results'),
            trace_file=sim_config.get('trace_file'),
            enable_plots=sim_config.get('enable_plots', False),

            # Node parameters
            tx_position=tuple(link_config.get('tx_position', (0.0, 0.0, 10.0))),
            rx_position=tuple(link_config.get('rx_position', (10.0, 0.0, 1.6))),
            tx_velocity=tuple(link_config.get('tx_velocity', (0.0, 0.0, 0.0))),
            rx_velocity=tuple(link_config.get('rx_velocity', (0.0, 0.0, 0.0))),
            track_beams=link_config.get('track_beams', False),

            # Link budget
            tx_power=link_config.get('tx_power', 49.0),
            noise_figure=link_config.get('noise_figure', 9.0),
            num_resource_blocks=link_config.get('num_resource_blocks', 100),
            resource_block_bandwidth=link_config.get('resource_block_bandwidth', 180e3),
            active_resource_blocks=link_config.get('active_resource_blocks'),

            # Antenna arrays
            antenna_rows=link_config.get('antenna_rows', 2),
            antenna_columns=link_config.get('antenna_columns', 2),

            channel=channel
        )

    @classmethod
    def get_default_config(cls) -> Dict[str, Any]:
        """Default configuration dictionary with every section filled in"""

        return {
            "simulation": {
                "simulation_time": 1.0,
                "time_resolution": 0.01,
                "trace": "snr",
                "log_level": "INFO",
                "output_directory": "results",
                "enable_plots": False
            },
            "link": {
                "tx_position": [0.0, 0.0, 10.0],
                "rx_position": [10.0, 0.0, 1.6],
                "tx_velocity": [0.0, 0.0, 0.0],
                "rx_velocity": [0.0, 0.0, 0.0],
                "track_beams": False,
                "tx_power": 49.0,
                "noise_figure": 9.0,
                "num_resource_blocks": 100,
                "resource_block_bandwidth": 180e3,
                "antenna_rows": 2,
                "antenna_columns": 2
            },
            "channel": {
                "scenario": "Uma",
                "frequency": 28e9,
                "channel_update_period": 0.0,
                "condition_update_period": 0.0,
                "shadowing_enabled": True,
                "foliage_loss_enabled": False,
                "o2i_loss_type": "Low",
                "seed": 1,
                "run": 1
            }
        }

    @classmethod
    def create_default_config(cls, output_path: str = "config_template.json",
                              scenario: str = None):
        """
        Create a configuration file template (JSON or YAML by extension)

        Args:
            output_path: Output configuration file path
            scenario: Optional predefined scenario merged over the defaults
        """
        config_data = cls.get_default_config()
        if scenario is not None:
            scenarios = cls.get_scenario_configs()
            if scenario not in scenarios:
                raise ValueError(f"Unknown scenario: {scenario}")
            config_data = cls.merge_configs(config_data, scenarios[scenario])

        output_file = Path(output_path)
        try:
            with open(output_file, 'w') as f:
                if output_file.suffix.lower() in ['.yaml', '.yml']:
                    yaml.dump(config_data, f, default_flow_style=False, indent=2)
                else:
                    json.dump(config_data, f, indent=2)
            logger.info(f"Configuration template created: {output_path}")
        except IOError as e:
            logger.error(f"Failed to create configuration template: {e}")
            raise

    @classmethod
    def validate_config_file(cls, config_path: str) -> bool:
        """
        Validate configuration file without running it

        Args:
            config_path: Path to configuration file

        Returns:
            True if valid, False otherwise
        """
        try:
            cls.load_config(config_path)
            return True
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            return False

    @classmethod
    def get_scenario_configs(cls) -> Dict[str, Dict]:
        """Get predefined scenario configurations"""

        scenarios = {
            "umi_snr_28ghz": {
                "simulation": {
                    "simulation_time": 1.0,
                    "time_resolution": 0.01,
                    "trace": "snr",
                    "output_directory": "results/umi_snr_28ghz"
                },
                "link": {
                    "tx_position": [0.0, 0.0, 10.0],
                    "rx_position": [1.0, 0.0, 1.6],
                    "tx_power": 10.0
                },
                "channel": {
                    "scenario": "Umi",
                    "frequency": 28e9,
                    "seed": 1,
                    "run": 1
                }
            },

            "uma_mobile_rx_power": {
                "simulation": {
                    "simulation_time": 10.0,
                    "time_resolution": 0.1,
                    "trace": "rx_power",
                    "output_directory": "results/uma_mobile_rx_power"
                },
                "link": {
                    "tx_position": [0.0, 0.0, 25.0],
                    "rx_position": [20.0, 0.0, 1.5],
                    "rx_velocity": [10.0, 0.0, 0.0],
                    "tx_power": 46.0
                },
                "channel": {
                    "scenario": "Uma",
                    "frequency": 3.5e9,
                    "condition_update_period": 1.0,
                    "channel_update_period": 0.5
                }
            },

            "rma_o2i_foliage": {
                "simulation": {
                    "simulation_time": 5.0,
                    "time_resolution": 0.1,
                    "trace": "rx_power",
                    "output_directory": "results/rma_o2i_foliage"
                },
                "link": {
                    "tx_position": [0.0, 0.0, 35.0],
                    "rx_position": [500.0, 0.0, 1.5]
                },
                "channel": {
                    "scenario": "Rma",
                    "frequency": 2e9,
                    "foliage_loss_enabled": True,
                    "o2i_threshold": 0.5,
                    "o2i_loss_type": "High"
                }
            },

            "inh_office_60ghz": {
                "simulation": {
                    "simulation_time": 1.0,
                    "time_resolution": 0.01,
                    "trace": "snr",
                    "output_directory": "results/inh_office_60ghz"
                },
                "link": {
                    "tx_position": [0.0, 0.0, 3.0],
                    "rx_position": [15.0, 5.0, 1.0],
                    "rx_velocity": [1.0, 0.0, 0.0],
                    "track_beams": True,
                    "tx_power": 23.0
                },
                "channel": {
                    "scenario": "InH",
                    "frequency": 60e9,
                    "inh_type": "open_office",
                    "channel_update_period": 0.1
                }
            },

            "inf_dense_high_140ghz": {
                "simulation": {
                    "simulation_time": 1.0,
                    "time_resolution": 0.01,
                    "trace": "snr",
                    "output_directory": "results/inf_dense_high_140ghz"
                },
                "link": {
                    "tx_position": [0.0, 0.0, 8.0],
                    "rx_position": [30.0, 10.0, 1.5],
                    "antenna_rows": 4,
                    "antenna_columns": 4,
                    "tx_power": 23.0
                },
                "channel": {
                    "scenario": "InF",
                    "frequency": 140e9,
                    "inf_type": "DH",
                    "clutter_density": 0.6,
                    "clutter_height": 6.0,
                    "clutter_size": 2.0
                }
            }
        }

        return scenarios

    @classmethod
    def create_scenario_configs(cls, output_dir: str = "scenarios"):
        """Create all predefined scenario configuration files"""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        scenarios = cls.get_scenario_configs()

        for scenario_name, config in scenarios.items():
            config_file = output_path / f"{scenario_name}.json"

            try:
                with open(config_file, 'w') as f:
                    json.dump(config, f, indent=2)
                logger.info(f"Created scenario config: {config_file}")
            except IOError as e:
                logger.error(f"Failed to create scenario {scenario_name}: {e}")

    @classmethod
    def merge_configs(cls, base_config: Dict, override_config: Dict) -> Dict:
        """
        Merge two configuration dictionaries

        Args:
            base_config: Base configuration
            override_config: Override values

        Returns:
            Merged configuration
        """
        def deep_merge(base: Dict, override: Dict) -> Dict:
            result = base.copy()

            for key, value in override.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = deep_merge(result[key], value)
                else:
                    result[key] = value

            return result

        return deep_merge(base_config, override_config)
