"""
Command-line interface for the drone coordinates generator.

This module provides the CLI with configuration file loading, parameter
overrides, and the two run modes: HTTP API plus broadcast (default) or
broadcast only.
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, Any, Optional

from . import __version__
from .config import ServiceConfig
from .error_handling import ConfigurationError
from .logging_config import ServiceLogger, LogLevel


def create_parser() -> argparse.ArgumentParser:
    """
    Create the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Drone Coordinates Generator - Broadcast synthetic drone detections over MQTT and HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve the HTTP API and broadcast every 3 seconds
  python -m drone_coordinates_generator --config examples/colombia.yaml

  # Print readings instead of publishing to MQTT
  python -m drone_coordinates_generator --config examples/colombia.yaml --offline --broadcast-only

  # Faster cadence on a different broker
  python -m drone_coordinates_generator -c examples/colombia.yaml --interval-ms 1000 --mqtt-host broker.local

  # Deterministic readings for testing
  python -m drone_coordinates_generator -c examples/colombia.yaml --seed 42 --offline
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        metavar="FILE",
        help="Path to configuration file (YAML or JSON)"
    )

    parser.add_argument(
        "--interval-ms", "-i",
        type=int,
        metavar="MS",
        help="Broadcast interval in milliseconds (default: 3000)"
    )

    mqtt_group = parser.add_argument_group("MQTT parameters")
    mqtt_group.add_argument(
        "--mqtt-host",
        type=str,
        metavar="HOST",
        help="MQTT broker hostname (default: localhost)"
    )

    mqtt_group.add_argument(
        "--mqtt-port",
        type=int,
        metavar="PORT",
        help="MQTT broker port (default: 1883)"
    )

    mqtt_group.add_argument(
        "--mqtt-topic",
        type=str,
        metavar="TOPIC",
        help="Topic readings are broadcast to (default: coordinates-broadcast)"
    )

    mqtt_group.add_argument(
        "--mqtt-qos",
        type=int,
        choices=[0, 1, 2],
        help="MQTT Quality of Service level (0, 1, or 2)"
    )

    http_group = parser.add_argument_group("HTTP parameters")
    http_group.add_argument(
        "--http-host",
        type=str,
        metavar="HOST",
        help="Interface the query API binds to (default: 0.0.0.0)"
    )

    http_group.add_argument(
        "--http-port",
        type=int,
        metavar="PORT",
        help="Port the query API listens on (default: 8080)"
    )

    http_group.add_argument(
        "--broadcast-only",
        action="store_true",
        help="Broadcast readings without serving the HTTP API"
    )

    test_group = parser.add_argument_group("testing and debugging options")
    test_group.add_argument(
        "--offline",
        action="store_true",
        help="Run in offline mode (print JSON instead of MQTT)"
    )

    test_group.add_argument(
        "--seed",
        type=int,
        metavar="SEED",
        help="Random seed for deterministic readings"
    )

    test_group.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    test_group.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress all output except errors"
    )

    test_group.add_argument(
        "--log-file",
        type=str,
        metavar="FILE",
        help="Path to log file for detailed logging"
    )

    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate configuration file and exit"
    )

    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print effective configuration and exit"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def setup_logging(verbose: bool = False, quiet: bool = False, log_file: Optional[str] = None) -> None:
    """
    Setup logging configuration based on verbosity level.

    Args:
        verbose: Enable verbose logging
        quiet: Suppress all output except errors
        log_file: Optional path to log file
    """
    ServiceLogger.setup_logging(
        level=LogLevel.INFO,
        log_file=Path(log_file) if log_file else None,
        console_output=True,
        verbose=verbose,
        quiet=quiet
    )


def build_config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """
    Build configuration overrides from command-line arguments.

    Args:
        args: Parsed command-line arguments

    Returns:
        Dictionary of configuration overrides
    """
    overrides = {}

    if args.interval_ms is not None:
        overrides['interval_ms'] = args.interval_ms

    if args.mqtt_host is not None:
        overrides['mqtt_host'] = args.mqtt_host
    if args.mqtt_port is not None:
        overrides['mqtt_port'] = args.mqtt_port
    if args.mqtt_topic is not None:
        overrides['mqtt_topic'] = args.mqtt_topic
    if args.mqtt_qos is not None:
        overrides['mqtt_qos'] = args.mqtt_qos

    if args.http_host is not None:
        overrides['http_host'] = args.http_host
    if args.http_port is not None:
        overrides['http_port'] = args.http_port

    if args.offline:
        overrides['offline_mode'] = True
    if args.seed is not None:
        overrides['deterministic_seed'] = args.seed

    return overrides


def load_configuration(config_path: Optional[str], overrides: Dict[str, Any]) -> ServiceConfig:
    """
    Load configuration from file and apply overrides.

    Args:
        config_path: Path to configuration file (optional)
        overrides: Configuration parameter overrides

    Returns:
        Loaded and validated ServiceConfig

    Raises:
        FileNotFoundError: If the configuration file does not exist
        ConfigurationError: If the configuration is invalid
    """
    if config_path:
        config = ServiceConfig.from_file(config_path)
    else:
        config = ServiceConfig()

    if overrides:
        config_dict = config.to_dict()
        config_dict.update(overrides)
        config = ServiceConfig.from_dict(config_dict)

    return config


def print_configuration(config: ServiceConfig) -> None:
    """
    Print the effective configuration in a readable format.

    Args:
        config: Configuration to print
    """
    print("Effective Configuration:")
    print("=" * 50)

    config_dict = config.to_dict()

    groups = {
        "Broadcast": ['interval_ms'],
        "MQTT Settings": [
            'mqtt_host', 'mqtt_port', 'mqtt_topic', 'mqtt_inbound_topic', 'mqtt_qos',
            'mqtt_connect_timeout_s', 'client_id'
        ],
        "HTTP API": ['http_host', 'http_port', 'service_name'],
        "Testing Options": ['deterministic_seed', 'offline_mode']
    }

    for group_name, param_names in groups.items():
        print(f"\n{group_name}:")
        for param_name in param_names:
            value = config_dict.get(param_name)
            if value is not None:
                print(f"  {param_name}: {value}")

    print("\nRegions:")
    if not config.regions:
        print("  (none)")
    for region in config.regions:
        print(f"  {region.name}: lat [{region.lat_min}, {region.lat_max}], "
              f"lon [{region.lon_min}, {region.lon_max}]")


def main(argv: Optional[list] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet, args.log_file)
    logger = ServiceLogger.get_logger(__name__)

    try:
        config = load_configuration(args.config, build_config_overrides(args))
    except (FileNotFoundError, ConfigurationError) as e:
        if args.validate_config:
            print("Configuration validation: FAILED")
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    if args.validate_config:
        print("Configuration validation: PASSED")
        return 0

    if args.print_config:
        print_configuration(config)
        return 0

    ServiceLogger.log_configuration(config.to_dict())

    from .service import DroneCoordinatesService

    try:
        service = DroneCoordinatesService(config)

        if args.broadcast_only:
            service.run_forever()
            return 0

        import uvicorn
        from .api import create_app

        uvicorn.run(create_app(service), host=config.http_host, port=config.http_port, log_config=None)
        return 0

    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        logger.error(f"Service failed: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
