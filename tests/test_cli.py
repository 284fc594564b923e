"""
Tests for the command-line interface.
"""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from drone_coordinates_generator.cli import (
    create_parser, build_config_overrides, load_configuration, main
)
from drone_coordinates_generator.error_handling import ConfigurationError


EXAMPLES_DIR = Path(__file__).resolve().parent.parent / "examples"
COLOMBIA = str(EXAMPLES_DIR / "colombia.yaml")


class TestArgumentParsing:
    """Test cases for argument parsing and overrides."""

    def test_defaults_produce_no_overrides(self):
        args = create_parser().parse_args([])

        assert args.config is None
        assert not args.broadcast_only
        assert build_config_overrides(args) == {}

    def test_overrides(self):
        args = create_parser().parse_args([
            "--interval-ms", "1000",
            "--mqtt-host", "broker.local",
            "--mqtt-port", "1884",
            "--mqtt-topic", "test/coords",
            "--mqtt-qos", "1",
            "--http-port", "9090",
            "--offline",
            "--seed", "42"
        ])

        assert build_config_overrides(args) == {
            'interval_ms': 1000,
            'mqtt_host': "broker.local",
            'mqtt_port': 1884,
            'mqtt_topic': "test/coords",
            'mqtt_qos': 1,
            'http_port': 9090,
            'offline_mode': True,
            'deterministic_seed': 42
        }

    def test_invalid_qos_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--mqtt-qos", "3"])

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert "0.1.0" in capsys.readouterr().out


class TestLoadConfiguration:
    """Test cases for load_configuration."""

    def test_without_file_uses_defaults(self):
        config = load_configuration(None, {})
        assert config.interval_ms == 3000

    def test_file_with_overrides(self):
        config = load_configuration(COLOMBIA, {'interval_ms': 500, 'offline_mode': True})

        assert config.interval_ms == 500
        assert config.offline_mode
        assert config.regions[0].name == "Medellín"

    def test_invalid_override(self):
        with pytest.raises(ConfigurationError):
            load_configuration(COLOMBIA, {'interval_ms': -1})

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            load_configuration("missing.yaml", {})


class TestMain:
    """Test cases for main()."""

    def test_validate_config_passes(self, capsys):
        assert main(["--config", COLOMBIA, "--validate-config", "--quiet"]) == 0
        assert "Configuration validation: PASSED" in capsys.readouterr().out

    def test_validate_config_fails(self, tmp_path, capsys):
        bad = tmp_path / "bad.yaml"
        bad.write_text("interval_ms: 0\n")

        assert main(["--config", str(bad), "--validate-config", "--quiet"]) == 1

        captured = capsys.readouterr()
        assert "Configuration validation: FAILED" in captured.out
        assert "Broadcast interval must be positive" in captured.err

    def test_missing_config_file(self, capsys):
        assert main(["--config", "missing.yaml", "--quiet"]) == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_print_config(self, capsys):
        assert main(["--config", COLOMBIA, "--print-config", "--interval-ms", "1500", "--quiet"]) == 0

        output = capsys.readouterr().out
        assert "interval_ms: 1500" in output
        assert "Regions:" in output
        assert "Bogotá: lat [4.5, 4.75]" in output

    @patch('drone_coordinates_generator.service.DroneCoordinatesService')
    def test_broadcast_only_runs_supervisor(self, mock_service_class):
        mock_service = Mock()
        mock_service_class.return_value = mock_service

        assert main(["--config", COLOMBIA, "--offline", "--broadcast-only", "--quiet"]) == 0

        config = mock_service_class.call_args[0][0]
        assert config.offline_mode
        mock_service.run_forever.assert_called_once()

    @patch('uvicorn.run')
    @patch('drone_coordinates_generator.api.create_app')
    @patch('drone_coordinates_generator.service.DroneCoordinatesService')
    def test_default_serves_http_api(self, mock_service_class, mock_create_app, mock_run):
        mock_service_class.return_value = Mock()
        mock_create_app.return_value = "app"

        assert main(["--config", COLOMBIA, "--offline", "--http-port", "9090", "--quiet"]) == 0

        mock_create_app.assert_called_once_with(mock_service_class.return_value)
        mock_run.assert_called_once_with("app", host="0.0.0.0", port=9090, log_config=None)

    @patch('drone_coordinates_generator.service.DroneCoordinatesService')
    def test_keyboard_interrupt(self, mock_service_class):
        mock_service_class.return_value.run_forever.side_effect = KeyboardInterrupt

        assert main(["--config", COLOMBIA, "--offline", "--broadcast-only", "--quiet"]) == 130

    @patch('drone_coordinates_generator.service.DroneCoordinatesService')
    def test_service_failure(self, mock_service_class):
        mock_service_class.side_effect = RuntimeError("boom")

        assert main(["--config", COLOMBIA, "--offline", "--broadcast-only", "--quiet"]) == 1
