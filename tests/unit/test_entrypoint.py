"""
Unit tests for the container entry point.
"""
import logging
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from esboot import config as config_module
from esboot.__main__ import configure_logging, main
from esboot.errors import DelegateLaunchError, OwnershipRepairError


@pytest.fixture(autouse=True)
def no_default_config_file(tmp_path, monkeypatch):
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATH", tmp_path / "absent.yaml")


class TestMain:
    """Test exit behaviour of the entry point."""

    def test_loads_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("ESBOOT_DATA_DIR", "/srv/index")
        monkeypatch.setenv("ESBOOT_LOG_LEVEL", "debug")

        with patch("esboot.__main__.Bootstrapper") as mock_bootstrapper:
            main()

        mock_bootstrapper.assert_called_once()
        config = mock_bootstrapper.call_args[0][0]
        assert config.data_dir == Path("/srv/index")
        mock_bootstrapper.return_value.run.assert_called_once_with()
        assert logging.getLogger("esboot").level == logging.DEBUG

    def test_uses_get_config(self):
        with patch("esboot.__main__.get_config") as mock_get_config:
            with patch("esboot.__main__.Bootstrapper") as mock_bootstrapper:
                mock_get_config.return_value.log_level = "INFO"
                main()

        mock_get_config.assert_called_once_with()
        mock_bootstrapper.assert_called_once_with(mock_get_config.return_value)

    def test_repair_failure_exits_nonzero(self, capsys):
        bootstrapper = MagicMock()
        bootstrapper.run.side_effect = OwnershipRepairError(
            Path("/usr/share/elasticsearch/data"), OSError(30, "Read-only file system")
        )

        with pytest.raises(SystemExit) as exc_info:
            main(bootstrapper)

        assert exc_info.value.code == 1
        err = capsys.readouterr().err
        assert "esboot: Cannot change ownership of /usr/share/elasticsearch/data: Read-only file system" in err

    def test_launch_failure_exits_nonzero(self, capsys):
        bootstrapper = MagicMock()
        bootstrapper.run.side_effect = DelegateLaunchError(Path("/usr/local/bin/docker-entrypoint.sh"), "no such file")

        with pytest.raises(SystemExit) as exc_info:
            main(bootstrapper)

        assert exc_info.value.code == 1
        assert "no such file" in capsys.readouterr().err

    def test_config_error_exits_nonzero(self, monkeypatch, capsys):
        monkeypatch.setenv("ESBOOT_DATA_DIR", "relative/data")

        with patch("esboot.__main__.Bootstrapper") as mock_bootstrapper:
            with pytest.raises(SystemExit) as exc_info:
                main()

        assert exc_info.value.code == 1
        mock_bootstrapper.assert_not_called()
        assert "absolute path" in capsys.readouterr().err

    def test_unexpected_errors_propagate(self):
        bootstrapper = MagicMock()
        bootstrapper.run.side_effect = RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            main(bootstrapper)


class TestConfigureLogging:
    """Test log handler setup."""

    def test_single_stderr_handler(self):
        configure_logging("WARNING")
        configure_logging("WARNING")

        logger = logging.getLogger("esboot")
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert logger.propagate is False
