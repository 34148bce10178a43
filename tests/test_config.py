# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Tests for configuration loading
"""

import json
import logging
from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from stof_dist.core.config import Config, load_config
from stof_dist.core.logging import JSONFormatter, TextFormatter, configure_logging

ENV_VARS = ("STOF_DIST_CONFIG", "STOF_DIST_LOG_LEVEL", "STOF_DIST_LOG_FORMAT", "STOF_DIST_HTTP_TIMEOUT")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    config = Config()

    assert config.manifest_filename == "pkg.yaml"
    assert config.install_dir_name == "__stof__"
    assert config.archive_extension == ".pkg"
    assert config.package_content_type == "pkg"
    assert config.binary_content_type == "application/bstof"
    assert config.admin_content_type == "stof"
    assert config.http_timeout == 30.0
    assert config.install_root(Path("/ws")) == Path("/ws/__stof__")


def test_missing_file_uses_defaults(tmp_path):
    assert load_config(str(tmp_path / "missing.yaml")) == Config()


def test_yaml_values(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "package:\n"
        "  manifest: package.yaml\n"
        "  install_dir: deps\n"
        "formats:\n"
        "  document: json\n"
        "http:\n"
        "  timeout: 5\n"
        "paths:\n"
        "  staging: /var/tmp/stof\n"
        "logging:\n"
        "  level: DEBUG\n"
        "  format: json\n"
    )

    config = load_config(str(path))

    assert config.manifest_filename == "package.yaml"
    assert config.install_dir_name == "deps"
    assert config.archive_extension == ".pkg"
    assert config.document_format == "json"
    assert config.http_timeout == 5.0
    assert config.staging_dir == "/var/tmp/stof"
    assert config.log_level == "DEBUG"
    assert config.log_format == "json"


def test_env_overrides(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("logging:\n  level: DEBUG\nhttp:\n  timeout: 5\n")
    monkeypatch.setenv("STOF_DIST_CONFIG", str(path))
    monkeypatch.setenv("STOF_DIST_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("STOF_DIST_HTTP_TIMEOUT", "12.5")

    config = load_config()

    assert config.log_level == "ERROR"
    assert config.http_timeout == 12.5


def test_non_mapping_ignored(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")

    assert load_config(str(path)) == Config()


def test_frozen():
    with pytest.raises(FrozenInstanceError):
        Config().log_level = "DEBUG"


class TestLogging:

    def test_configure_from_config(self):
        logger = configure_logging(Config(log_level="WARNING", log_format="json"))

        assert logger.name == "stof_dist"
        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_level_override(self):
        logger = configure_logging(Config(log_level="WARNING"), "DEBUG")

        assert logger.level == logging.DEBUG
        assert isinstance(logger.handlers[0].formatter, TextFormatter)

    def test_json_keeps_extra_fields(self):
        record = logging.LogRecord("stof_dist.installer", logging.INFO, __file__, 1, "added %s", ("@acme/base",), None)
        record.package = "@acme/base"

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "added @acme/base"
        assert data["logger"] == "stof_dist.installer"
        assert data["package"] == "@acme/base"
