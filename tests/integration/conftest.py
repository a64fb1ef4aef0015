"""
Pytest configuration for integration tests

This conftest patches YAML loading at MODULE LEVEL to replace the Docker
hostname with localhost for tests running on the host machine.
"""

from unittest import mock

# ============================================================================
# CRITICAL: Patch YAML loading at MODULE LEVEL
# This runs BEFORE any test modules are imported by pytest
# ============================================================================
from core.utils.config import load_yaml_safe as _original_load_yaml_safe


def _patched_load_yaml_safe(path):
    """Load YAML and replace Docker hostnames with localhost for integration tests"""
    config = _original_load_yaml_safe(path)

    if "databases.yaml" in path and "clickhouse" in config:
        config["clickhouse"]["host"] = "localhost"

    return config


# Apply global patch
mock.patch("core.utils.config.load_yaml_safe", side_effect=_patched_load_yaml_safe).start()

# Reset Settings singleton to force reload with patched YAML loader
from config.settings import Settings  # noqa: E402

if hasattr(Settings, "_yaml_loaded"):
    delattr(Settings, "_yaml_loaded")
