"""
Unit tests for configuration loading.
"""

import os
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import yaml

from config import CONFIG_DIR, load_yaml
from config.settings import (
    ENV_CONFIG_PATH,
    ENV_LOG_LEVEL,
    GovernanceParams,
    Settings,
    load_settings,
    settings_from_dict,
)
from core.constants import DEFAULT_QUORUM, DEFAULT_TIMELOCK_DELAY_SECONDS


class TestConfigLoading(unittest.TestCase):
    """Tests for config loading functions."""

    def test_config_dir_exists(self):
        self.assertTrue(CONFIG_DIR.exists())

    def test_load_vault_yaml(self):
        data = load_yaml("vault.yaml")
        self.assertIn("vault", data)
        self.assertIn("governance", data)

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            load_yaml("does_not_exist.yaml")

    def test_default_settings_file(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(ENV_CONFIG_PATH, None)
            os.environ.pop(ENV_LOG_LEVEL, None)
            settings = load_settings(CONFIG_DIR / "vault.yaml")
        self.assertEqual(settings.governance.quorum, 1_000)
        self.assertEqual(settings.governance.timelock_delay, 86_400)
        self.assertEqual(settings.migration.max_slippage_bps, 100)
        self.assertEqual(settings.initial_source, "aave-usdc")
        self.assertEqual([s.source_id for s in settings.sources][:2], ["aave-usdc", "compound-usdc"])


class TestSettingsFromDict(unittest.TestCase):
    """Parsing and validation."""

    def test_empty_uses_defaults(self):
        settings = settings_from_dict({})
        self.assertEqual(settings.governance.quorum, DEFAULT_QUORUM)
        self.assertEqual(settings.governance.timelock_delay, DEFAULT_TIMELOCK_DELAY_SECONDS)
        self.assertEqual(settings.sources, [])

    def test_unknown_keys_ignored(self):
        settings = settings_from_dict({"vault": {"authority": "ops", "colour": "blue"}})
        self.assertEqual(settings.vault.authority, "ops")

    def test_invalid_governance(self):
        with self.assertRaises(ValueError):
            settings_from_dict({"governance": {"voting_period": 0}})

    def test_source_without_id(self):
        with self.assertRaises(ValueError):
            settings_from_dict({"sources": [{"name": "anon"}]})

    def test_initial_source_must_exist(self):
        with self.assertRaises(ValueError):
            settings_from_dict({"initial_source": "ghost"})

    def test_to_dict(self):
        data = Settings().to_dict()
        self.assertIn("governance", data)
        self.assertEqual(data["governance"]["quorum"], DEFAULT_QUORUM)

    def test_governance_validate(self):
        self.assertEqual(GovernanceParams().validate(), [])
        self.assertEqual(len(GovernanceParams(quorum=-1, grace_period=0).validate()), 2)


class TestEnvironmentOverrides(unittest.TestCase):
    """SWITCHVAULT_CONFIG and SWITCHVAULT_LOG_LEVEL."""

    def test_config_path_from_env(self):
        with TemporaryDirectory() as tmp:
            path = Path(tmp) / "custom.yaml"
            path.write_text(yaml.safe_dump({"governance": {"quorum": 42}}), encoding="utf-8")
            with patch.dict(os.environ, {ENV_CONFIG_PATH: str(path)}):
                settings = load_settings()
        self.assertEqual(settings.governance.quorum, 42)

    def test_log_level_override(self):
        with patch.dict(os.environ, {ENV_LOG_LEVEL: "debug"}):
            settings = load_settings(CONFIG_DIR / "vault.yaml")
        self.assertEqual(settings.logging.level, "DEBUG")

    def test_missing_file_yields_defaults(self):
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop(ENV_LOG_LEVEL, None)
            settings = load_settings(Path("/nonexistent/vault.yaml"))
        self.assertEqual(settings.governance.quorum, DEFAULT_QUORUM)
        self.assertEqual(settings.logging.level, "INFO")


if __name__ == "__main__":
    unittest.main()
