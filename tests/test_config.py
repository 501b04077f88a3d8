"""Tests for zone deployment settings."""

import json
from pathlib import Path

import pytest

from tradezones.config import ENV_PREFIX, REQUIRED_KEYS, ZONE_KEYS, ZoneSettings

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"

SEAPORT = "0x00000000000000ADc04C56Bf30aC9d3c0aAF14dC"
LOCKUP = "0x1961A23409CA59EEDCA6a99c97E4087DaD752486"
TIMELOCK = "0x2AA5d15Eb36E5960d056e8FeA6E7BB3e2a06A351"


def _settings_dict() -> dict:
    return json.loads((CONFIG_DIR / "zones.json").read_text(encoding="utf-8"))


@pytest.fixture
def clean_env(monkeypatch):
    for key in REQUIRED_KEYS:
        monkeypatch.delenv(ENV_PREFIX + key.upper(), raising=False)
    for key in ZONE_KEYS:
        monkeypatch.delenv(f"{ENV_PREFIX}ZONE_{key.upper()}", raising=False)
    return monkeypatch


class TestConfigFile:
    def test_loads_shipped_config(self) -> None:
        settings = ZoneSettings.from_config_file(CONFIG_DIR / "zones.json")
        assert settings.chain_id == 1
        assert settings.protocol.lower() == SEAPORT.lower()
        assert settings.vesting_service.lower() == LOCKUP.lower()
        assert [a.lower() for a in settings.lockup_whitelist] == [LOCKUP.lower(), TIMELOCK.lower()]
        assert settings.zone_address("aggregator") is None

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            ZoneSettings.from_config_file(tmp_path / "absent.json")

    @pytest.mark.parametrize("key", REQUIRED_KEYS)
    def test_missing_key(self, key) -> None:
        data = _settings_dict()
        del data[key]
        with pytest.raises(ValueError, match=key):
            ZoneSettings.from_dict(data)

    def test_bad_address(self) -> None:
        data = _settings_dict()
        data["server_signer"] = "0x1234"
        with pytest.raises(ValueError, match="server_signer"):
            ZoneSettings.from_dict(data)

    def test_whitelist_must_be_a_list(self) -> None:
        data = _settings_dict()
        data["lockup_whitelist"] = LOCKUP
        with pytest.raises(ValueError, match="lockup_whitelist"):
            ZoneSettings.from_dict(data)

    def test_pinned_zone_addresses(self) -> None:
        data = _settings_dict()
        data["zones"] = {"aggregator": "0x" + "aa" * 20}
        settings = ZoneSettings.from_dict(data)
        assert settings.zone_address("aggregator").lower() == "0x" + "aa" * 20

    def test_unknown_zone_key(self) -> None:
        data = _settings_dict()
        data["zones"] = {"mystery_zone": "0x" + "aa" * 20}
        with pytest.raises(ValueError, match="mystery_zone"):
            ZoneSettings.from_dict(data)


class TestEnvironment:
    def test_from_dotenv_file(self, clean_env, tmp_path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text(
            "\n".join([
                "TRADEZONES_VERSION=2",
                "TRADEZONES_CHAIN_ID=31337",
                f"TRADEZONES_PROTOCOL={SEAPORT}",
                f"TRADEZONES_SERVER_SIGNER={'0x' + '11' * 20}",
                f"TRADEZONES_VESTING_SERVICE={LOCKUP}",
                f"TRADEZONES_TIMELOCK_SERVICE={TIMELOCK}",
                f"TRADEZONES_LOCKUP_WHITELIST={LOCKUP}, {TIMELOCK}",
                f"TRADEZONES_ZONE_LOCKUP_HANDLER={'0x' + 'cc' * 20}",
            ]),
            encoding="utf-8",
        )
        # load_dotenv writes into os.environ; keep it test-scoped
        for key in REQUIRED_KEYS:
            clean_env.setenv(ENV_PREFIX + key.upper(), "")
            clean_env.delenv(ENV_PREFIX + key.upper())
        clean_env.setenv(f"{ENV_PREFIX}ZONE_LOCKUP_HANDLER", "")
        clean_env.delenv(f"{ENV_PREFIX}ZONE_LOCKUP_HANDLER")

        settings = ZoneSettings.from_env(env_file)

        assert settings.version == "2"
        assert settings.chain_id == 31337
        assert len(settings.lockup_whitelist) == 2
        assert settings.zone_address("lockup_handler").lower() == "0x" + "cc" * 20

    def test_environment_wins_over_dotenv(self, clean_env, tmp_path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("TRADEZONES_CHAIN_ID=5\n", encoding="utf-8")
        clean_env.setenv("TRADEZONES_VERSION", "1")
        clean_env.setenv("TRADEZONES_CHAIN_ID", "10")
        clean_env.setenv("TRADEZONES_PROTOCOL", SEAPORT)
        clean_env.setenv("TRADEZONES_SERVER_SIGNER", "0x" + "11" * 20)
        clean_env.setenv("TRADEZONES_VESTING_SERVICE", LOCKUP)
        clean_env.setenv("TRADEZONES_TIMELOCK_SERVICE", TIMELOCK)
        clean_env.setenv("TRADEZONES_LOCKUP_WHITELIST", LOCKUP)

        settings = ZoneSettings.from_env(env_file)

        assert settings.chain_id == 10
        assert settings.lockup_whitelist == (settings.vesting_service,)

    def test_missing_variable(self, clean_env) -> None:
        clean_env.setenv("TRADEZONES_VERSION", "1")
        with pytest.raises(ValueError, match="chain_id"):
            ZoneSettings.from_env()
