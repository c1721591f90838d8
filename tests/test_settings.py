"""Tests for provider settings."""
import pytest

from psm_reconciler.config import ProviderSettings, load_settings, normalize_server
from psm_reconciler.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from the real environment, cwd and home directory."""
    for var in ("PSM_CONFIG", "PSM_SERVER", "PSM_SID"):
        monkeypatch.delenv(var, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    work = tmp_path / "work"
    work.mkdir()
    monkeypatch.chdir(work)
    return work


def write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return path


class TestLoadSettings:
    """Tests for load_settings."""

    def test_explicit_path(self, tmp_path):
        path = write(tmp_path / "psm.yaml", (
            "server: https://psm.example.com/\n"
            "sid: abc\n"
            "tenant: acme\n"
            "timeout: 10\n"
            "verify_ssl: false\n"
        ))

        settings = load_settings(str(path))

        assert settings.server == "https://psm.example.com"
        assert settings.sid == "abc"
        assert settings.tenant == "acme"
        assert settings.timeout == 10.0
        assert settings.verify_ssl is False

    def test_defaults(self, tmp_path):
        settings = load_settings(str(write(tmp_path / "psm.yaml", "server: https://psm\n")))

        assert settings.tenant == "default"
        assert settings.timeout == 30
        assert settings.verify_ssl is True
        assert settings.sid_env == "PSM_SID"
        assert settings.state_dir is None

    def test_search_order(self, clean_env):
        """./configs/psm.yaml is found before ./psm.yaml."""
        write(clean_env / "configs" / "psm.yaml", "server: https://first\n")
        write(clean_env / "psm.yaml", "server: https://second\n")

        assert load_settings().server == "https://first"

    def test_home_config(self, tmp_path):
        write(tmp_path / "home" / ".config" / "psm-reconciler" / "psm.yaml", "server: https://home\n")

        assert load_settings().server == "https://home"

    def test_env_config_path(self, monkeypatch, tmp_path, clean_env):
        write(clean_env / "psm.yaml", "server: https://cwd\n")
        path = write(tmp_path / "elsewhere.yaml", "server: https://env\n")
        monkeypatch.setenv("PSM_CONFIG", str(path))

        assert load_settings().server == "https://env"

    def test_env_config_missing(self, monkeypatch, tmp_path):
        monkeypatch.setenv("PSM_CONFIG", str(tmp_path / "missing.yaml"))

        with pytest.raises(ConfigError, match="PSM_CONFIG points at a missing file"):
            load_settings()

    def test_env_overrides(self, monkeypatch, clean_env):
        write(clean_env / "psm.yaml", "server: https://file\nsid: from-file\n")
        monkeypatch.setenv("PSM_SERVER", "https://override/")
        monkeypatch.setenv("PSM_SID", "from-env")

        settings = load_settings()

        assert settings.server == "https://override"
        assert settings.sid == "from-env"

    def test_environment_only(self, monkeypatch):
        monkeypatch.setenv("PSM_SERVER", "https://psm.example.com")

        assert load_settings().server == "https://psm.example.com"

    def test_no_server(self):
        with pytest.raises(ConfigError, match="No server configured"):
            load_settings()

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError, match="Config file not found"):
            load_settings(str(tmp_path / "nope.yaml"))

    def test_invalid_yaml(self, tmp_path):
        path = write(tmp_path / "psm.yaml", "server: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(str(path))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_settings(str(write(tmp_path / "psm.yaml", "- https://psm\n")))

    def test_unknown_key(self, tmp_path):
        path = write(tmp_path / "psm.yaml", "server: https://psm\npassword: hunter2\n")

        with pytest.raises(ConfigError, match="Unknown settings: password"):
            load_settings(str(path))

    @pytest.mark.parametrize("timeout", ["soon", 0, -5])
    def test_bad_timeout(self, tmp_path, timeout):
        path = write(tmp_path / "psm.yaml", f"server: https://psm\ntimeout: {timeout}\n")

        with pytest.raises(ConfigError, match="timeout must be"):
            load_settings(str(path))

    def test_bad_verify_ssl(self, tmp_path):
        path = write(tmp_path / "psm.yaml", "server: https://psm\nverify_ssl: maybe\n")

        with pytest.raises(ConfigError, match="verify_ssl"):
            load_settings(str(path))


class TestNormalizeServer:
    @pytest.mark.parametrize("raw,expected", [
        ("https://psm.example.com", "https://psm.example.com"),
        ("https://psm.example.com///", "https://psm.example.com"),
        (" http://10.0.0.1:8443/ ", "http://10.0.0.1:8443"),
    ])
    def test_valid(self, raw, expected):
        assert normalize_server(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "psm.example.com", "ftp://psm", "https://"])
    def test_invalid(self, raw):
        with pytest.raises(ConfigError):
            normalize_server(raw)


class TestGetSid:
    """sid, then the environment variable, then the file."""

    def test_explicit_sid(self, monkeypatch):
        monkeypatch.setenv("PSM_SID", "from-env")
        assert ProviderSettings(server="https://psm", sid="inline").get_sid() == "inline"

    def test_env_sid(self, monkeypatch):
        monkeypatch.setenv("MY_SID", "from-env")
        assert ProviderSettings(server="https://psm", sid_env="MY_SID").get_sid() == "from-env"

    def test_sid_file(self, tmp_path):
        path = write(tmp_path / "sid", "from-file\n")
        assert ProviderSettings(server="https://psm", sid_file=str(path)).get_sid() == "from-file"

    def test_unreadable_sid_file(self, tmp_path):
        settings = ProviderSettings(server="https://psm", sid_file=str(tmp_path / "missing"))

        with pytest.raises(ConfigError, match="Cannot read sid_file"):
            settings.get_sid()

    def test_no_sid(self):
        with pytest.raises(ConfigError, match="No session id"):
            ProviderSettings(server="https://psm").get_sid()

    def test_state_dir_expanded(self, tmp_path):
        settings = ProviderSettings(server="https://psm", state_dir="~/psm-state")
        assert settings.get_state_dir() == tmp_path / "home" / "psm-state"
