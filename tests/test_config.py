"""
Tests for the Config loader

These tests verify:
1. Config can be instantiated with test data (dependency injection)
2. Config.get() works with dot notation
3. Config handles missing keys gracefully
4. The shipped YAML file loads and matches the built-in defaults
"""

from networking.config.loader import Config


class TestConfigDependencyInjection:
    """Test that Config supports dependency injection for testing"""

    def test_config_with_test_dict(self):
        """Should accept config dictionary for testing"""
        test_config = {"networking": {"request": {"default_timeout": 30}}}

        config = Config(test_config)

        assert config.get("networking.request.default_timeout") == 30
        assert config._config_dir is None

    def test_config_get_returns_default_when_not_found(self):
        """Should return default value for missing keys"""
        config = Config({"existing": {"key": "value"}})

        assert config.get("non.existent.key", "default") == "default"
        assert config.get("existing.missing", 42) == 42
        assert config.get("missing") is None

    def test_config_get_handles_non_dict_values(self):
        """Should return default if path goes through non-dict value"""
        config = Config({"string_value": "just a string", "number": 42})

        assert config.get("string_value.key", "default") == "default"
        assert config.get("number.nested", "default") == "default"

    def test_get_returns_whole_section(self):
        """Should return a nested section as a dict, the default when it is missing"""
        assert Config({}).get("networking", {}) == {}
        assert Config({"networking": {"a": 1}}).get("networking") == {"a": 1}


class TestShippedConfig:
    """The YAML file in config/ is loaded from disk"""

    def test_defaults_loaded_from_file(self):
        """Should load config/networking_config.yaml"""
        config = Config()

        assert config.get("networking.request.default_timeout") == 10.0
        assert config.get("networking.request.language_parameter") == "lang"
        assert config.get("networking.request.signature_parameter") == "signature"
        assert config.get("networking.dispatch.suspended_event") == "SUSPENDACCOUNT"
        assert config.get("networking.dispatch.login_marker") == "login"

    def test_shipped_keys_are_the_ones_read(self):
        """Should ship only keys the library looks up"""
        config = Config()

        assert set(config.get("networking.request")) == {
            "default_timeout",
            "content_type",
            "language_parameter",
            "signature_parameter",
        }
        assert set(config.get("networking.dispatch")) == {
            "max_workers",
            "suspended_event",
            "login_marker",
        }
        assert set(config.get("networking.logging")) == {"body_preview_limit"}
