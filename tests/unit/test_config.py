"""
Unit tests for the configuration file, environment overrides and typed
settings.
"""

from pathlib import Path

import pytest

from easywww.config import ConfigStore, RoutingConfig, ServerConfig


def store_with(tmp_path: Path, text: str, environ=None) -> ConfigStore:
    path = tmp_path / "Easy-WWW.cfg"
    path.write_text(text, encoding="utf-8")
    return ConfigStore(path, environ={} if environ is None else environ).load()


class TestConfigFile:

    def test_missing_file_written_with_defaults(self, tmp_path):
        path = tmp_path / "Easy-WWW.cfg"

        store = ConfigStore(path, environ={}).load()

        assert path.exists()
        text = path.read_text(encoding="utf-8")
        assert "// TCP port which the server will use" in text
        assert "port = 8866" in text
        assert store.get_int("port") == 8866
        assert store.get_string("defaultRoot") == "./"
        assert store.get_map("subdomainRoot") == {}

    def test_missing_file_not_created(self, tmp_path):
        path = tmp_path / "Easy-WWW.cfg"

        ConfigStore(path, environ={}).load(create=False)

        assert not path.exists()

    def test_values_comments_and_blank_lines(self, tmp_path):
        store = store_with(tmp_path, (
            "// comment\n"
            "# also a comment\n"
            "\n"
            "  port =  9000  \n"
            "hostname = example.test\n"
        ))

        assert store.get_int("port") == 9000
        assert store.get_string("hostname") == "example.test"

    def test_map_entries_keep_extra_colons(self, tmp_path):
        store = store_with(tmp_path, (
            "subdomainRoot:images = ./img\n"
            "subdomainRoot:more:colons = ./examples\n"
        ))

        assert store.get_map("subdomainRoot") == {
            "images": "./img",
            "more:colons": "./examples",
        }

    def test_value_may_contain_equals(self, tmp_path):
        store = store_with(tmp_path, "defaultRoot = ./a=b\n")

        assert store.get_string("defaultRoot") == "./a=b"

    @pytest.mark.parametrize("line", ["port 9000", "= 9000", "port ="])
    def test_invalid_lines_skipped(self, tmp_path, line):
        store = store_with(tmp_path, f"{line}\nhostname = ok\n")

        assert store.get_int("port") == 8866
        assert store.get_string("hostname") == "ok"

    def test_subkey_on_plain_entry_skipped(self, tmp_path):
        store = store_with(tmp_path, "port:extra = 1\nport = 9000\n")

        assert store.get_int("port") == 9000
        assert ServerConfig.from_store(store).port == 9000

    def test_plain_value_on_map_entry_skipped(self, tmp_path):
        store = store_with(tmp_path, "subdomainRoot = ./img\nsubdomainRoot:images = ./img\n")

        assert store.get_map("subdomainRoot") == {"images": "./img"}

    def test_subkey_on_unknown_entry_kept(self, tmp_path):
        store = store_with(tmp_path, "extraRoots:a = ./a\n")

        assert store.get_map("extraRoots") == {"a": "./a"}

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "Easy-WWW.cfg"
        store = ConfigStore(path, environ={})
        store.set_int("port", 8080)
        store.set_bool("openInBrowser", False)
        store.set_map("subdomainRoot", {"images": "./img", "a:b": "./ab"})
        store.save()

        reloaded = ConfigStore(path, environ={}).load()

        assert reloaded.get_int("port") == 8080
        assert reloaded.get_bool("openInBrowser") is False
        assert reloaded.get_map("subdomainRoot") == {"images": "./img", "a:b": "./ab"}

    def test_load_does_not_rewrite_existing_file(self, tmp_path):
        text = "port = 9000\n"
        store_with(tmp_path, text)

        assert (tmp_path / "Easy-WWW.cfg").read_text(encoding="utf-8") == text


class TestAccessors:

    def test_get_int_invalid(self, tmp_path):
        assert store_with(tmp_path, "port = eighty\n").get_int("port") == -1

    @pytest.mark.parametrize("value,expected", [
        ("true", True), ("Yes", True), ("on", True), ("1", True),
        ("false", False), ("no", False), ("0", False), ("maybe", False),
    ])
    def test_get_bool(self, tmp_path, value, expected):
        store = store_with(tmp_path, f"openInBrowser = {value}\n")

        assert store.get_bool("openInBrowser") is expected

    def test_unknown_key(self):
        with pytest.raises(KeyError):
            ConfigStore(environ={}).get_string("nope")

    def test_map_entry_is_not_a_string(self):
        with pytest.raises(TypeError):
            ConfigStore(environ={}).get_string("subdomainRoot")

    def test_get_map_returns_copy(self):
        store = ConfigStore(environ={})
        store.get_map("subdomainRoot")["x"] = "y"

        assert store.get_map("subdomainRoot") == {}


class TestEnvironment:

    def test_overrides_file_values(self, tmp_path):
        store = store_with(tmp_path, "port = 9000\n", environ={
            "EASYWWW_PORT": "9100",
            "EASYWWW_DEFAULT_ROOT": "./public",
            "EASYWWW_REDIRECT_TO_MATCHED_SUBDOMAIN": "false",
        })

        assert store.get_int("port") == 9100
        assert store.get_string("defaultRoot") == "./public"
        assert store.get_bool("redirectToMatchedSubdomain") is False

    def test_map_override(self, tmp_path):
        store = store_with(tmp_path, "subdomainRoot:old = ./old\n", environ={
            "EASYWWW_SUBDOMAIN_ROOT": "images=./img, docs=./docs,broken",
        })

        assert store.get_map("subdomainRoot") == {"images": "./img", "docs": "./docs"}

    def test_overrides_not_saved(self, tmp_path):
        store = store_with(tmp_path, "port = 9000\n", environ={"EASYWWW_PORT": "9100"})
        store.save()

        assert "port = 9100" not in (tmp_path / "Easy-WWW.cfg").read_text(encoding="utf-8")

    def test_env_disabled(self, tmp_path):
        path = tmp_path / "Easy-WWW.cfg"
        path.write_text("port = 9000\n", encoding="utf-8")

        store = ConfigStore(path, environ={"EASYWWW_PORT": "9100"}).load(apply_env=False)

        assert store.get_int("port") == 9000


class TestServerConfig:

    def test_from_store(self, tmp_path):
        store = store_with(tmp_path, "address = 0.0.0.0\nport = 8080\nopenInBrowser = false\n")

        config = ServerConfig.from_store(store)

        assert config.host == "0.0.0.0"
        assert config.port == 8080
        assert config.open_in_browser is False

    def test_defaults_are_valid(self):
        ServerConfig().validate()
        ServerConfig(port=0).validate()

    @pytest.mark.parametrize("kwargs", [
        {"port": -1},
        {"port": 65536},
        {"max_workers": 0},
        {"queue_size": 0},
        {"buffer_size": 10},
        {"read_wait_limit": 0},
        {"read_wait_factor": 0.5},
        {"log_format": "xml"},
    ])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            ServerConfig(**kwargs).validate()

    def test_connection_options(self):
        options = ServerConfig(read_wait_limit=3.0).connection_options()

        assert options["read_wait_limit"] == 3.0
        assert options["buffer_size"] == 8192


class TestRoutingConfig:

    def test_from_store(self, tmp_path):
        store = store_with(tmp_path, (
            "defaultRoot = ./html\n"
            "hostname = example.test\n"
            "subdomainRoot:images = ./img\n"
            "redirectToMatchedSubdomain = no\n"
        ))

        routing = RoutingConfig.from_store(store)

        assert routing.default_root == "./html"
        assert routing.hostname == "example.test"
        assert dict(routing.subdomain_roots) == {"images": "./img"}
        assert routing.redirect_to_matched_subdomain is False

    def test_empty_values_are_unset(self):
        store = ConfigStore(environ={})
        store.set_string("defaultRoot", "")
        store.set_string("hostname", "")

        routing = RoutingConfig.from_store(store)

        assert routing.default_root is None
        assert routing.hostname is None

    def test_immutable(self):
        routing = RoutingConfig(subdomain_roots={"a": "./a"})

        with pytest.raises(AttributeError):
            routing.hostname = "x"
        with pytest.raises(TypeError):
            routing.subdomain_roots["b"] = "./b"
