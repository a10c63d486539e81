import pytest

from mm_inactive_users.config_loader import ConfigError, load_config, resolve_settings, split_url
from mm_inactive_users.inactive_users import build_parser


def parse(*argv):
    return build_parser().parse_args(list(argv))


def test_command_line_values():
    args = parse("-url", "chat.example.org", "-token", "tok", "-team", "dev", "-age", "90", "-port", "443", "-scheme", "https")
    settings = resolve_settings(args, {})
    assert (settings.url, settings.port, settings.scheme) == ("chat.example.org", "443", "https")
    assert settings.token == "tok"
    assert settings.team == "dev"
    assert settings.age == 90
    assert settings.dry_run is False
    assert settings.hard_delete is False


def test_double_dash_spelling():
    args = parse("--url", "chat.example.org", "--token", "tok", "--team", "dev", "--dry-run", "--hard-delete")
    settings = resolve_settings(args, {})
    assert settings.dry_run is True
    assert settings.hard_delete is True


def test_defaults():
    settings = resolve_settings(parse("-url", "h", "-token", "t", "-team", "dev"), {})
    assert settings.port == "8065"
    assert settings.scheme == "http"
    assert settings.age == 180
    assert settings.page_size == 60
    assert settings.exclude_deactivated is True
    assert settings.deactivate_method == "active"


def test_environment_fallback(monkeypatch):
    monkeypatch.setenv("MM_URL", "env.example.org")
    monkeypatch.setenv("MM_PORT", "9000")
    monkeypatch.setenv("MM_SCHEME", "https")
    monkeypatch.setenv("MM_TOKEN", "env-token")
    monkeypatch.setenv("MM_DEBUG", "true")

    settings = resolve_settings(parse("-team", "dev"), {})
    assert (settings.url, settings.port, settings.scheme, settings.token) == ("env.example.org", "9000", "https", "env-token")
    assert settings.debug is True


def test_command_line_beats_environment(monkeypatch):
    monkeypatch.setenv("MM_URL", "env.example.org")
    monkeypatch.setenv("MM_TOKEN", "env-token")
    settings = resolve_settings(parse("-url", "cli.example.org", "-team", "dev"), {})
    assert settings.url == "cli.example.org"
    assert settings.token == "env-token"


def test_team_has_no_environment_fallback(monkeypatch):
    monkeypatch.setenv("MM_TEAM", "dev")
    with pytest.raises(ConfigError) as excinfo:
        resolve_settings(parse("-url", "h", "-token", "t"), {})
    assert len(excinfo.value.errors) == 1


def test_missing_everything():
    with pytest.raises(ConfigError) as excinfo:
        resolve_settings(parse(), {})
    assert len(excinfo.value.errors) == 3


@pytest.mark.parametrize("url, expected", [
    ("chat.example.org", ("chat.example.org", None, None)),
    ("https://chat.example.org/", ("chat.example.org", "https", "443")),
    ("http://chat.example.org", ("chat.example.org", "http", "80")),
    ("https://chat.example.org:8443", ("chat.example.org", "https", "8443")),
    ("chat.example.org:8443", ("chat.example.org", None, "8443")),
])
def test_split_url(url, expected):
    assert split_url(url, None, None) == expected


def test_full_url_does_not_override_explicit_port():
    assert split_url("https://chat.example.org:8443", None, "9443") == ("chat.example.org", "https", "9443")


def test_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("page_size: 200\nexclude_deactivated: false\ndeactivate_method: delete\n")
    config = load_config(str(path))
    settings = resolve_settings(parse("-url", "h", "-token", "t", "-team", "dev"), config)
    assert settings.page_size == 200
    assert settings.exclude_deactivated is False
    assert settings.deactivate_method == "delete"


def test_include_deactivated_flag():
    args = parse("-url", "h", "-token", "t", "-team", "dev", "-include-deactivated")
    assert resolve_settings(args, {"exclude_deactivated": True}).exclude_deactivated is False


def test_invalid_config_values():
    args = parse("-url", "h", "-token", "t", "-team", "dev")
    with pytest.raises(ConfigError) as excinfo:
        resolve_settings(args, {"page_size": 0, "deactivate_method": "archive"})
    assert len(excinfo.value.errors) == 2


def test_default_config_file_is_optional(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config() == {}


def test_named_config_file_must_exist(tmp_path):
    with pytest.raises(ConfigError):
        load_config(str(tmp_path / "missing.yaml"))


def test_malformed_config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("page_size: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(str(path))


def test_host_and_port_without_scheme():
    settings = resolve_settings(parse("-url", "chat.example.org:8443", "-token", "t", "-team", "dev"), {})
    assert (settings.url, settings.port, settings.scheme) == ("chat.example.org", "8443", "http")


def test_invalid_port_in_url():
    with pytest.raises(ConfigError):
        split_url("chat.example.org:notaport", None, None)
