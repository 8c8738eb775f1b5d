import yaml

from sysd_manager.config import DEFAULT_CONFIG, Settings, ensure_config, load_settings


def test_missing_file_is_created_with_defaults(tmp_path):
    path = tmp_path / "sysd-manager" / "settings.yaml"
    config = ensure_config(path)
    assert path.exists()
    assert config == DEFAULT_CONFIG
    assert load_settings(path) == Settings()


def test_values_are_read_from_yaml(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        yaml.safe_dump(
            {
                "systemctl": "/usr/bin/systemctl",
                "elevation": {"primary": "pkexec --keep-cwd", "fallback": ["doas"]},
                "timeouts": {"action": 30},
            }
        ),
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.systemctl == "/usr/bin/systemctl"
    assert settings.primary_elevation == ("pkexec", "--keep-cwd")
    assert settings.fallback_elevation == ("doas",)
    assert settings.action_timeout == 30
    assert settings.listing_timeout == Settings().listing_timeout
    assert settings.source == path


def test_invalid_values_fall_back_to_defaults(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "systemctl: 42\nelevation: [nope]\ntimeouts:\n  listing: soon\n  property: -1\n",
        encoding="utf-8",
    )
    assert load_settings(path) == Settings()


def test_malformed_yaml_uses_defaults(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("systemctl: [unclosed\n", encoding="utf-8")
    assert ensure_config(path) == DEFAULT_CONFIG
