# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

from pathlib import Path
import sys

from pytest import raises

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

from localscan import Default_Port
from localscan.config import (
    BatchSettings,
    Profile,
    TomlSettings,
    create_server_config,
    get_server_info,
)
from localscan.exceptions import ConfigError


def test_server_config(tmp_path) -> None:
    f = create_server_config(tmp_path)
    assert f == tmp_path / "localscan.toml"
    assert f.exists()


def test_server_config_exists(tmp_path) -> None:
    create_server_config(tmp_path)
    raises(FileExistsError, lambda: create_server_config(tmp_path))


def test_server_config_load(tmp_path) -> None:
    create_server_config(tmp_path)
    with open(tmp_path / "localscan.toml", "rb") as f:
        cfg = tomllib.load(f)
    assert cfg["server"] == "127.0.0.1"
    assert cfg["port"] == Default_Port
    assert cfg["profile"]["separator"] == "none"
    assert cfg["batch"]["output_type"] == "load"


def test_server_config_alt_port(tmp_path) -> None:
    f = create_server_config(tmp_path, port=41980)
    assert get_server_info(f)["port"] == 41980


def test_server_info_defaults(tmp_path) -> None:
    info = get_server_info(tmp_path / "missing.toml")
    assert info["port"] == Default_Port
    assert info["scan_timeout"] == 0
    assert info["batch_lookback_seconds"] == 1.0


def test_server_info_forces_loopback(tmp_path) -> None:
    f = tmp_path / "c.toml"
    f.write_text('server = "0.0.0.0"\nport = 9999\n')
    info = get_server_info(f)
    assert info["server"] == "127.0.0.1"
    assert info["port"] == 9999


def test_toml_settings_are_reread(tmp_path) -> None:
    f = tmp_path / "c.toml"
    f.write_text('[profile]\nauto_save = true\nseparator = "per_page"\n')
    settings = TomlSettings(f)
    assert settings.default_profile().effective_separator() == "per_page"
    f.write_text('[profile]\nauto_save = true\nseparator = "per_scan"\n')
    assert settings.default_profile().effective_separator() == "per_scan"


def test_toml_settings_missing_file(tmp_path) -> None:
    settings = TomlSettings(tmp_path / "nope.toml")
    assert settings.default_profile().effective_separator() == "none"
    assert settings.batch_settings().output_type == "load"


def test_toml_settings_bad_values(tmp_path) -> None:
    f = tmp_path / "c.toml"
    f.write_text('[batch]\noutput_type = "fax"\n')
    raises(ConfigError, lambda: TomlSettings(f).batch_settings())
    f.write_text('[profile]\ncolour = "blue"\n')
    raises(ConfigError, lambda: TomlSettings(f).default_profile())


def test_base_names() -> None:
    assert Profile().base_name() == "scan"
    assert Profile(save_path="~/x/Report.pdf").base_name() == "Report"
    assert BatchSettings().base_name() == "batch"
    assert BatchSettings(save_path=str(Path("a") / "job.tif")).base_name() == "job"


def test_profile_without_auto_save_does_not_separate() -> None:
    p = Profile(auto_save=False, separator="per_page")
    assert p.effective_separator() == "none"
