# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Configuration: the server details and the scan settings.

The scan settings (default profile and batch settings) belong to the
desktop application and may be changed by the user at any time.  Code
here therefore never caches them: every call to
:py:meth:`TomlSettings.default_profile` reads the file again.
"""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path
import sys

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib
import platformdirs
import tomlkit

import localscan
from localscan import Default_Port
from .exceptions import ConfigError
from .separator import SaveSeparator


log = logging.getLogger("server")

config_filename = "localscan.toml"
confdir = platformdirs.user_config_path("localscan", "Localscan")

default_server_info = {
    "server": "127.0.0.1",
    "port": Default_Port,
    "LogLevel": "info",
    "scan_timeout": 0,
    "batch_lookback_seconds": 1.0,
}

BATCH_OUTPUT_LOAD = "load"
BATCH_OUTPUT_FILE = "file"


def _base_name(save_path, fallback):
    if not save_path:
        return fallback
    return Path(save_path).stem or fallback


class Profile:
    """The scan profile used by the plain scan button.

    Keyword Args:
        auto_save (bool): whether the profile saves its scans; only then
            are ``save_path`` and ``separator`` honoured.
        save_path (str): where auto-save writes, e.g., ``~/scans/doc.pdf``.
        separator (str): a :py:class:`SaveSeparator` value.
    """

    def __init__(self, *, auto_save=False, save_path="", separator=SaveSeparator.NONE):
        self.auto_save = bool(auto_save)
        self.save_path = save_path or ""
        self.separator = SaveSeparator.validate(separator)

    def effective_separator(self) -> str:
        if not self.auto_save:
            return SaveSeparator.NONE
        return self.separator

    def base_name(self, fallback: str = "scan") -> str:
        return _base_name(self.save_path, fallback)

    def __repr__(self):
        return (
            f"Profile(auto_save={self.auto_save}, save_path={self.save_path!r}, "
            f"separator={self.separator!r})"
        )


class BatchSettings:
    """The settings of the batch scan dialog.

    Keyword Args:
        output_type (str): ``"load"`` to put the pages into the
            application, or ``"file"`` to save them to disk directly.
        save_path (str): in file mode, where files are written; may
            contain placeholders such as ``$(YYYY)``.
        separator (str): a :py:class:`SaveSeparator` value.
    """

    def __init__(
        self,
        *,
        output_type=BATCH_OUTPUT_LOAD,
        save_path="",
        separator=SaveSeparator.NONE,
    ):
        output_type = (output_type or BATCH_OUTPUT_LOAD).lower()
        if output_type not in (BATCH_OUTPUT_LOAD, BATCH_OUTPUT_FILE):
            raise ValueError(f'Unknown batch output type "{output_type}"')
        self.output_type = output_type
        self.save_path = save_path or ""
        self.separator = SaveSeparator.validate(separator)

    def base_name(self, fallback: str = "batch") -> str:
        return _base_name(self.save_path, fallback)

    def __repr__(self):
        return (
            f"BatchSettings(output_type={self.output_type!r}, "
            f"save_path={self.save_path!r}, separator={self.separator!r})"
        )


class StaticSettings:
    """Scan settings held in memory, changed by assigning the attributes."""

    def __init__(self, profile=None, batch=None):
        self.profile = profile if profile else Profile()
        self.batch = batch if batch else BatchSettings()

    def default_profile(self):
        return self.profile

    def batch_settings(self):
        return self.batch


class TomlSettings:
    """Scan settings read from the ``[profile]`` and ``[batch]`` tables of a toml file.

    The file is re-read on every call.
    """

    def __init__(self, filename):
        self.filename = Path(filename)

    def _load(self):
        try:
            with open(self.filename, "rb") as f:
                return tomllib.load(f)
        except FileNotFoundError:
            log.warning('No config file "%s": using default scan settings', self.filename)
            return {}
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f'Cannot parse "{self.filename}": {e}') from e

    def default_profile(self) -> Profile:
        d = self._load().get("profile", {})
        try:
            return Profile(**d)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid [profile] in {self.filename}: {e}") from e

    def batch_settings(self) -> BatchSettings:
        d = self._load().get("batch", {})
        try:
            return BatchSettings(**d)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid [batch] in {self.filename}: {e}") from e


def create_server_config(dur=confdir, *, port=None):
    """Create a default configuration file.

    args:
        dur (pathlib.Path/str): where to put the file.

    keyword args:
        port (int/None): port on which to run the server.

    returns:
        pathlib.Path: the new file.

    raises:
        FileExistsError: file is already there.
    """
    sd = Path(dur) / config_filename
    if sd.exists():
        raise FileExistsError("Config already exists in {}".format(sd))
    template = (resources.files(localscan) / config_filename).read_text()
    doc = tomlkit.parse(template)
    if port:
        doc["port"] = int(port)
    Path(dur).mkdir(parents=True, exist_ok=True)
    with open(sd, "w") as fh:
        fh.write(tomlkit.dumps(doc))
    return sd


def get_server_info(filename=None):
    """Read the server info from config file, filling in defaults.

    The ``server`` key is forced to the loopback address whatever the
    file says.
    """
    if filename is None:
        filename = confdir / config_filename
    serverInfo = dict(default_server_info)
    try:
        with open(filename, "rb") as data_file:
            serverInfo.update(tomllib.load(data_file))
        log.debug("Server details loaded: {}".format(serverInfo))
    except FileNotFoundError:
        log.warning("Cannot find server details, using defaults")
    if serverInfo["server"] not in ("127.0.0.1", "localhost"):
        log.warning(
            'Ignoring server = "%s": only loopback is supported', serverInfo["server"]
        )
    serverInfo["server"] = "127.0.0.1"
    return serverInfo
