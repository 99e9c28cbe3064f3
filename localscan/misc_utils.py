# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

from __future__ import annotations

import re
from pathlib import Path

import arrow


# ------------------------------------------------
# some time conversion tools put here nice and central


def utc_now_to_string():
    """Format the time now in UTC to a string with no spaces or colons.

    Suitable for filenames: ":" is forbidden on win32, hence "ZZZ" not "ZZ".
    """
    return arrow.utcnow().format("YYYY-MM-DD_HH-mm-ss_ZZZ")


def is_at_or_after(timestamp, since):
    """Is the POSIX timestamp at or after the given arrow time?"""
    return arrow.get(timestamp) >= since


# ---------------------------------------------
# save-path placeholders
# ---------------------------------------------

# placeholder -> arrow format token
_date_placeholders = {
    "$(YYYY)": "YYYY",
    "$(YY)": "YY",
    "$(MM)": "MM",
    "$(DD)": "DD",
    "$(hh)": "HH",
    "$(mm)": "mm",
    "$(ss)": "ss",
    "$(DATE)": "YYYY-MM-DD",
    "$(TIME)": "HHmmss",
}

_numeric_placeholder = re.compile(r"\$\(n+\)")


def substitute_placeholders(path: str | Path, when=None) -> str:
    """Expand the date placeholders in a save path.

    Numeric placeholders such as ``$(nnnn)`` are dropped: they number
    files at save time so cannot be known in advance.

    Args:
        path: a save path like ``~/scans/$(YYYY)-$(MM)/doc_$(nnn).pdf``.
        when: an arrow time, defaults to now (local time).

    Returns:
        str: the expanded path.
    """
    if when is None:
        when = arrow.now()
    path = str(path)
    for placeholder, token in _date_placeholders.items():
        if placeholder in path:
            path = path.replace(placeholder, when.format(token))
    return _numeric_placeholder.sub("", path)
