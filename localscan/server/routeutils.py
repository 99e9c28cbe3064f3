# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Misc routing utilities"""

import logging

log = logging.getLogger("routes")


def log_request(request_name, request):
    """Logs the requests done by the server.

    Arguments:
        request_name (str): Name of the request function.
        request (aiohttp.web_request.Request): an `aiohttp` request object.
    """
    log.info("{} {} {}".format(request_name, request.method, request.rel_url))


def normalize_path(path):
    """Lowercase a URL path and strip any trailing slashes.

    Arguments:
        path (str): e.g., ``"/Scan/"``.

    Returns:
        str: e.g., ``"/scan"``.
    """
    return path.rstrip("/").lower()
