# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

"""Split scanned pages into separate output files."""

from __future__ import annotations

from typing import Sequence

from .images import CapturedImage


class SaveSeparator:
    """How a run of scanned pages is split into files.

    The values are the strings used in the config file.
    """

    NONE = "none"
    PER_PAGE = "per_page"
    PER_SCAN = "per_scan"

    all = (NONE, PER_PAGE, PER_SCAN)

    @classmethod
    def validate(cls, value: str | None) -> str:
        """Normalize a separator from config, defaulting to no separation.

        Raises:
            ValueError: not one of the known separators.
        """
        if not value:
            return cls.NONE
        value = value.strip().lower().replace("-", "_")
        if value not in cls.all:
            raise ValueError(
                f'Unknown separator "{value}": expected one of {", ".join(cls.all)}'
            )
        return value


def separate_scans(
    images: Sequence[CapturedImage], separator: str
) -> list[list[CapturedImage]]:
    """Partition pages into groups, one group per output file.

    Groups are never empty, keep the original order, and concatenate
    back to ``images``.  There are no groups exactly when there are no
    images.

    Args:
        images: the pages, in capture order.
        separator: one of the :py:class:`SaveSeparator` values.
            ``per_scan`` breaks wherever the ``scan_id`` changes.

    Returns:
        list: of lists of images.
    """
    separator = SaveSeparator.validate(separator)
    if not images:
        return []
    if separator == SaveSeparator.NONE:
        return [list(images)]
    if separator == SaveSeparator.PER_PAGE:
        return [[img] for img in images]
    groups = []
    for img in images:
        if groups and groups[-1][-1].scan_id == img.scan_id:
            groups[-1].append(img)
        else:
            groups.append([img])
    return groups
