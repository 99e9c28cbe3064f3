# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (C) 2026 The Localscan Project Developers

from concurrent.futures import ThreadPoolExecutor

from pytest import raises

from localscan import ScanBusy
from localscan.server import SingleFlightGuard


def test_second_acquire_fails() -> None:
    g = SingleFlightGuard()
    assert g.try_acquire()
    assert g.busy
    assert not g.try_acquire()
    g.release()
    assert not g.busy
    assert g.try_acquire()


def test_guards_are_independent() -> None:
    g1 = SingleFlightGuard()
    g2 = SingleFlightGuard()
    assert g1.try_acquire()
    assert g2.try_acquire()


def test_hold_releases_on_error() -> None:
    g = SingleFlightGuard()

    def boom():
        with g.hold() as acquired:
            assert acquired
            raise RuntimeError("oops")

    raises(RuntimeError, boom)
    assert not g.busy


def test_hold_when_busy_does_not_release_owner() -> None:
    g = SingleFlightGuard()
    assert g.try_acquire()
    with g.hold() as acquired:
        assert not acquired
    assert g.busy


def test_only_one_winner_across_threads() -> None:
    g = SingleFlightGuard()
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: g.try_acquire(), range(200)))
    assert results.count(True) == 1


def test_acquire_raises_when_busy() -> None:
    g = SingleFlightGuard()
    g.acquire()
    raises(ScanBusy, g.acquire)
    g.release()
    g.acquire()
    assert g.busy
