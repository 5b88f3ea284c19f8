# tests/test_loop.py
# How to run:
#   From repo root: pytest -q
#
# What this covers:
#   - current() is None until a loop is started, and again after reset()
#   - start() installs a live worker; a second start replaces it
#   - run() blocks its caller while the main worker lives

import threading
import time

from event_framework.core import loop
from event_framework.core.worker import Worker, is_live

TIMEOUT = 5.0


def test_current_is_none_before_start():
    assert loop.current() is None


def test_start_installs_live_worker():
    w = loop.start()
    assert isinstance(w, Worker)
    assert loop.current() is w
    assert is_live(w)


def test_second_start_overwrites_singleton():
    first = loop.start()
    second = loop.start()
    assert loop.current() is second
    assert first is not second
    # the replaced worker is not stopped
    assert is_live(first)


def test_reset_forgets_singleton():
    loop.start()
    loop.reset()
    assert loop.current() is None


def test_run_blocks_caller():
    t = threading.Thread(target=loop.run, daemon=True)
    t.start()

    deadline = time.monotonic() + TIMEOUT
    while loop.current() is None and time.monotonic() < deadline:
        time.sleep(0.01)
    main = loop.current()
    assert main is not None and is_live(main)

    t.join(0.2)
    assert t.is_alive()

    done = threading.Event()
    main.submit(done.set)
    assert done.wait(TIMEOUT)
