# tests/test_demo.py
# How to run:
#   From repo root: pytest -q
#
# What this covers:
#   - Demo: client created on the test thread receives ticks on the global loop
#   - CLI "ping" delivers on the subscriber's worker and exits 0

import threading

from event_framework.app.config import DemoConfig
from event_framework.app.demo import run_demo
from event_framework.core import loop
from tools.ef_cli import main as cli_main

def test_demo_delivers_on_global_loop():
    threads = []
    client = run_demo(
        DemoConfig(interval_s=0.01, count=3),
        on_message=lambda m: threads.append(threading.current_thread()),
    )
    assert client.received == ["message 1", "message 2", "message 3"]
    assert threads and all(t is loop.current().thread for t in threads)

def test_cli_ping(capsys, monkeypatch):
    # keep the global logging setup untouched by the CLI
    monkeypatch.setattr("tools.ef_cli.configure_logging", lambda **kw: None)
    assert cli_main(["ping"]) == 0
    out = capsys.readouterr().out
    assert "'hi' delivered on ef-a" in out
