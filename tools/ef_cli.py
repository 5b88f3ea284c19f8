from __future__ import annotations
import argparse, sys, threading

from event_framework.app.config import DemoConfig
from event_framework.app.logging_config import configure_logging

def main(argv=None):
    ap = argparse.ArgumentParser(prog="ef", description="Event Framework demo CLI")
    ap.add_argument("--debug", action="store_true", help="Log dispatch at debug level")
    ap.add_argument("--json", action="store_true", help="JSON log lines")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_demo = sub.add_parser("demo", help="Server ticks, client prints on the main loop")
    p_demo.add_argument("--interval", type=float, default=1.0)
    p_demo.add_argument("--count", type=int, help="Stop after N messages (default: forever)")
    p_demo.add_argument("--event", default="tick")

    sub.add_parser("ping", help="Deliver one event to a worker-bound subscriber")

    args = ap.parse_args(argv)
    configure_logging(debug=args.debug, json=args.json)

    if args.cmd == "demo":
        from event_framework.app.demo import run_demo
        cfg = DemoConfig(interval_s=args.interval, count=args.count, event=args.event)
        run_demo(cfg, on_message=print)
        return 0

    if args.cmd == "ping":
        from event_framework.core.subscribable import Subscribable
        from event_framework.core.worker import Worker

        done = threading.Event()
        seen = {}

        def on_ping(sender, text):
            seen["thread"] = threading.current_thread().name
            seen["text"] = text
            done.set()

        a = Worker(name="ef-a")
        s, c = Subscribable(), Subscribable()
        c.move_to(a)
        c.listen_to(s, "ping", on_ping)
        s.trigger("ping", "hi")
        if not done.wait(timeout=5.0):
            print("ping: no delivery", file=sys.stderr)
            return 2
        print(f"ping: {seen['text']!r} delivered on {seen['thread']} "
              f"(caller {threading.current_thread().name})")
        return 0

if __name__ == "__main__":
    sys.exit(main())
