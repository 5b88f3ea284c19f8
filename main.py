# main.py
from __future__ import annotations
import structlog
from event_framework.app.config import DemoConfig
from event_framework.app.demo import run_demo
from event_framework.app.logging_config import configure_logging

def main() -> None:
    configure_logging(debug=False)
    log = structlog.get_logger()

    log.info("app.start", msg="Launching event-framework demo")
    try:
        run_demo(DemoConfig(interval_s=1.0))
    except KeyboardInterrupt:
        pass
    log.info("app.stop", msg="Exited cleanly")

if __name__ == "__main__":
    main()
