from __future__ import annotations
import logging
import sys
import structlog

def configure_logging(debug: bool = False, json: bool = False) -> None:
    timestamper = structlog.processors.TimeStamper(fmt="iso")
    level = logging.DEBUG if debug else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            # worker threads log a lot; the thread name says which context ran it
            structlog.processors.CallsiteParameterAdder(
                {structlog.processors.CallsiteParameter.THREAD_NAME}
            ),
            timestamper,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )

    # also route stdlib logging -> stdout
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
