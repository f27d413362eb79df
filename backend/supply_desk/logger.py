from __future__ import annotations

import json
import sys
import time
import traceback

import loguru
from fastapi import Request
from loguru import logger


def configure_logger(level: str = "INFO") -> None:
    """Replace loguru's default sink with a single stdout sink.

    Extra context is rendered as one JSON object per line so the output stays grep-able.
    """
    logger.remove()
    logger.add(
        sink=sys.stdout,
        level=level.upper(),
        diagnose=False,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <bold><white>{message}</white></bold> | <dim>{extra}</dim> {stacktrace}",
        filter=process_log_record,
    )


def process_log_record(record: "loguru.Record") -> bool:
    r"""
    Prepare a record for the stdout formatter.

    1. Serialize the "extra" field to JSON.
    2. For error logs, put the traceback on one line, with \r instead of \n.
    """
    extra = record["extra"]
    if extra and not isinstance(extra, str):
        record["extra"] = json.dumps(extra, default=str)

    record["stacktrace"] = ""
    if record["exception"]:
        record["stacktrace"] = get_formatted_stacktrace(
            record["exception"], replace_newline_character_with_carriage_return=True
        )
    return True


def get_formatted_stacktrace(loguru_record_exception, replace_newline_character_with_carriage_return: bool) -> str:
    exc_type, exc_value, exc_traceback = loguru_record_exception
    stacktrace = "".join(traceback.format_exception(exc_type, exc_value, exc_traceback))
    if replace_newline_character_with_carriage_return:
        stacktrace = stacktrace.replace("\n", "\r")
    return stacktrace


async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = round((time.perf_counter() - started) * 1000, 1)
    # never log the Authorization header: it carries session and API tokens
    logger.bind(
        http_method=request.method,
        url_path=request.url.path,
        status_code=response.status_code,
        duration_ms=elapsed_ms,
    ).debug("Request handled")
    return response
