"""Structured logging for zpod_inventory."""

from __future__ import annotations

import json
import logging
from xml.dom.minidom import parseString
from xml.parsers.expat import ExpatError

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax

PACKAGE_LOGGER = "zpod_inventory"

# Logs and payload dumps go to stderr so JSON output on stdout stays clean
_stderr_console = Console(stderr=True)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger instance."""
    root = logging.getLogger(PACKAGE_LOGGER)

    if not root.handlers:
        handler = RichHandler(
            console=_stderr_console,
            show_time=True,
            show_path=False,
            markup=True,
            rich_tracebacks=True,
        )
        handler.setLevel(logging.DEBUG)
        formatter = logging.Formatter("%(message)s")
        handler.setFormatter(formatter)
        root.addHandler(handler)
        root.setLevel(logging.INFO)

    return logging.getLogger(name)


def set_log_level(level: str) -> None:
    """Set global log level (DEBUG, INFO, WARNING, ERROR)."""
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger(PACKAGE_LOGGER).setLevel(numeric)


def format_xml(xml: str) -> str:
    """Indent an XML document for display. Unparseable input comes back as-is."""
    try:
        pretty = parseString(xml.encode("utf-8")).toprettyxml(indent="  ")
    except ExpatError:
        return xml
    return "\n".join(line for line in pretty.splitlines() if line.strip())


def format_json(body: str) -> str:
    try:
        return json.dumps(json.loads(body), indent=2)
    except ValueError:
        return body


def dump_payload(title: str, body: str, lexer: str) -> None:
    """Print a highlighted request/response payload for API debugging."""
    _stderr_console.print(Syntax(title, "javascript" if lexer == "json" else lexer))
    if body:
        _stderr_console.print(Syntax(body, lexer, word_wrap=True))
