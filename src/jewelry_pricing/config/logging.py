"""Logging configuration."""
import logging
import sys

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install a single stderr handler on the package logger."""
    root = logging.getLogger("jewelry_pricing")
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not any(getattr(h, "_jewelry_pricing", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler._jewelry_pricing = True
        root.addHandler(handler)
