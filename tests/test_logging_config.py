import logging
from logging.config import dictConfig

import colorlog

from chief_of_staff.logging_config import build_logging_config


def test_console_handler_uses_colorlog():
    config = build_logging_config()
    assert config["handlers"]["console"]["formatter"] == "color"
    assert config["formatters"]["color"]["()"] == "colorlog.ColoredFormatter"


def test_config_applies_colored_formatter():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        dictConfig(build_logging_config())
        console = [h for h in root.handlers if isinstance(h.formatter, colorlog.ColoredFormatter)]
        assert console
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
