from __future__ import annotations

import logging

from utils.logger import setup_logger


def test_setup_logger_attaches_handlers_once() -> None:
    logger = setup_logger("niche_radar.test_once", level="debug", use_rich=False)
    again = setup_logger("niche_radar.test_once", level="warning", use_rich=False)

    assert again is logger
    assert len(logger.handlers) == 1
    assert logger.level == logging.WARNING


def test_unknown_level_falls_back_to_info() -> None:
    logger = setup_logger("niche_radar.test_level", level="chatty", use_rich=False)
    assert logger.level == logging.INFO
