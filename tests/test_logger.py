import logging

import numpy
import pytest

from btagweights import setup_logger
from btagweights.btag_tools import BTaggingScaleFactors, WorkingPoint
from btagweights.btag_tools.btagscalefactor import SystematicShift
from btagweights.logger import json_str


def test_invalid_level():
    null_level = "NOT_ALLOWED"
    with pytest.raises(ValueError):
        setup_logger(level=null_level)


def test_package_logger(tmp_path, flat_calibration):
    logfile = tmp_path / "btagweights.log"
    root_handlers = list(logging.getLogger().handlers)
    logger = setup_logger(level="DEBUG", logfile=str(logfile))
    try:
        assert logger.name == "btagweights"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 2
        assert logging.getLogger().handlers == root_handlers

        # a second call replaces the handlers instead of stacking them
        logger = setup_logger(level="DEBUG", logfile=str(logfile))
        assert len(logger.handlers) == 2

        BTaggingScaleFactors(flat_calibration, sys_bjets="up")
        for handler in logger.handlers:
            handler.console.file.flush()
        text = logfile.read_text()
        assert "b-tagging" in text and "DEFAULT" in text
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


def test_json_str():
    assert json_str({"b": 1, "a": "x"}) == '{\n    "a": "x",\n    "b": 1\n}'
    assert json_str({"shift": SystematicShift.UP}) == '{\n    "shift": "UP"\n}'
    assert json_str([numpy.float64(0.5), numpy.arange(2)]) == (
        "[\n    0.5,\n    [\n        0,\n        1\n    ]\n]"
    )
    # IntEnum members are already numbers to json
    assert json_str(WorkingPoint.TIGHT) == "2"
