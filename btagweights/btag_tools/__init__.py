"""BTag tools: analysis-level b-tagging correction weights

These classes hold the scale factor and efficiency curves of a tagger
configuration and combine them into one correction weight per event.
"""
from .btagscalefactor import BTaggingScaleFactors, Jet, SystematicShift
from .calibration import (
    Flavor,
    FlavorCalibrationSet,
    WorkingPoint,
    load_calibration_set,
)
from .curves import BandedScale, CalibrationCurve, ContinuousScale, EfficiencyTable

__all__ = [
    "BTaggingScaleFactors",
    "Jet",
    "SystematicShift",
    "Flavor",
    "FlavorCalibrationSet",
    "WorkingPoint",
    "load_calibration_set",
    "CalibrationCurve",
    "ContinuousScale",
    "BandedScale",
    "EfficiencyTable",
]
