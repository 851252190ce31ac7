import os

import pytest

from btagweights.btag_tools import (
    BandedScale,
    ContinuousScale,
    EfficiencyTable,
    Flavor,
    FlavorCalibrationSet,
)


@pytest.fixture(scope="module")
def tests_directory() -> str:
    return os.path.dirname(os.path.realpath(__file__))


@pytest.fixture(scope="module")
def calibration_file(tests_directory) -> str:
    return os.path.join(tests_directory, "samples", "testBTagCalib.btag.csv")


@pytest.fixture(scope="module")
def flat_calibration():
    # b: sf 0.95 +- 0.05, eff 0.80; c: sf 0.95 +- 0.10, eff 0.20
    # light: sf 1.10 (1.20 / 1.00), eff 0.02
    return FlavorCalibrationSet(
        scales={
            Flavor.B: ContinuousScale("0.95", [20.0, 100.0, 800.0], [0.05, 0.08]),
            Flavor.C: ContinuousScale("0.95", [20.0, 800.0], [0.1]),
            Flavor.LIGHT: BandedScale("1.10", "1.20", "1.00", 20.0, 1000.0),
        },
        efficiencies={
            Flavor.B: EfficiencyTable([0.0, 1000.0], [0.80]),
            Flavor.C: EfficiencyTable([0.0, 1000.0], [0.20]),
            Flavor.LIGHT: EfficiencyTable([0.0, 1000.0], [0.02]),
        },
        algorithm="CSV",
        workingpoint="medium",
        selection="muon",
    )
