import enum
import logging

import numpy

from btagweights.btag_tools.curves import (
    BandedScale,
    CalibrationCurve,
    ContinuousScale,
    EfficiencyTable,
)
from btagweights.exceptions import ConfigurationError
from btagweights.logger import json_str
from btagweights.lookup_tools.csv_converters import read_calibration_csv

logger = logging.getLogger(__name__)


class Flavor(enum.IntEnum):
    """Jet hadron flavor, valued by its generator-level code"""

    LIGHT = 0
    C = 4
    B = 5

    @classmethod
    def from_code(cls, code):
        try:
            value = int(code)
            # 5.7 is not a b jet
            if value != code:
                raise ValueError(code)
            return cls(value)
        except (ValueError, TypeError):
            raise ConfigurationError("Unsupported jet flavor %r" % (code,)) from None

    @property
    def is_heavy(self):
        return self in (Flavor.B, Flavor.C)


class WorkingPoint(enum.IntEnum):
    LOOSE = 0
    MEDIUM = 1
    TIGHT = 2

    @classmethod
    def parse(cls, workingpoint):
        if isinstance(workingpoint, cls):
            return workingpoint
        if isinstance(workingpoint, str):
            text = workingpoint.strip()
            if text.isdigit():
                workingpoint = int(text)
            else:
                try:
                    return cls[text.upper()]
                except KeyError:
                    raise ConfigurationError(
                        "Unrecognized working point %r" % workingpoint
                    ) from None
        try:
            return cls(workingpoint)
        except (ValueError, TypeError):
            raise ConfigurationError(
                "Unrecognized working point %r" % (workingpoint,)
            ) from None


class FlavorCalibrationSet:
    """The scale factor and efficiency curves of one tagger configuration

    Parameters
    ----------
        scales : dict
            One scale curve per flavor, keyed by ``Flavor`` or flavor code
        efficiencies : dict
            One efficiency curve per flavor, keyed by ``Flavor`` or flavor code
        algorithm : str, optional
            The tagging algorithm the curves were derived for
        workingpoint : str or int, optional
            The working point, one of LOOSE, MEDIUM or TIGHT (0-2, respectively)
        selection : str, optional
            The object selection category the efficiencies were measured in

    Every flavor needs both curves, anything missing is refused here rather
    than when the first jet of that flavor shows up.
    """

    def __init__(
        self,
        scales,
        efficiencies,
        algorithm=None,
        workingpoint=WorkingPoint.MEDIUM,
        selection=None,
    ):
        self.algorithm = algorithm
        self.workingpoint = WorkingPoint.parse(workingpoint)
        self.selection = selection
        self._curves = {}
        scales = {Flavor.from_code(k): v for k, v in scales.items()}
        efficiencies = {Flavor.from_code(k): v for k, v in efficiencies.items()}
        for flavor in Flavor:
            if flavor not in scales:
                raise ConfigurationError(
                    "No scale factor curve for %s jets" % flavor.name
                )
            if flavor not in efficiencies:
                raise ConfigurationError(
                    "No efficiency curve for %s jets" % flavor.name
                )
            pair = (scales[flavor], efficiencies[flavor])
            if not all(isinstance(curve, CalibrationCurve) for curve in pair):
                raise ConfigurationError(
                    "Curves for %s jets are not calibration curves: %r"
                    % (flavor.name, pair)
                )
            self._curves[flavor] = pair
        logger.debug("Built calibration set %r", self)

    def curves(self, flavor):
        """Returns the ``(scale, efficiency)`` pair for a flavor"""
        return self._curves[Flavor.from_code(flavor)]

    def scale(self, flavor):
        return self.curves(flavor)[0]

    def efficiency(self, flavor):
        return self.curves(flavor)[1]

    def __repr__(self):
        return "FlavorCalibrationSet({!r}, {}, {!r})".format(
            self.algorithm, self.workingpoint.name, self.selection
        )


def _matches(wp, workingpoint):
    try:
        return WorkingPoint.parse(wp) is workingpoint
    except ConfigurationError:
        return False


def _single_formula(rows, what):
    if len(rows) != 1:
        raise ConfigurationError(
            "Expected exactly one %s row, found %d" % (what, len(rows))
        )
    row = rows.iloc[0]
    return row["formula"], row["ptMin"], row["ptMax"]


def _binned(rows, what):
    rows = rows.sort_values("ptMin")
    lows = rows["ptMin"].to_numpy()
    highs = rows["ptMax"].to_numpy()
    if not numpy.array_equal(lows[1:], highs[:-1]):
        raise ConfigurationError(
            "%s bins are not contiguous: %r" % (what, list(zip(lows, highs)))
        )
    try:
        values = rows["formula"].astype(float).to_numpy()
    except ValueError as err:
        raise ConfigurationError("%s table holds non-numeric entries" % what) from err
    return numpy.append(lows, highs[-1]), values


def _make_scale(rows, flavor):
    what = "%s scale factor" % flavor.name
    systs = set(rows["sysType"])
    if "central" not in systs:
        raise ConfigurationError("No central %s" % what)
    formula, pt_min, pt_max = _single_formula(
        rows[rows["sysType"] == "central"], what
    )
    banded = {"up", "down"} & systs
    if banded and "uncertainty" in systs:
        raise ConfigurationError(
            "%s mixes binned uncertainties and envelope curves" % what
        )
    if banded:
        upper, up_min, up_max = _single_formula(
            rows[rows["sysType"] == "up"], what + " up"
        )
        lower, dn_min, dn_max = _single_formula(
            rows[rows["sysType"] == "down"], what + " down"
        )
        if not (up_min == dn_min == pt_min and up_max == dn_max == pt_max):
            raise ConfigurationError("%s envelope curves have different ranges" % what)
        return BandedScale(formula, upper, lower, pt_min, pt_max)
    if "uncertainty" not in systs:
        raise ConfigurationError("No uncertainty given for %s" % what)
    edges, errors = _binned(
        rows[rows["sysType"] == "uncertainty"], what + " uncertainty"
    )
    if edges[0] != pt_min or edges[-1] != pt_max:
        raise ConfigurationError(
            "%s uncertainty bins do not span the fitted range [%r, %r]"
            % (what, pt_min, pt_max)
        )
    return ContinuousScale(formula, edges, errors)


def load_calibration_set(filename, algorithm, workingpoint, selection):
    """Build a ``FlavorCalibrationSet`` from a calibration CSV file

    Parameters
    ----------
        filename : str
            The calibration CSV file (see ``read_calibration_csv``)
        algorithm : str
            The tagging algorithm to select
        workingpoint : str or int
            The working point, one of LOOSE, MEDIUM, TIGHT (0-2, respectively)
        selection : str
            The object selection category; efficiency rows must match it,
            rows with selection ``*`` apply to every category

    Scale rows with a ``central`` formula and binned ``uncertainty`` rows
    become a ``ContinuousScale``, ``central``/``up``/``down`` formulas a
    ``BandedScale``; efficiency rows become an ``EfficiencyTable``.
    """
    workingpoint = WorkingPoint.parse(workingpoint)
    logger.debug(
        "Selecting calibration:\n%s",
        json_str(
            {
                "file": filename,
                "algorithm": algorithm,
                "workingpoint": workingpoint.name,
                "selection": selection,
            }
        ),
    )
    df, name = read_calibration_csv(filename)
    cut = df["algorithm"] == algorithm
    cut &= (df["selection"] == selection) | (df["selection"] == "*")
    df = df[cut]
    # rows of other working points may use names this package does not know
    keep = df["operatingPoint"].map(lambda wp: _matches(wp, workingpoint))
    df = df[keep.astype(bool)]
    if len(df) == 0:
        raise ConfigurationError(
            "No calibration for %s %s (%s) in %s"
            % (algorithm, workingpoint.name, selection, name)
        )
    unknown = set(df["jetFlavor"]) - set(int(f) for f in Flavor)
    if unknown:
        raise ConfigurationError(
            "Unsupported jet flavors %r in %s" % (sorted(unknown), name)
        )

    scales = {}
    efficiencies = {}
    for flavor in Flavor:
        rows = df[df["jetFlavor"] == int(flavor)]
        scale_rows = rows[rows["measurementType"] == "scale"]
        eff_rows = rows[rows["measurementType"] == "efficiency"]
        if len(scale_rows):
            scales[flavor] = _make_scale(scale_rows, flavor)
        if len(eff_rows):
            edges, effs = _binned(eff_rows, "%s efficiency" % flavor.name)
            efficiencies[flavor] = EfficiencyTable(edges, effs)
    logger.info(
        "Loaded %s %s calibration for %s selection from %s",
        algorithm,
        workingpoint.name,
        selection,
        name,
    )
    return FlavorCalibrationSet(
        scales,
        efficiencies,
        algorithm=algorithm,
        workingpoint=workingpoint,
        selection=selection,
    )
