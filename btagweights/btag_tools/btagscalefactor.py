import enum
import logging
from typing import NamedTuple

import awkward
import numpy

from btagweights.btag_tools.calibration import Flavor
from btagweights.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SystematicShift(enum.Enum):
    DEFAULT = "default"
    UP = "up"
    DOWN = "down"

    @classmethod
    def parse(cls, shift):
        if isinstance(shift, cls):
            return shift
        if isinstance(shift, str):
            name = shift.strip().lower()
            if name == "central":
                return cls.DEFAULT
            try:
                return cls(name)
            except ValueError:
                pass
        raise ConfigurationError("Unrecognized systematic shift %r" % (shift,))


class Jet(NamedTuple):
    pt: float
    flavor: Flavor
    tagged: bool


def _shifted(curve, pt, shift):
    if shift is SystematicShift.UP:
        return curve.value_plus(pt)
    if shift is SystematicShift.DOWN:
        return curve.value_minus(pt)
    return curve.value(pt)


class BTaggingScaleFactors:
    """Per-event b-tagging correction weight for a fixed working point

    Parameters
    ----------
        calibration : FlavorCalibrationSet
            Scale factor and efficiency curves for the tagger, working point
            and object selection in use
        sys_bjets : SystematicShift or str, optional
            Shift applied to the scale factors of b and c jets
            (``default``, ``up`` or ``down``). Defaults to ``default``
        sys_ljets : SystematicShift or str, optional
            Shift applied to the scale factors of light jets.
            Defaults to ``default``

    Each jet contributes the ratio of its tagging probability in data to the
    one in simulation: the scale factor ``s`` if it is tagged, and
    ``(1 - s*e) / (1 - e)`` if it is not, ``e`` being the simulated efficiency.
    An untagged jet whose efficiency is saturated (``e >= 1``) contributes 1.
    The event weight is the product over all jets; an event without jets
    weighs exactly 1.

    Instances hold no mutable state and can be shared between threads.
    """

    def __init__(
        self,
        calibration,
        sys_bjets=SystematicShift.DEFAULT,
        sys_ljets=SystematicShift.DEFAULT,
    ):
        self._calibration = calibration
        self._sys_bjets = SystematicShift.parse(sys_bjets)
        self._sys_ljets = SystematicShift.parse(sys_ljets)
        logger.debug(
            "b-tagging weights for %r with b/c shift %s and light shift %s",
            calibration,
            self._sys_bjets.name,
            self._sys_ljets.name,
        )

    @property
    def calibration(self):
        return self._calibration

    @property
    def sys_bjets(self):
        return self._sys_bjets

    @property
    def sys_ljets(self):
        return self._sys_ljets

    def systematic(self, flavor):
        """The shift in effect for jets of the given flavor"""
        if Flavor.from_code(flavor).is_heavy:
            return self._sys_bjets
        return self._sys_ljets

    @staticmethod
    def scale(is_tagged, jet_pt, sf, eff, systematic):
        """Correction factor of jets sharing one pair of curves

        Parameters
        ----------
            is_tagged : bool or numpy.ndarray
                The tag decision of each jet
            jet_pt : float or numpy.ndarray
                The jet transverse momentum
            sf : CalibrationCurve
                The scale factor curve
            eff : CalibrationCurve
                The simulated efficiency curve, evaluated without shift
            systematic : SystematicShift
                Which point of the scale factor envelope to use

        Returns
        -------
            out : numpy.ndarray
                The per-jet factor, with the shape of ``jet_pt``
        """
        e = numpy.asarray(eff.value(jet_pt), dtype=numpy.float64)
        s = numpy.asarray(_shifted(sf, jet_pt, systematic), dtype=numpy.float64)
        # untagged jets with e >= 1 contribute exactly 1
        untagged = numpy.divide(
            1.0 - s * e, 1.0 - e, out=numpy.ones_like(e), where=e < 1.0
        )
        return numpy.where(is_tagged, s, untagged)

    @staticmethod
    def scale_data(is_tagged, jet_pt, sf, eff, systematic):
        """Probability of the observed tag decision in data, ``s*e`` or ``1 - s*e``"""
        e = numpy.asarray(eff.value(jet_pt), dtype=numpy.float64)
        s = numpy.asarray(_shifted(sf, jet_pt, systematic), dtype=numpy.float64)
        return numpy.where(is_tagged, s * e, 1.0 - s * e)

    @staticmethod
    def scale_mc(is_tagged, jet_pt, eff):
        """Probability of the observed tag decision in simulation, ``e`` or ``1 - e``"""
        e = numpy.asarray(eff.value(jet_pt), dtype=numpy.float64)
        return numpy.where(is_tagged, e, 1.0 - e)

    def jet_factors(self, pt, flavor, tagged):
        """Correction factor of every jet

        Parameters
        ----------
            pt : numpy.ndarray or awkward.Array
                The jet transverse momentum
            flavor : numpy.ndarray or awkward.Array
                The jet hadron flavor: 0 for light, 4 for c and 5 for b jets
            tagged : numpy.ndarray or awkward.Array
                The tag decision at this working point

        Returns
        -------
            out : numpy.ndarray or awkward.Array
                The per-jet factors, with the same structure as ``pt``
        """
        if isinstance(pt, awkward.highlevel.Array):
            flavor = awkward.Array(flavor)
            tagged = awkward.Array(tagged)
            # flattening option types gives placeholder integers, not None
            missing = awkward.count_nonzero(awkward.is_none(flavor, axis=1))
            if missing:
                raise ConfigurationError("Missing jet flavor for %d jets" % missing)
            for what, array in (("pt", pt), ("tag decision", tagged)):
                if awkward.any(awkward.is_none(array, axis=1)):
                    raise ValueError("Missing jet %s" % what)
            counts = awkward.num(pt, axis=1)
            flat = self.jet_factors(
                awkward.to_numpy(awkward.flatten(pt)),
                awkward.to_numpy(awkward.flatten(flavor)),
                awkward.to_numpy(awkward.flatten(tagged)),
            )
            return awkward.unflatten(flat, counts)

        pt = numpy.asarray(pt, dtype=numpy.float64)
        flavor = numpy.asarray(flavor)
        tagged = numpy.asarray(tagged, dtype=bool)
        if not pt.shape == flavor.shape == tagged.shape:
            raise ValueError(
                "Jet pt, flavor and tag arrays have different shapes: %r, %r, %r"
                % (pt.shape, flavor.shape, tagged.shape)
            )
        known = numpy.isin(flavor, [int(f) for f in Flavor])
        if not numpy.all(known):
            raise ConfigurationError(
                "Unsupported jet flavors %r" % sorted(set(flavor[~known].tolist()))
            )

        out = numpy.ones(pt.shape, dtype=numpy.float64)
        for jet_flavor in Flavor:
            where = flavor == int(jet_flavor)
            if not numpy.any(where):
                continue
            sf, eff = self._calibration.curves(jet_flavor)
            out[where] = self.scale(
                tagged[where], pt[where], sf, eff, self.systematic(jet_flavor)
            )
        return out

    def get_weight(self, jets):
        """Returns the correction weight of one event

        Parameters
        ----------
            jets : iterable
                The jets of the event, each with ``pt``, ``flavor`` and
                ``tagged`` attributes (e.g. ``Jet`` tuples)

        Returns
        -------
            weight : float
                The product of the per-jet factors, 1.0 for an event without jets
        """
        jets = list(jets)
        if not jets:
            return 1.0
        factors = self.jet_factors(
            numpy.array([jet.pt for jet in jets], dtype=numpy.float64),
            numpy.array([int(Flavor.from_code(jet.flavor)) for jet in jets]),
            numpy.array([bool(jet.tagged) for jet in jets]),
        )
        return float(numpy.prod(factors))

    def event_weights(self, pt, flavor, tagged):
        """Correction weight of every event in a jagged jet collection

        Parameters
        ----------
            pt : awkward.Array
                The jet transverse momentum, one list of jets per event
            flavor : awkward.Array
                The jet hadron flavor, same structure as ``pt``
            tagged : awkward.Array
                The jet tag decision, same structure as ``pt``

        Returns
        -------
            out : numpy.ndarray
                One weight per event, 1.0 for events without jets
        """
        factors = self.jet_factors(
            awkward.Array(pt), awkward.Array(flavor), awkward.Array(tagged)
        )
        return awkward.to_numpy(awkward.prod(factors, axis=1))

    def __call__(self, jets):
        return self.get_weight(jets)
