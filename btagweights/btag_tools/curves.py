"""Calibration curves for flavor-tagging corrections

Three shapes exist and no others are needed:

- ``ContinuousScale``: a fitted scale factor with a binned absolute uncertainty
- ``BandedScale``: a scale factor fitted three times (central, upper, lower)
- ``EfficiencyTable``: a binned tagging efficiency measured in simulation

All of them are immutable once built and evaluate on numbers, numpy arrays
or awkward arrays of jet pt.
"""
import awkward
import numpy

from btagweights.exceptions import ConfigurationError, DomainError
from btagweights.lookup_tools.binned_lookup import binned_lookup
from btagweights.lookup_tools.formula_lookup import formula_lookup


def _check_pt(pt):
    if isinstance(pt, awkward.highlevel.Array):
        flat = awkward.to_numpy(awkward.flatten(pt, axis=None))
    else:
        flat = numpy.asarray(pt)
    if not numpy.all(numpy.isfinite(flat)) or numpy.any(flat < 0):
        raise DomainError("Jet pt must be finite and non-negative")


class CalibrationCurve:
    """Base class for curves exposing a nominal value and its envelope

    ``value_minus(pt)`` is never negative. Where the curve carries an
    uncertainty, ``value_plus(pt) >= value(pt) >= value_minus(pt)``.
    """

    @property
    def pt_min(self):
        raise NotImplementedError

    @property
    def pt_max(self):
        raise NotImplementedError

    def value(self, pt):
        raise NotImplementedError

    def value_plus(self, pt):
        raise NotImplementedError

    def value_minus(self, pt):
        raise NotImplementedError

    def __call__(self, pt):
        return self.value(pt)


class ContinuousScale(CalibrationCurve):
    """Fitted scale factor with a binned absolute uncertainty

    Parameters
    ----------
        formula : str, float or callable
            The fitted nominal scale factor as a function of pt (see ``formula_lookup``)
        edges : array_like
            Uncertainty bin edges in pt; the first and last edge are the fitted range
        uncertainties : array_like
            Absolute uncertainty per bin, non-negative

    Momenta outside the fitted range are clamped to the nearest boundary, for
    the nominal value and the uncertainty bin alike.
    """

    def __init__(self, formula, edges, uncertainties):
        self._errors = binned_lookup(edges, uncertainties)
        if numpy.any(self._errors.values < 0) or numpy.isnan(self._errors.values).any():
            raise ConfigurationError("Scale factor uncertainties must be non-negative")
        self._scale = formula_lookup(
            formula, self._errors.edges[0], self._errors.edges[-1]
        )

    @property
    def pt_min(self):
        return self._scale.pt_min

    @property
    def pt_max(self):
        return self._scale.pt_max

    def error(self, pt):
        _check_pt(pt)
        # the bin search saturates at both ends, which is the clamp
        return self._errors(pt)

    def value(self, pt):
        _check_pt(pt)
        return self._scale(pt)

    def value_plus(self, pt):
        return self.value(pt) + self.error(pt)

    def value_minus(self, pt):
        return numpy.maximum(self.value(pt) - self.error(pt), 0.0)

    def __repr__(self):
        return "ContinuousScale({!r}, edges={}, uncertainties={})".format(
            self._scale.formula, self._errors.edges, self._errors.values
        )


class BandedScale(CalibrationCurve):
    """Scale factor given as three independently fitted curves

    Parameters
    ----------
        central, upper, lower : str, float or callable
            Nominal, upper envelope and lower envelope formulas of pt
        pt_min, pt_max : float
            The fitted range shared by the three curves

    The lower envelope is bounded when it is fitted, so no floor is applied.
    """

    def __init__(self, central, upper, lower, pt_min, pt_max):
        self._scale = formula_lookup(central, pt_min, pt_max)
        self._scale_plus = formula_lookup(upper, pt_min, pt_max)
        self._scale_minus = formula_lookup(lower, pt_min, pt_max)

    @property
    def pt_min(self):
        return self._scale.pt_min

    @property
    def pt_max(self):
        return self._scale.pt_max

    def value(self, pt):
        _check_pt(pt)
        return self._scale(pt)

    def value_plus(self, pt):
        _check_pt(pt)
        return self._scale_plus(pt)

    def value_minus(self, pt):
        _check_pt(pt)
        return self._scale_minus(pt)

    def __repr__(self):
        return "BandedScale({!r}, {!r}, {!r}, {}, {})".format(
            self._scale.formula,
            self._scale_plus.formula,
            self._scale_minus.formula,
            self.pt_min,
            self.pt_max,
        )


class EfficiencyTable(CalibrationCurve):
    """Binned tagging efficiency without systematic variation

    Parameters
    ----------
        edges : array_like
            Strictly increasing pt bin edges, one more than the efficiencies;
            the last edge may be ``numpy.inf``
        efficiencies : array_like
            Efficiency per bin, within [0, 1]

    Momenta below the first edge use the first bin and momenta above the last
    edge use the last bin.
    """

    def __init__(self, edges, efficiencies):
        self._table = binned_lookup(edges, efficiencies)
        values = self._table.values
        if numpy.isnan(values).any() or numpy.any((values < 0) | (values > 1)):
            raise ConfigurationError("Efficiencies must lie within [0, 1]: %r" % values)

    @classmethod
    def from_pairs(cls, pairs, pt_max=numpy.inf):
        """Build a table from ``(pt_low_edge, efficiency)`` pairs"""
        pairs = list(pairs)
        edges = [edge for edge, _ in pairs] + [pt_max]
        return cls(edges, [eff for _, eff in pairs])

    @property
    def pt_min(self):
        return self._table.edges[0]

    @property
    def pt_max(self):
        return self._table.edges[-1]

    @property
    def edges(self):
        return self._table.edges

    def find_bin(self, pt):
        _check_pt(pt)
        return self._table.find_bin(pt)

    def value(self, pt):
        _check_pt(pt)
        return self._table(pt)

    def value_plus(self, pt):
        return self.value(pt)

    def value_minus(self, pt):
        return self.value(pt)

    def __repr__(self):
        return "EfficiencyTable(edges={}, efficiencies={})".format(
            self._table.edges, self._table.values
        )
