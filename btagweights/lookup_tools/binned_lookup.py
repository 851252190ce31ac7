from copy import deepcopy

import numpy

from btagweights.exceptions import ConfigurationError
from btagweights.lookup_tools.lookup_base import lookup_base


class binned_lookup(lookup_base):
    """A one dimensional table of constants binned in jet pt

    Parameters
    ----------
        edges : array_like
            Bin edges, strictly increasing, one more than the number of values.
            The last edge may be ``numpy.inf``.
        values : array_like
            One value per bin

    The bin of a given pt is the one whose low edge is the greatest edge not
    above pt. Values below the first edge land in the first bin and values
    above the last edge land in the last bin, so the lookup never fails.
    """

    def __init__(self, edges, values):
        super().__init__()
        edges = numpy.asarray(edges, dtype=numpy.float64)
        values = numpy.asarray(values)
        if edges.ndim != 1 or values.ndim != 1:
            raise ConfigurationError("binned_lookup only handles one dimension")
        if values.size == 0:
            raise ConfigurationError("binned_lookup needs at least one bin")
        if edges.size != values.size + 1:
            raise ConfigurationError(
                "Expected %d bin edges for %d values, got %d"
                % (values.size + 1, values.size, edges.size)
            )
        if numpy.isnan(edges).any() or not numpy.all(numpy.diff(edges) > 0):
            raise ConfigurationError(
                "Bin edges must be strictly increasing: %r" % edges
            )
        if not numpy.issubdtype(values.dtype, numpy.number):
            raise TypeError("binned_lookup cannot handle %s values!" % values.dtype)
        self._axis = deepcopy(edges)
        self._values = values.astype(numpy.float64)

    @property
    def edges(self):
        return self._axis

    @property
    def values(self):
        return self._values

    def find_bin(self, pt):
        return numpy.clip(
            numpy.searchsorted(self._axis, pt, side="right") - 1,
            0,
            self._values.shape[0] - 1,
        )

    def _evaluate(self, pt):
        return self._values[self.find_bin(pt)]

    def __repr__(self):
        myrepr = object.__repr__(self)
        myrepr += " 1 dimensional table with edges:\n"
        myrepr += f"\t1: {self._axis}\n"
        return myrepr
