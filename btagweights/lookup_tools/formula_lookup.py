import numbers
from threading import Lock

import numba
from numba.core.errors import NumbaError
import numpy

from btagweights.exceptions import ConfigurationError
from btagweights.lookup_tools.lookup_base import lookup_base

_formula_namespace = {
    "log": numpy.log,
    "exp": numpy.exp,
    "sqrt": numpy.sqrt,
}


class formula_lookup(lookup_base):
    """A fitted function of jet pt, valid over ``[pt_min, pt_max]``

    Parameters
    ----------
        formula : str, float or callable
            Either a string expression in the variable ``x`` (``log``, ``exp``
            and ``sqrt`` are available), a constant, or a numpy-aware callable
            of one argument
        pt_min : float
            Lower end of the fitted range
        pt_max : float
            Upper end of the fitted range, may be ``numpy.inf``

    The argument is clipped to the fitted range before evaluation, so the
    function is never extrapolated. String formulas are compiled with numba
    once per process and shared between all lookups using them.
    """

    _formulaLock = Lock()
    _formulaCache = {}

    def __init__(self, formula, pt_min, pt_max):
        super().__init__()
        if not pt_min < pt_max:
            raise ConfigurationError(
                "Empty fit range [%r, %r] for formula %r" % (pt_min, pt_max, formula)
            )
        self._pt_min = float(pt_min)
        self._pt_max = float(pt_max)
        self._formula = formula
        if isinstance(formula, str):
            self._func = formula_lookup._compile(formula)
        elif isinstance(formula, numbers.Number) or callable(formula):
            self._func = formula
        else:
            raise ConfigurationError("Cannot interpret formula %r" % (formula,))
        # get the jit to compile
        self._evaluate(numpy.array([self._pt_min]))

    @classmethod
    def _compile(cls, formula):
        with formula_lookup._formulaLock:
            try:
                return formula_lookup._formulaCache[formula]
            except KeyError:
                try:
                    if "x" in formula:
                        feval = eval("lambda x: " + formula, dict(_formula_namespace))
                        out = numba.jit(nopython=True)(feval)
                        # get the jit to compile, unknown names surface here
                        out(numpy.ones(1, dtype=numpy.float64))
                    else:
                        out = float(eval(formula, dict(_formula_namespace)))
                except (
                    SyntaxError,
                    NameError,
                    TypeError,
                    NumbaError,
                ) as err:
                    raise ConfigurationError(
                        "Could not compile formula %r" % formula
                    ) from err
                formula_lookup._formulaCache[formula] = out
                return out

    @property
    def formula(self):
        return self._formula

    @property
    def pt_min(self):
        return self._pt_min

    @property
    def pt_max(self):
        return self._pt_max

    def _evaluate(self, pt):
        x = numpy.clip(pt, self._pt_min, self._pt_max).astype(numpy.float64)
        if isinstance(self._func, numbers.Number):
            out = self._func
        else:
            out = self._func(x)
        # constant formulas give a scalar for any input
        if numpy.ndim(x) == 0:
            return numpy.float64(out)
        return numpy.broadcast_to(out, x.shape).astype(numpy.float64)

    def __repr__(self):
        return "{} formula {!r} on [{}, {}]".format(
            object.__repr__(self), self._formula, self._pt_min, self._pt_max
        )
