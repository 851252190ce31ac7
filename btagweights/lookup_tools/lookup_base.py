import numbers
from functools import partial

import awkward
import numpy


def _evaluate_leaf(layout, thelookup, lookup_kwargs, **kwargs):
    if isinstance(layout, (list, tuple)):
        (layout,) = layout
    if isinstance(layout, awkward.contents.NumpyArray):
        if awkward.backend(layout) != "cpu":
            raise NotImplementedError("support for cupy/jax/etc. numpy extensions")
        return awkward.contents.NumpyArray(
            thelookup._evaluate(awkward.to_numpy(layout), **lookup_kwargs)
        )
    return None


class lookup_base:
    """Base class for all objects that look up a value as a function of jet pt

    Numbers and numpy arrays are passed straight to ``_evaluate``. High level
    awkward arrays (e.g. jagged per-event jet collections) are evaluated leaf
    by leaf and the result keeps the structure of the input.
    """

    def __init__(self):
        pass

    def __call__(self, pt, **kwargs):
        if isinstance(pt, (numpy.ndarray, numbers.Number)):
            return self._evaluate(pt, **kwargs)
        elif not isinstance(pt, awkward.highlevel.Array):
            raise TypeError(
                "lookup base must receive high level awkward arrays,"
                " numpy arrays, or numbers!"
            )
        return awkward.transform(
            partial(_evaluate_leaf, thelookup=self, lookup_kwargs=kwargs), pt
        )

    def _evaluate(self, pt, **kwargs):
        raise NotImplementedError
