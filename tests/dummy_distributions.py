import awkward as ak
import numpy as np


def dummy_jagged_pt():
    np.random.seed(42)
    counts = np.random.exponential(2, size=50).astype(int)
    entries = np.sum(counts)
    test_pt = np.random.exponential(30.0, size=entries) + np.random.exponential(
        30.0, size=entries
    )
    return (counts, test_pt)


def dummy_jagged_jets():
    counts, test_pt = dummy_jagged_pt()
    test_flavor = np.random.choice([0, 4, 5], size=len(test_pt))
    test_tagged = np.random.rand(len(test_pt)) < 0.3
    jets = ak.zip(
        {
            "pt": ak.unflatten(test_pt, counts),
            "hadronFlavour": ak.unflatten(test_flavor, counts),
            "tagged": ak.unflatten(test_tagged, counts),
        }
    )
    return counts, jets
