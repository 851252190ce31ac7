import awkward as ak
import numpy
import pytest
from dummy_distributions import dummy_jagged_pt

from btagweights import ConfigurationError
from btagweights.lookup_tools import binned_lookup, formula_lookup, read_calibration_csv


def test_evaluate_noimpl():
    from btagweights.lookup_tools.lookup_base import lookup_base

    with pytest.raises(NotImplementedError):
        lookup_base()._evaluate(1.0)

    with pytest.raises(TypeError):
        lookup_base()([1.0, 2.0])


def test_binned_lookup():
    lookup = binned_lookup([20.0, 30.0, 60.0, numpy.inf], [0.1, 0.2, 0.3])

    assert lookup(25.0) == 0.1
    assert lookup(30.0) == 0.2
    assert lookup(59.9) == 0.2
    assert lookup(1e6) == 0.3
    # below the first edge saturates to the first bin
    assert lookup(5.0) == 0.1
    assert numpy.all(
        lookup(numpy.array([0.0, 25.0, 45.0, 100.0]))
        == numpy.array([0.1, 0.1, 0.2, 0.3])
    )

    counts, test_pt = dummy_jagged_pt()
    jagged = ak.unflatten(test_pt, counts)
    out = lookup(jagged)
    assert ak.to_list(ak.num(out)) == counts.tolist()
    assert numpy.all(ak.to_numpy(ak.flatten(out)) == lookup(test_pt))
    assert ak.to_list(lookup(ak.Array([[25.0, 100.0], [], [45.0]]))) == [
        [0.1, 0.3],
        [],
        [0.2],
    ]


def test_binned_lookup_find_bin_monotone():
    lookup = binned_lookup(numpy.linspace(20.0, 1000.0, 25), numpy.arange(24.0))
    counts, test_pt = dummy_jagged_pt()
    bins = lookup.find_bin(numpy.sort(test_pt))
    assert numpy.all(numpy.diff(bins) >= 0)
    assert bins.min() >= 0
    assert bins.max() <= 23


def test_binned_lookup_exceptions():
    with pytest.raises(ConfigurationError):
        binned_lookup([20.0, 30.0, 30.0], [0.1, 0.2])

    with pytest.raises(ConfigurationError):
        binned_lookup([20.0, 60.0, 30.0], [0.1, 0.2])

    with pytest.raises(ConfigurationError):
        binned_lookup([20.0, 30.0], [0.1, 0.2])

    with pytest.raises(ConfigurationError):
        binned_lookup([20.0], [])


def test_formula_lookup():
    lookup = formula_lookup("0.93*(1.+0.0013*x)/(1.+0.0012*x)", 20.0, 800.0)

    def expected(x):
        return 0.93 * (1.0 + 0.0013 * x) / (1.0 + 0.0012 * x)

    assert lookup(50.0) == pytest.approx(expected(50.0))
    # clamped to the fitted range
    assert lookup(5.0) == pytest.approx(expected(20.0))
    assert lookup(5000.0) == pytest.approx(expected(800.0))

    pts = numpy.array([10.0, 20.0, 75.0, 300.0, 900.0])
    assert numpy.allclose(lookup(pts), expected(numpy.clip(pts, 20.0, 800.0)))

    counts, test_pt = dummy_jagged_pt()
    out = lookup(ak.unflatten(test_pt, counts))
    assert numpy.allclose(
        ak.to_numpy(ak.flatten(out)), expected(numpy.clip(test_pt, 20.0, 800.0))
    )

    assert "0.93*(1.+0.0013*x)/(1.+0.0012*x)" in formula_lookup._formulaCache


def test_formula_lookup_constants_and_callables():
    constant = formula_lookup("0.95", 20.0, 800.0)
    assert constant(50.0) == 0.95
    assert numpy.all(constant(numpy.array([10.0, 50.0, 900.0])) == 0.95)

    number = formula_lookup(1.1, 20.0, 800.0)
    assert number(50.0) == 1.1

    func = formula_lookup(lambda x: 1.0 + 0.001 * x, 20.0, 800.0)
    assert func(100.0) == pytest.approx(1.1)
    assert func(1000.0) == pytest.approx(1.8)


def test_formula_lookup_exceptions():
    with pytest.raises(ConfigurationError):
        formula_lookup("0.9*(1.+", 20.0, 800.0)

    with pytest.raises(ConfigurationError):
        formula_lookup("0.95", 800.0, 20.0)

    with pytest.raises(ConfigurationError):
        formula_lookup(None, 20.0, 800.0)

    # these parse, but fail only once numba types them
    for formula in ["foo*x", "min(x, 670.)"]:
        for _ in range(2):
            with pytest.raises(ConfigurationError):
                formula_lookup(formula, 20.0, 800.0)
        assert formula not in formula_lookup._formulaCache


def test_read_calibration_csv(calibration_file):
    df, name = read_calibration_csv(calibration_file)

    assert name == "testcalib"
    assert len(df) == 27
    assert set(df["jetFlavor"]) == {0, 4, 5}
    assert set(df["measurementType"]) == {"scale", "efficiency"}
    central = df[(df["jetFlavor"] == 0) & (df["sysType"] == "central")]
    assert central.iloc[0]["formula"] == "1.07+0.0001*x"


def test_read_calibration_csv_exceptions(tmp_path):
    badcolumns = tmp_path / "badcolumns.csv"
    badcolumns.write_text(
        "algorithm, operatingPoint, jetFlavor, sysType, ptMin, ptMax, formula\n"
        "CSV, medium, 5, central, 20, 800, 0.95\n"
    )
    with pytest.raises(ConfigurationError):
        read_calibration_csv(str(badcolumns))

    badsyst = tmp_path / "badsyst.csv"
    badsyst.write_text(
        "algorithm, operatingPoint, selection, jetFlavor, measurementType, sysType,"
        " ptMin, ptMax, formula\n"
        "CSV, medium, *, 5, scale, central, 20, 800, 0.95\n"
        "CSV, medium, muon, 5, efficiency, up, 0, 800, 0.5\n"
    )
    with pytest.raises(ConfigurationError):
        read_calibration_csv(str(badsyst))

    badtype = tmp_path / "badtype.csv"
    badtype.write_text(
        "algorithm, operatingPoint, selection, jetFlavor, measurementType, sysType,"
        " ptMin, ptMax, formula\n"
        "CSV, medium, *, 5, mistag, central, 20, 800, 0.95\n"
    )
    with pytest.raises(ConfigurationError):
        read_calibration_csv(str(badtype))
