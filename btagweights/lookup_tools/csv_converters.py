import logging

import pandas

from btagweights.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

calibration_columns = [
    "algorithm",
    "operatingPoint",
    "selection",
    "jetFlavor",
    "measurementType",
    "sysType",
    "ptMin",
    "ptMax",
    "formula",
]

measurement_types = {
    "scale": {"central", "uncertainty", "up", "down"},
    "efficiency": {"central"},
}


def read_calibration_csv(filename):
    """Reads a calibration CSV file into a pandas dataframe

    The first header cell may carry a name for the table, separated from the
    first column name by a semicolon (``mytable; algorithm, ...``).

    Parameters
    ----------
        filename : str
            The file to open (accepts .csv, .csv.gz, etc.)
            See pandas read_csv for all supported compressions.

    Returns
    -------
        df : pandas.DataFrame
            One row per calibration entry, with string columns stripped and
            the ``formula`` column kept as a string
        name : str
            The name of the table, or the file name if the header has none
    """
    df = pandas.read_csv(
        filename,
        skipinitialspace=True,
        converters={"formula": str},
    )
    name = filename
    if ";" in df.columns[0]:
        name = df.columns[0].split(";")[0].strip()

    def cleanup(colname):
        if ";" in colname:
            _, colname = colname.split(";")
        return colname.strip()

    df.rename(columns=cleanup, inplace=True)
    if not list(df.columns) == calibration_columns:
        raise ConfigurationError(
            "Columns in calibration file %s not as expected: %r"
            % (filename, list(df.columns))
        )
    for column in calibration_columns[:3] + ["measurementType", "sysType"]:
        df[column] = df[column].astype(str).str.strip()
    df["formula"] = df["formula"].astype(str).str.strip(' "')
    df["jetFlavor"] = df["jetFlavor"].astype(int)
    df["ptMin"] = df["ptMin"].astype(float)
    df["ptMax"] = df["ptMax"].astype(float)

    for mtype, stypes in df.groupby("measurementType")["sysType"]:
        if mtype not in measurement_types:
            raise ConfigurationError(
                "Unrecognized measurement type %r in %s" % (mtype, filename)
            )
        unknown = set(stypes) - measurement_types[mtype]
        if unknown:
            raise ConfigurationError(
                "Unrecognized systematic types %r for %s in %s"
                % (sorted(unknown), mtype, filename)
            )
    logger.debug("Read %d calibration entries from %s", len(df), filename)
    return df, name
