class ConfigurationError(ValueError):
    """Raised when calibration inputs or engine settings are unusable

    Unknown flavors, missing curves, badly ordered bin edges, out-of-range
    table values, unknown systematic shifts and malformed calibration files
    all end up here. These are setup defects, so they are never recovered from.
    """


class DomainError(ValueError):
    """Raised when a curve is evaluated at a negative or non-finite momentum"""
