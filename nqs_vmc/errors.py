# nqs_vmc/errors.py
#
# Exception taxonomy for the sampler. Every validation failure surfaces through
# one of these classes, raised as early as possible (load or construction time)
# and never retried. Only the command-line entry point turns them into an exit
# status; library code just raises.


class NQSError(Exception):
    """Base class for every error raised by nqs_vmc."""


class ConfigurationError(NQSError, ValueError):
    """
    The run is set up wrong: malformed parameter file, non-square lattice,
    mismatched spin counts, unknown model token or bad filename encoding.
    """


class ParameterRangeError(NQSError, ValueError):
    """A numeric run parameter (sweeps, fractions, flip count...) is out of range."""


class ResourceError(NQSError, OSError):
    """An output resource, such as the configuration file, cannot be opened."""
