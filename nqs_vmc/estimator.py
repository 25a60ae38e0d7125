# nqs_vmc/estimator.py
#
# Binning analysis of the local-energy time series.
#
# Consecutive Monte Carlo sweeps are correlated, so the naive standard error
# sqrt(var / n) is too small. We cut the series into n_blocks contiguous blocks
# and treat the block means as (nearly) independent samples. When the block
# size exceeds the correlation length,
#
#   var(block means) * block_size / var(samples)  ->  2 * tau_int
#
# which gives the integrated autocorrelation time as a by-product.

import math

import numpy as np

from .errors import ParameterRangeError

DEFAULT_N_BLOCKS = 50


class BinningResult:
    """
    Outcome of a binning analysis.

    Attributes:
        mean, error:          energy estimate and standard error (total system)
        mean_per_spin,
        error_per_spin:       the same divided by the number of spins
        autocorrelation_time: integrated autocorrelation time, in sweeps
        n_blocks, block_size: binning layout; n_samples = n_blocks * block_size
                              samples were used, the remainder was discarded
        variance, block_variance: unblocked and blocked sample variances
    """

    def __init__(self, mean, error, autocorrelation_time, n_blocks, block_size,
                 n_spins, variance, block_variance):
        self.mean = mean
        self.error = error
        self.autocorrelation_time = autocorrelation_time
        self.n_blocks = n_blocks
        self.block_size = block_size
        self.n_spins = n_spins
        self.variance = variance
        self.block_variance = block_variance

    @property
    def mean_per_spin(self) -> float:
        return self.mean / self.n_spins

    @property
    def error_per_spin(self) -> float:
        return self.error / self.n_spins

    @property
    def n_samples(self) -> int:
        return self.n_blocks * self.block_size

    def as_dict(self) -> dict:
        return {
            'mean_per_spin':        self.mean_per_spin,
            'error_per_spin':       self.error_per_spin,
            'autocorrelation_time': self.autocorrelation_time,
            'n_blocks':             self.n_blocks,
            'block_size':           self.block_size,
            'variance':             self.variance,
            'block_variance':       self.block_variance,
        }

    def __repr__(self) -> str:
        return (
            f"BinningResult(E/N={self.mean_per_spin:+.8f} +/- {self.error_per_spin:.2e}, "
            f"tau={self.autocorrelation_time:.2f}, bins={self.n_blocks}x{self.block_size})"
        )


def binning_analysis(energies, n_spins: int, n_blocks: int = DEFAULT_N_BLOCKS) -> BinningResult:
    """
    Blocked mean, error and autocorrelation time of an energy series.

    Only the real part of the (complex) local energies is analysed. The series
    is split into n_blocks blocks of floor(len / n_blocks) samples; trailing
    samples that do not fill a block are dropped.

    Variances are accumulated with Welford's online algorithm:
      - unblocked: over all retained samples, divisor n_blocks*block_size - 1
      - blocked:   over the block means, divisor n_blocks - 1

    Args:
        energies: sequence of local energies, one per measurement sweep.
        n_spins:  number of spins, for the per-spin figures.
        n_blocks: number of bins.

    Returns:
        BinningResult.

    Raises:
        ParameterRangeError: if n_blocks < 2 or there are fewer samples than bins.
    """
    if n_blocks < 2:
        raise ParameterRangeError(f"The binning analysis needs at least 2 bins, got {n_blocks}.")

    values = np.real(np.asarray(energies, dtype=complex))
    block_size = len(values) // n_blocks
    if block_size == 0:
        raise ParameterRangeError(
            f"Cannot bin {len(values)} energy samples into {n_blocks} blocks."
        )

    mean = 0.0
    m2 = 0.0
    block_mean = 0.0
    block_m2 = 0.0

    for i in range(n_blocks):
        block = values[i * block_size:(i + 1) * block_size]
        for k, e in enumerate(block):
            count = i * block_size + k + 1
            delta = e - mean
            mean += delta / count
            m2 += delta * (e - mean)

        eblock = float(np.mean(block))
        delta = eblock - block_mean
        block_mean += delta / (i + 1)
        block_m2 += delta * (eblock - block_mean)

    variance = m2 / (n_blocks * block_size - 1) if n_blocks * block_size > 1 else 0.0
    block_variance = block_m2 / (n_blocks - 1)

    error = math.sqrt(block_variance / n_blocks)
    if variance > 0:
        tau = 0.5 * block_size * block_variance / variance
    else:
        tau = 0.0

    return BinningResult(
        mean=float(mean),
        error=float(error),
        autocorrelation_time=float(tau),
        n_blocks=n_blocks,
        block_size=block_size,
        n_spins=n_spins,
        variance=float(variance),
        block_variance=float(block_variance),
    )


def _significant_digits(error: float) -> int:
    # Enough digits to show the mean down to the first digit of the error.
    if not error > 0 or not math.isfinite(error):
        return 6
    ndigits = int(math.log10(error))
    return -ndigits + 2 if ndigits < 0 else 0


def format_report(result: BinningResult) -> str:
    """Human-readable summary of a BinningResult, one '#'-prefixed line per item."""
    ndigits = _significant_digits(result.error_per_spin)
    lines = [
        "# Estimated average energy per spin : ",
        f"# {result.mean_per_spin:.{ndigits}e} +/-  {result.error_per_spin:.0e}",
        f"# Error estimated with binning analysis consisting of {result.n_blocks} bins ",
        f"# Block size is {result.block_size}",
        f"# Estimated autocorrelation time is {result.autocorrelation_time:.0e}",
    ]
    return "\n".join(lines)
