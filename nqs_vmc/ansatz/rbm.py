# nqs_vmc/ansatz/rbm.py
#
# Complex Restricted Boltzmann Machine (RBM) neural quantum state with
# lookup tables.
#
# The RBM has N visible units (physical spins) and M hidden units. With the
# hidden units summed out analytically the log-wavefunction is
#
#   log psi(sigma) = sum_i a_i*sigma_i + sum_j lncosh(theta_j)
#   theta_j        = b_j + sum_i sigma_i*W_ij
#
# (the constant log 2 per hidden unit is dropped, it cancels in every ratio).
#
# The effective fields theta_j are the "lookup table". When a move flips the
# sites in F, each theta_j changes by -2 * sum_{i in F} sigma_i*W_ij, so the
# amplitude ratio of a proposed move costs O(M * |F|) instead of O(N * M).
# The parameters are pre-trained and never change here.

import numpy as np

from .base import Ansatz
from ..errors import ConfigurationError
from ..fileio import load_parameters

# Beyond this |x| we use ln(cosh x) = |x| - ln 2; the neglected term is
# ln(1 + exp(-2|x|)) < 4e-11, and cosh itself would overflow at |x| ~ 710.
LNCOSH_CUTOFF = 12.0
_LOG2 = np.log(2.0)


def _lncosh_real(x):
    xp = np.abs(x)
    direct = np.log(np.cosh(np.minimum(xp, LNCOSH_CUTOFF)))
    return np.where(xp <= LNCOSH_CUTOFF, direct, xp - _LOG2)


def lncosh(x):
    """
    ln(cosh(x)) for real or complex arguments, scalar or array.

    Real x: ln(cosh|x|) below the cutoff, |x| - ln 2 above it.

    Complex x + iy: uses cosh(x + iy) = cosh(x) * (cos y + i tanh(x) sin y),
    so the modulus goes through the safe real formula and the phase is
    log(cos y + i tanh(x) sin y) on the principal branch. No unwrapping is
    done: the imaginary part may jump by 2*pi, which only matters if full log
    amplitudes are accumulated. Ratios (exp of differences) are unaffected.
    """
    x = np.asarray(x)
    if np.iscomplexobj(x):
        re, im = x.real, x.imag
        res = _lncosh_real(re) + np.log(np.cos(im) + 1j * np.tanh(re) * np.sin(im))
    else:
        res = _lncosh_real(x)
    if res.ndim == 0:
        return res[()]
    return res


class RBM(Ansatz):
    """
    Complex-valued RBM wavefunction with an incremental lookup table.

    Parameters (read-only after construction):
        a (N,):    visible biases
        b (M,):    hidden biases
        W (N, M):  visible-hidden weights, row i belongs to spin i

    The lookup table (M,) holds theta_j = b_j + W[:, j] . sigma for the
    configuration the sampler currently sits on. Each sampling chain needs its
    own table; use spawn() to get an engine that shares the parameters.
    """

    def __init__(self, a, b, W):
        a = np.array(a, dtype=complex).ravel()
        b = np.array(b, dtype=complex).ravel()
        W = np.array(W, dtype=complex)

        if W.ndim != 2 or W.shape != (a.size, b.size):
            raise ConfigurationError(
                f"Weight matrix has shape {W.shape}, expected "
                f"({a.size}, {b.size}) from the bias vectors."
            )
        if a.size == 0:
            raise ConfigurationError("The wavefunction needs at least one visible unit.")

        for arr in (a, b, W):
            arr.flags.writeable = False

        self.a = a
        self.b = b
        self.W = W
        self._lookup = None

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_file(cls, path: str) -> 'RBM':
        """Load a pre-trained parameter file (see nqs_vmc.fileio.load_parameters)."""
        a, b, W = load_parameters(path)
        return cls(a, b, W)

    @classmethod
    def random(cls, n_spins: int, alpha: int = 1, seed: int = 42,
               sigma: float = 0.01) -> 'RBM':
        """
        RBM with small complex Gaussian parameters.

        Args:
            n_spins: Number of visible units.
            alpha:   Hidden unit density, M = alpha * n_spins.
            seed:    Random seed for reproducibility.
            sigma:   Standard deviation of real and imaginary parts.
        """
        rng = np.random.default_rng(seed)
        n_hidden = alpha * n_spins

        def draw(*shape):
            return rng.normal(0, sigma, size=shape) + 1j * rng.normal(0, sigma, size=shape)

        return cls(draw(n_spins), draw(n_hidden), draw(n_spins, n_hidden))

    def spawn(self) -> 'RBM':
        """New engine sharing these (read-only) parameters, with an empty lookup table."""
        clone = object.__new__(type(self))
        clone.a = self.a
        clone.b = self.b
        clone.W = self.W
        clone._lookup = None
        return clone

    # ------------------------------------------------------------------
    # Sizes
    # ------------------------------------------------------------------

    @property
    def n_spins(self) -> int:
        return self.a.size

    @property
    def n_hidden(self) -> int:
        return self.b.size

    @property
    def lookup(self) -> np.ndarray:
        """Copy of the current lookup table (None before init_lookup)."""
        if self._lookup is None:
            return None
        return self._lookup.copy()

    # ------------------------------------------------------------------
    # Amplitudes
    # ------------------------------------------------------------------

    def log_psi(self, spins: np.ndarray) -> complex:
        """
        Compute log(psi(sigma)) from scratch, O(N * M).

        Only used for validation and exact enumeration; sampling goes
        through log_psi_ratio.
        """
        spins = np.asarray(spins, dtype=float)
        theta = self.b + spins @ self.W
        return complex(self.a @ spins + np.sum(lncosh(theta)))

    def log_psi_ratio(self, spins: np.ndarray, flips) -> complex:
        """
        log(psi(sigma')/psi(sigma)) for sigma' = sigma with `flips` reversed.

            visible: -2 * sum_{i in F} a_i sigma_i
            hidden:  sum_j lncosh(theta_j - 2 sum_{i in F} sigma_i W_ij) - lncosh(theta_j)

        Uses the lookup table, which must match `spins`.
        """
        if len(flips) == 0:
            return 0j
        self._check_lookup()

        flips = list(flips)
        s = np.asarray(spins)[flips].astype(float)
        theta = self._lookup
        theta_new = theta - 2.0 * (s @ self.W[flips])

        visible = -2.0 * (self.a[flips] @ s)
        hidden = np.sum(lncosh(theta_new) - lncosh(theta))
        return complex(visible + hidden)

    # ------------------------------------------------------------------
    # Lookup tables
    # ------------------------------------------------------------------

    def init_lookup(self, spins: np.ndarray) -> None:
        """theta = b + W^T sigma, computed in full."""
        spins = np.asarray(spins, dtype=float)
        if spins.shape != (self.n_spins,):
            raise ConfigurationError(
                f"Configuration has shape {spins.shape}, the wavefunction "
                f"expects ({self.n_spins},)."
            )
        self._lookup = self.b + spins @ self.W

    def update_lookup(self, spins: np.ndarray, flips) -> None:
        """theta -= 2 * sum_{i in F} sigma_i W[i], with sigma the pre-flip state."""
        if len(flips) == 0:
            return
        self._check_lookup()
        flips = list(flips)
        s = np.asarray(spins)[flips].astype(float)
        self._lookup -= 2.0 * (s @ self.W[flips])

    def _check_lookup(self) -> None:
        if self._lookup is None:
            raise RuntimeError("Lookup table used before init_lookup() was called.")

    def __repr__(self) -> str:
        return f"RBM(n_visible={self.n_spins}, n_hidden={self.n_hidden})"
