# nqs_vmc/ansatz/base.py
#
# Abstract base class for variational wavefunctions driven by the sampler.
# The sampler never recomputes a full amplitude on the hot path: it asks the
# ansatz for the ratio psi(sigma')/psi(sigma) of a configuration that differs
# in a few flipped sites, and the ansatz keeps whatever cached quantities it
# needs (a "lookup table") in sync with the accepted moves.

from abc import ABC, abstractmethod
import numpy as np


class Ansatz(ABC):
    """
    Capability interface for a wavefunction used in Metropolis sampling.

    Every ansatz must provide:
      - log_psi(spins): full log amplitude (validation, not the hot path)
      - log_psi_ratio(spins, flips): log(psi(spins')/psi(spins)) using the cache
      - init_lookup(spins) / update_lookup(spins, flips): cache maintenance
      - n_spins: number of visible spins
    """

    @property
    @abstractmethod
    def n_spins(self) -> int:
        """Number of spins the wavefunction is defined on."""

    @abstractmethod
    def log_psi(self, spins: np.ndarray) -> complex:
        """Compute log(psi(spins)) from scratch."""

    @abstractmethod
    def log_psi_ratio(self, spins: np.ndarray, flips) -> complex:
        """
        Compute log(psi(spins') / psi(spins)), where spins' is `spins` with the
        sites in `flips` reversed. Must return 0 for an empty flip set.

        Args:
            spins: current configuration, shape (n_spins,), values +1 or -1.
                   The lookup table must describe exactly this configuration.
            flips: sequence of site indices (0, 1 or 2 of them).
        """

    def psi_ratio(self, spins: np.ndarray, flips) -> complex:
        """psi(spins') / psi(spins) = exp(log_psi_ratio)."""
        return np.exp(self.log_psi_ratio(spins, flips))

    @abstractmethod
    def init_lookup(self, spins: np.ndarray) -> None:
        """Rebuild the lookup table from scratch for configuration `spins`."""

    @abstractmethod
    def update_lookup(self, spins: np.ndarray, flips) -> None:
        """
        Bring the lookup table in line with an accepted move.

        Must be called with the configuration *before* the flips are applied.
        """
