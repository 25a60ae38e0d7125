# nqs_vmc/hamiltonians/base.py
#
# Abstract base class for lattice spin Hamiltonians.
# Every Hamiltonian (Ising, Heisenberg 1D/2D) inherits from this class,
# so the sampler and the exact diagonalization can work with any of them.

from abc import ABC, abstractmethod
import numpy as np


class Hamiltonian(ABC):
    """
    Abstract base class for spin Hamiltonians in the sigma^z basis.

    A Hamiltonian is described by the configurations it connects: for a given
    configuration sigma, find_connected_states lists every sigma' with
    <sigma'|H|sigma> != 0, each encoded as the set of sites flipped to go from
    sigma to sigma'. The local energy is then

        E_loc(sigma) = sum_k  H(sigma, sigma'_k) * psi(sigma'_k) / psi(sigma)
    """

    @property
    @abstractmethod
    def n_spins(self) -> int:
        """Number of spins in the system."""

    @abstractmethod
    def find_connected_states(self, spins: np.ndarray) -> list:
        """
        Enumerate the non-zero matrix elements on configuration `spins`.

        Args:
            spins: array of shape (n_spins,), values in {+1, -1}

        Returns:
            List of (flips, matrix_element) pairs. flips is a tuple of site
            indices; the first entry is always ((), diagonal_element).
        """

    @abstractmethod
    def min_flips(self) -> int:
        """Smallest number of spin flips a Monte Carlo move needs (1 or 2)."""
