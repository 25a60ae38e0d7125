# nqs_vmc/hamiltonians/ising.py
#
# 1D Transverse Field Ising Model (TFIM).
#
# H = -J * sum_i(sigma_i^z * sigma_{i+1}^z) - h * sum_i(sigma_i^x)
#
# Two competing terms:
#   - J term (diagonal): neighboring spins want to align (ferromagnetic)
#   - h term (off-diagonal): sigma_i^x flips spin i with amplitude -h
#
# Quantum phase transition at h/J = 1.0. The coupling J is 1 for the
# pre-trained wavefunctions; only the field h is read from the file name.

import numpy as np
from .base import Hamiltonian


class IsingHamiltonian(Hamiltonian):
    """
    1D Transverse Field Ising Model.

    H = -J * sum_i sigma_i^z sigma_{i+1}^z - hfield * sum_i sigma_i^x
    """

    def __init__(self, n_spins: int, hfield: float, pbc: bool = True, J: float = 1.0):
        """
        Args:
            n_spins: Number of spins in the chain.
            hfield:  Transverse field strength.
            pbc:     Periodic boundary conditions (last spin couples to the first).
            J:       Ferromagnetic coupling.
        """
        self._n_spins = n_spins
        self.hfield = hfield
        self.pbc = pbc
        self.J = J

        # The off-diagonal part does not depend on the configuration:
        # one single-site flip per spin, all with the same amplitude.
        self._field_terms = [((i,), complex(-hfield)) for i in range(n_spins)]

    @property
    def n_spins(self) -> int:
        return self._n_spins

    def find_connected_states(self, spins: np.ndarray) -> list:
        """
        Non-zero elements of H on `spins`.

          1. Diagonal (ZZ): -J * sum_i sigma_i * sigma_{i+1}, plus the
             wrap-around bond when periodic.
          2. Off-diagonal (X): -hfield for each single spin flip (i,).
        """
        spins = np.asarray(spins)
        zz = np.sum(spins[:-1] * spins[1:])
        if self.pbc:
            zz += spins[-1] * spins[0]
        diagonal = complex(-self.J * float(zz))

        return [((), diagonal)] + self._field_terms

    def min_flips(self) -> int:
        return 1

    def __repr__(self) -> str:
        return f"IsingHamiltonian(n_spins={self._n_spins}, hfield={self.hfield}, pbc={self.pbc})"
