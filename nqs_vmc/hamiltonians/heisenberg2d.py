# nqs_vmc/hamiltonians/heisenberg2d.py
#
# 2D antiferromagnetic Heisenberg model on an L x L square lattice.
# Same matrix elements as the chain (see heisenberg.py), summed over the
# nearest-neighbour bonds of the square lattice. The square lattice is
# bipartite, so the Marshall-rotated swap amplitude -2 applies to every bond.

import numpy as np
from .base import Hamiltonian
from .heisenberg import bond_connected_states
from .lattice import SquareLattice


class Heisenberg2dHamiltonian(Hamiltonian):
    """
    Heisenberg model on the square lattice.

    Raises:
        ConfigurationError: at construction, if n_spins is not a perfect square.
    """

    def __init__(self, n_spins: int, jz: float, pbc: bool = True):
        self.lattice = SquareLattice(n_spins, pbc)
        self.jz = jz
        self.pbc = pbc
        self.bonds = self.lattice.bonds

    @property
    def n_spins(self) -> int:
        return self.lattice.n_spins

    def find_connected_states(self, spins: np.ndarray) -> list:
        return bond_connected_states(spins, self.bonds, self.jz)

    def min_flips(self) -> int:
        return 2

    def __repr__(self) -> str:
        return f"Heisenberg2dHamiltonian({self.lattice!r}, jz={self.jz})"
