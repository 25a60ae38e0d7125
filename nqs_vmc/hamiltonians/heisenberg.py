# nqs_vmc/hamiltonians/heisenberg.py
#
# 1D antiferromagnetic Heisenberg model.
#
# Per bond (i, j) the ZZ part is diagonal, jz * sigma_i * sigma_j, and the
# XX + YY part swaps an antiparallel pair. The bare swap amplitude is +2; we
# store -2, i.e. the Hamiltonian after the Marshall sign rotation on the
# bipartite lattice. The spectrum is the same and the ground state has a
# positive-definite sign structure, which is what the pre-trained
# wavefunctions represent. The swap amplitude does not depend on jz.

import numpy as np
from .base import Hamiltonian
from .lattice import chain_bonds

SWAP_ELEMENT = complex(-2.0)


def bond_connected_states(spins: np.ndarray, bonds: list, jz: float) -> list:
    """
    Connected states of a Heisenberg-type Hamiltonian on an arbitrary bond list.

    Returns [((), jz * sum_bonds s_i s_j)] followed by ((i, j), -2) for every
    antiparallel bond.
    """
    spins = np.asarray(spins)
    zz = 0
    exchanges = []
    for i, j in bonds:
        zz += spins[i] * spins[j]
        if spins[i] != spins[j]:
            exchanges.append(((i, j), SWAP_ELEMENT))
    return [((), complex(jz * float(zz)))] + exchanges


class HeisenbergHamiltonian(Hamiltonian):
    """
    1D Heisenberg chain.

    H = jz * sum_<ij> sigma_i^z sigma_j^z - 2 * sum_<ij> (S_i^+ S_j^- + S_i^- S_j^+)

    Convention: jz > 0 is antiferromagnetic.
    """

    def __init__(self, n_spins: int, jz: float, pbc: bool = True):
        """
        Args:
            n_spins: Number of spins in the chain.
            jz:      Ising (ZZ) anisotropy coupling.
            pbc:     Periodic boundary conditions.
        """
        self._n_spins = n_spins
        self.jz = jz
        self.pbc = pbc
        self.bonds = chain_bonds(n_spins, pbc)

    @property
    def n_spins(self) -> int:
        return self._n_spins

    def find_connected_states(self, spins: np.ndarray) -> list:
        return bond_connected_states(spins, self.bonds, self.jz)

    def min_flips(self) -> int:
        return 2

    def __repr__(self) -> str:
        return f"HeisenbergHamiltonian(n_spins={self._n_spins}, jz={self.jz}, pbc={self.pbc})"
