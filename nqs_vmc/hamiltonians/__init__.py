# Exposes the Hamiltonian classes at the package level so you can write:
#
#   from nqs_vmc.hamiltonians import IsingHamiltonian, HeisenbergHamiltonian

from .base import Hamiltonian
from .ising import IsingHamiltonian
from .heisenberg import HeisenbergHamiltonian
from .heisenberg2d import Heisenberg2dHamiltonian
from .lattice import SquareLattice, chain_bonds

__all__ = [
    "Hamiltonian",
    "IsingHamiltonian",
    "HeisenbergHamiltonian",
    "Heisenberg2dHamiltonian",
    "SquareLattice",
    "chain_bonds",
]
