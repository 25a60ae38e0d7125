# nqs_vmc/hamiltonians/lattice.py
#
# Bond lists for the two lattices we support: a 1D chain and an L x L square
# lattice, each with open or periodic boundaries. Sites are numbered row by
# row (site = row * L + col). A bond is a pair (i, j) with i < j, listed once.

import math

from ..errors import ConfigurationError

NO_NEIGHBOR = -1


def _unique_bonds(pairs) -> list:
    bonds = []
    seen = set()
    for i, j in pairs:
        if i == NO_NEIGHBOR or j == NO_NEIGHBOR or i == j:
            continue
        bond = (min(i, j), max(i, j))
        if bond not in seen:
            seen.add(bond)
            bonds.append(bond)
    return bonds


def chain_bonds(n_spins: int, pbc: bool = True) -> list:
    """Nearest-neighbour bonds of a chain: (0,1), ..., (N-2,N-1) [+ (0,N-1) if periodic]."""
    pairs = [(i, i + 1) for i in range(n_spins - 1)]
    if pbc:
        pairs.append((n_spins - 1, 0))
    return _unique_bonds(pairs)


class SquareLattice:
    """
    L x L square lattice with N = L^2 sites.

    neighbors[i] = [left, right, up, down]; with open boundaries a missing
    neighbour is NO_NEIGHBOR (-1).

    Raises:
        ConfigurationError: if N is not a perfect square.
    """

    def __init__(self, n_spins: int, pbc: bool = True):
        length = math.isqrt(n_spins) if n_spins > 0 else 0
        if length == 0 or length * length != n_spins:
            raise ConfigurationError(
                f"The number of spins ({n_spins}) is not compatible with a square lattice."
            )
        self.n_spins = n_spins
        self.length = length
        self.pbc = pbc
        self.neighbors = [self._site_neighbors(i) for i in range(n_spins)]
        self.bonds = _unique_bonds(
            (i, j) for i in range(n_spins) for j in self.neighbors[i]
        )

    def _site_neighbors(self, site: int) -> list:
        L, n = self.length, self.n_spins
        col = site % L

        left = site - 1 if col > 0 else (site + L - 1 if self.pbc else NO_NEIGHBOR)
        right = site + 1 if col < L - 1 else (site - L + 1 if self.pbc else NO_NEIGHBOR)

        up = site - L
        if up < 0:
            up = up + n if self.pbc else NO_NEIGHBOR
        down = site + L
        if down >= n:
            down = down - n if self.pbc else NO_NEIGHBOR

        return [left, right, up, down]

    def __repr__(self) -> str:
        bc = "periodic" if self.pbc else "open"
        return f"SquareLattice({self.length}x{self.length}, {bc})"
