# nqs_vmc/exact.py
#
# Exact diagonalization: the ground truth for verifying sampled energies.
#
# Builds the full 2^N x 2^N Hamiltonian as a sparse matrix straight from
# Hamiltonian.find_connected_states, so every model the sampler can use is
# covered without a separate matrix builder. The lowest eigenvalue comes from
# the Lanczos algorithm (scipy eigsh). Only feasible for small N (<= ~20).
#
# exact_variational_energy evaluates <psi|H|psi>/<psi|psi> of a given ansatz
# by enumerating every configuration: the number a long enough Monte Carlo
# run must converge to.

import warnings

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

MAX_EXACT_SPINS = 20


# ============================================================
# Basis State Utilities
# ============================================================

def idx_to_spins(idx: int, n_spins: int) -> np.ndarray:
    """
    Convert a basis state index to its spin configuration.

    Encoding: bit i of idx -> spin at site i (0 -> -1, 1 -> +1).
    """
    bits = (idx >> np.arange(n_spins)) & 1
    return 2 * bits - 1


def spins_to_idx(spins: np.ndarray) -> int:
    """Convert a spin configuration (+/-1 values) to its basis state index."""
    bits = (np.asarray(spins) + 1) // 2
    powers = 1 << np.arange(len(spins))
    return int(np.dot(bits, powers))


def _check_size(n_spins: int) -> None:
    if n_spins > MAX_EXACT_SPINS:
        dim = 2 ** n_spins
        warnings.warn(
            f"Exact diagonalization for N={n_spins} spins works on a {dim}x{dim} "
            f"matrix. This may be very slow.",
            UserWarning, stacklevel=3
        )


# ============================================================
# Sparse Hamiltonian Matrix
# ============================================================

def build_sparse_matrix(hamiltonian) -> sp.csr_matrix:
    """
    Sparse matrix of H in the sigma^z basis.

    Column s holds <s'|H|s> for every connected s' of s; flipping site i
    toggles bit i of the index. Duplicate entries (a flip set reached twice)
    are summed by the COO -> CSR conversion.
    """
    n = hamiltonian.n_spins
    _check_size(n)
    dim = 2 ** n
    rows, cols, data = [], [], []

    for s_idx in range(dim):
        spins = idx_to_spins(s_idx, n)
        for flips, mel in hamiltonian.find_connected_states(spins):
            s_prime = s_idx
            for site in flips:
                s_prime ^= 1 << site
            rows.append(s_prime)
            cols.append(s_idx)
            data.append(mel)

    return sp.coo_matrix((data, (rows, cols)), shape=(dim, dim), dtype=complex).tocsr()


# ============================================================
# Ground State
# ============================================================

def exact_diagonalization(hamiltonian):
    """
    Ground state energy and wavefunction via sparse Lanczos.

    Args:
        hamiltonian: any Hamiltonian instance.

    Returns:
        energy:       Ground state energy (float).
        ground_state: Wavefunction coefficients, shape (2^N,), normalized.
    """
    H = build_sparse_matrix(hamiltonian)

    if H.shape[0] <= 2:
        eigenvalues, eigenvectors = np.linalg.eigh(H.toarray())
        return float(eigenvalues[0]), eigenvectors[:, 0]

    # 'SA' = Smallest Algebraic
    eigenvalues, eigenvectors = spla.eigsh(H, k=1, which='SA', tol=0)
    return float(np.real(eigenvalues[0])), eigenvectors[:, 0]


def exact_ground_state_energy(hamiltonian) -> float:
    """Convenience wrapper: returns only the ground state energy."""
    energy, _ = exact_diagonalization(hamiltonian)
    return energy


# ============================================================
# Variational Energy of an Ansatz
# ============================================================

def ansatz_vector(ansatz) -> np.ndarray:
    """
    psi(sigma) for every basis state, normalized.

    Log amplitudes are shifted by their maximum real part before
    exponentiating, so large parameters do not overflow.
    """
    n = ansatz.n_spins
    _check_size(n)
    log_psi = np.array([ansatz.log_psi(idx_to_spins(i, n)) for i in range(2 ** n)])
    psi = np.exp(log_psi - np.max(log_psi.real))
    return psi / np.linalg.norm(psi)


def exact_variational_energy(hamiltonian, ansatz) -> float:
    """<psi|H|psi> / <psi|psi> by full enumeration."""
    H = build_sparse_matrix(hamiltonian)
    psi = ansatz_vector(ansatz)
    return float(np.real(np.vdot(psi, H @ psi)))
