# tests/test_sampler.py
#
# ============================================================
# UNIT TESTS: Metropolis-Hastings Sampler
# ============================================================
#
# WHAT WE'RE TESTING:
#   MetropolisSampler drives the whole run: random initial state, single-
#   and two-spin moves, acceptance with min(1, |psi'/psi|^2), local energy
#   measurements and the final binning analysis.
#
# TEST STRATEGY:
#   1. Validation happens before any sampling (phase stays "uninitialized").
#   2. Moves: acceptance probability in [0, 1], lookup table consistent
#      after many accepted moves, magnetization conserved by pair moves.
#   3. The ultimate check: for a small system, the sampled energy must agree
#      with <psi|H|psi>/<psi|psi> computed by full enumeration (exact.py),
#      within the binning error bar.
#
# ============================================================

import sys
import os
import unittest
import tempfile
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nqs_vmc.ansatz import RBM
from nqs_vmc.hamiltonians import IsingHamiltonian, HeisenbergHamiltonian
from nqs_vmc.sampler import MetropolisSampler
from nqs_vmc.fileio import StateWriter, save_parameters
from nqs_vmc.exact import exact_variational_energy, exact_ground_state_energy
from nqs_vmc.errors import ConfigurationError, ParameterRangeError


def make_sampler(rbm, hamiltonian, seed=42, **kwargs):
    """Quiet sampler: no log lines, no progress bars."""
    return MetropolisSampler(rbm, hamiltonian, seed=seed, log_fn=None,
                             show_progress=False, **kwargs)


# ============================================================
# SECTION: Construction and Validation
# ============================================================

class TestSamplerValidation(unittest.TestCase):
    """Bad inputs are rejected before the chain moves."""

    def setUp(self):
        self.rbm = RBM.random(n_spins=4, alpha=1, seed=0)
        self.ham = IsingHamiltonian(4, hfield=1.0)

    def test_spin_count_mismatch(self):
        with self.assertRaises(ConfigurationError):
            make_sampler(self.rbm, IsingHamiltonian(6, hfield=1.0))

    def test_too_few_sweeps(self):
        sampler = make_sampler(self.rbm, self.ham)
        with self.assertRaises(ParameterRangeError):
            sampler.run(n_sweeps=10)
        self.assertEqual(sampler.phase, "uninitialized")
        self.assertIsNone(sampler.state)

    def test_therm_fraction_out_of_range(self):
        sampler = make_sampler(self.rbm, self.ham)
        with self.assertRaises(ParameterRangeError):
            sampler.run(n_sweeps=100, therm_fraction=1.5)
        with self.assertRaises(ParameterRangeError):
            sampler.run(n_sweeps=100, therm_fraction=-0.1)

    def test_bad_flip_count(self):
        sampler = make_sampler(self.rbm, self.ham)
        with self.assertRaises(ParameterRangeError):
            sampler.run(n_sweeps=100, n_flips=3)

    def test_bad_sweep_factor(self):
        sampler = make_sampler(self.rbm, self.ham)
        with self.assertRaises(ParameterRangeError):
            sampler.run(n_sweeps=100, sweep_factor=0)
        with self.assertRaises(ParameterRangeError):
            sampler.run(n_sweeps=100, sweep_factor=1.5)

    def test_non_finite_parameters(self):
        """inf/nan must be rejected as range errors, never reach ceil() or int()."""
        sampler = make_sampler(self.rbm, self.ham)
        for kwargs in ({'n_sweeps': float('inf')},
                       {'n_sweeps': float('nan')},
                       {'n_sweeps': 100, 'therm_fraction': float('nan')},
                       {'n_sweeps': 100, 'sweep_factor': float('inf')}):
            with self.subTest(**kwargs):
                with self.assertRaises(ParameterRangeError):
                    sampler.run(**kwargs)
        self.assertEqual(sampler.phase, "uninitialized")

    def test_range_error_is_a_value_error(self):
        """Callers that only know ValueError still catch range problems."""
        sampler = make_sampler(self.rbm, self.ham)
        with self.assertRaises(ValueError):
            sampler.run(n_sweeps=1)

    def test_move_before_init(self):
        sampler = make_sampler(self.rbm, self.ham)
        with self.assertRaises(RuntimeError):
            sampler.move(1)

    def test_reset_state_rejects_bad_values(self):
        sampler = make_sampler(self.rbm, self.ham)
        with self.assertRaises(ConfigurationError):
            sampler.reset_state(np.array([1, 0, -1, 1]))
        with self.assertRaises(ConfigurationError):
            sampler.reset_state(np.array([1, -1, 1]))

    def test_negative_seed_uses_clock(self):
        sampler = make_sampler(self.rbm, self.ham, seed=-1)
        self.assertGreaterEqual(sampler.seed, 0)


# ============================================================
# SECTION: Initial State
# ============================================================

class TestInitialState(unittest.TestCase):

    def test_zero_magnetization(self):
        rbm = RBM.random(n_spins=10, seed=1)
        sampler = make_sampler(rbm, HeisenbergHamiltonian(10, jz=1.0), seed=3)
        for _ in range(20):
            state = sampler.init_random_state(zero_magnetization=True)
            self.assertEqual(int(state.sum()), 0)
            self.assertTrue(np.all(np.abs(state) == 1))

    def test_odd_spins_zero_magnetization_rejected(self):
        rbm = RBM.random(n_spins=5, seed=1)
        sampler = make_sampler(rbm, HeisenbergHamiltonian(5, jz=1.0))
        with self.assertRaises(ConfigurationError):
            sampler.init_random_state(zero_magnetization=True)
        with self.assertRaises(ConfigurationError):
            sampler.run(n_sweeps=100)

    def test_odd_ising_chain_runs(self):
        """Single flips do not need a zero-magnetization start."""
        rbm = RBM.random(n_spins=5, seed=1)
        sampler = make_sampler(rbm, IsingHamiltonian(5, hfield=1.0))
        result = sampler.run(n_sweeps=100)
        self.assertEqual(result.n_samples, 100)


# ============================================================
# SECTION: Metropolis Moves
# ============================================================

class TestMoves(unittest.TestCase):

    def setUp(self):
        self.N = 6
        self.rbm = RBM.random(n_spins=self.N, alpha=2, seed=4, sigma=0.5)

    def test_acceptance_probability_in_unit_interval(self):
        sampler = make_sampler(self.rbm, IsingHamiltonian(self.N, hfield=1.0))
        sampler.reset_state(zero_magnetization=False)
        for site in range(self.N):
            p = sampler.acceptance_probability((site,))
            self.assertGreaterEqual(p, 0.0)
            self.assertLessEqual(p, 1.0)

    def test_acceptance_probability_value(self):
        """Below 1 it equals |psi(sigma')/psi(sigma)|^2 from full amplitudes."""
        sampler = make_sampler(self.rbm, IsingHamiltonian(self.N, hfield=1.0))
        spins = np.array([1, -1, 1, 1, -1, -1])
        sampler.reset_state(spins)
        flipped = spins.copy()
        flipped[2] *= -1
        weight = np.exp(2 * (self.rbm.log_psi(flipped) - self.rbm.log_psi(spins)).real)
        self.assertAlmostEqual(sampler.acceptance_probability((2,)), min(1.0, weight), places=10)

    def test_counters(self):
        sampler = make_sampler(self.rbm, IsingHamiltonian(self.N, hfield=1.0))
        sampler.reset_state(zero_magnetization=False)
        accepted = sum(sampler.move(1) for _ in range(200))
        self.assertAlmostEqual(sampler.acceptance_rate, accepted / 200)
        sampler.reset_acceptance_stats()
        self.assertEqual(sampler.acceptance_rate, 0.0)

    def test_lookup_consistent_after_many_moves(self):
        """
        After hundreds of accepted moves the incrementally updated table must
        equal b + W^T sigma for the final configuration.
        """
        sampler = make_sampler(self.rbm, HeisenbergHamiltonian(self.N, jz=1.0), seed=9)
        sampler.reset_state(zero_magnetization=True)
        for _ in range(50):
            sampler.sweep(n_flips=2)
        expected = self.rbm.b + self.rbm.W.T @ sampler.state
        np.testing.assert_allclose(self.rbm.lookup, expected, rtol=1e-10, atol=1e-12)

    def test_pair_moves_conserve_magnetization(self):
        sampler = make_sampler(self.rbm, HeisenbergHamiltonian(self.N, jz=1.0), seed=5)
        sampler.reset_state(zero_magnetization=True)
        for _ in range(300):
            sampler.move(2, zero_magnetization=True)
            self.assertEqual(int(sampler.state.sum()), 0)

    def test_random_flips_antiparallel(self):
        sampler = make_sampler(self.rbm, HeisenbergHamiltonian(self.N, jz=1.0), seed=5)
        sampler.reset_state(np.array([1, 1, 1, -1, -1, -1]))
        for _ in range(100):
            flips = sampler.random_flips(2, zero_magnetization=True)
            if flips is not None:
                i, j = flips
                self.assertNotEqual(sampler.state[i], sampler.state[j])

    def test_random_flips_distinct_sites(self):
        sampler = make_sampler(self.rbm, HeisenbergHamiltonian(self.N, jz=1.0), seed=5)
        sampler.reset_state(np.ones(self.N, dtype=int))
        for _ in range(100):
            flips = sampler.random_flips(2, zero_magnetization=False)
            if flips is not None:
                self.assertNotEqual(flips[0], flips[1])


# ============================================================
# SECTION: Full Runs
# ============================================================

class TestRun(unittest.TestCase):

    def setUp(self):
        self.N = 4
        self.rbm = RBM.random(n_spins=self.N, alpha=2, seed=7, sigma=0.1)
        self.ham = IsingHamiltonian(self.N, hfield=1.0)

    def test_phases_and_sample_count(self):
        """ceil(n_sweeps) measurements, one energy per measurement sweep."""
        sampler = make_sampler(self.rbm, self.ham)
        result = sampler.run(n_sweeps=60.5)
        self.assertEqual(sampler.phase, "done")
        self.assertEqual(len(sampler.energies), 61)
        self.assertEqual(result.n_blocks, 50)
        self.assertEqual(result.block_size, 1)

    def test_history_filled(self):
        sampler = make_sampler(self.rbm, self.ham)
        result = sampler.run(n_sweeps=100)
        history = sampler.history
        self.assertIs(history.binning, result)
        self.assertGreaterEqual(history.therm_acceptance, 0.0)
        self.assertLessEqual(history.measure_acceptance, 1.0)
        self.assertIn("measurement sweeps", history.summary())

    def test_seed_reproducibility(self):
        first = make_sampler(self.rbm, self.ham, seed=123)
        second = make_sampler(self.rbm.spawn(), self.ham, seed=123)
        first.run(n_sweeps=100)
        second.run(n_sweeps=100)
        np.testing.assert_array_equal(first.energies, second.energies)

    def test_log_lines(self):
        lines = []
        sampler = MetropolisSampler(self.rbm, self.ham, seed=1, log_fn=lines.append,
                                    show_progress=False)
        sampler.run(n_sweeps=100)
        text = "\n".join(lines)
        self.assertIn("# Starting Monte Carlo sampling", text)
        self.assertIn("# Number of sweeps to be performed is 100", text)
        self.assertIn("# Estimated average energy per spin", text)

    def test_state_writer(self):
        """One line per measurement sweep, each spin as a width-2 integer and a space."""
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "states.txt")
            with StateWriter(path) as writer:
                sampler = make_sampler(self.rbm, self.ham, state_writer=writer)
                sampler.run(n_sweeps=80)
                self.assertEqual(writer.n_written, 80)
            with open(path) as f:
                lines = f.read().splitlines()

        self.assertEqual(len(lines), 80)
        for line in lines:
            self.assertEqual(len(line), 3 * self.N)
            values = [int(tok) for tok in line.split()]
            self.assertTrue(all(v in (-1, 1) for v in values))

    def test_energy_matches_exact_variational_energy(self):
        """
        THE KEY TEST: the Monte Carlo estimate converges to the exact
        expectation value of H in the RBM state, which in turn lies above
        the true ground state energy (variational principle).

        Full pipeline for a 4-spin TFIM at h = 1: parameters written to and
        read back from a parameter file, seed 42, 1000 thermalization and
        1000 measurement sweeps.
        """
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "Ising1d_4_1.0_1.wf")
            save_parameters(path, self.rbm.a, self.rbm.b, self.rbm.W)
            rbm = RBM.from_file(path)

        sampler = make_sampler(rbm, self.ham, seed=42)
        result = sampler.run(n_sweeps=1000, therm_fraction=1.0)
        self.assertEqual(len(sampler.energies), 1000)

        exact = exact_variational_energy(self.ham, rbm) / self.N
        ground = exact_ground_state_energy(self.ham) / self.N
        self.assertAlmostEqual(ground, -5.2262519 / 4, places=6)
        tolerance = max(6 * result.error_per_spin, 0.02)

        self.assertAlmostEqual(result.mean_per_spin, exact, delta=tolerance)
        self.assertGreaterEqual(result.mean_per_spin, ground - tolerance)

    def test_heisenberg_run_is_variational(self):
        rbm = RBM.random(n_spins=4, alpha=1, seed=3, sigma=0.1)
        ham = HeisenbergHamiltonian(4, jz=1.0)
        sampler = make_sampler(rbm, ham, seed=8)
        result = sampler.run(n_sweeps=500, sweep_factor=2)
        self.assertEqual(int(sampler.state.sum()), 0)
        self.assertGreaterEqual(result.mean_per_spin, -2.0 - max(6 * result.error_per_spin, 0.02))


if __name__ == '__main__':
    unittest.main(verbosity=2)
