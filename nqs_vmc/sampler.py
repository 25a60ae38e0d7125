# nqs_vmc/sampler.py
#
# Metropolis-Hastings MCMC sampler for spin configurations.
#
# We estimate <E> = sum_sigma |psi(sigma)|^2 E_loc(sigma) / sum_sigma |psi(sigma)|^2
# as a time average over a Markov chain whose stationary distribution is
# |psi(sigma)|^2. Moves flip one spin (Ising) or exchange an antiparallel pair
# (Heisenberg, conserving total Sz) and are accepted with probability
# min(1, |psi(new)/psi(old)|^2), which satisfies detailed balance.
#
# The ratio never needs a full amplitude: the wavefunction's lookup table is
# updated on each accepted move, so a proposal costs O(M) rather than O(N*M).

import math
import time

import numpy as np

from .ansatz.base import Ansatz
from .hamiltonians.base import Hamiltonian
from .errors import ConfigurationError, ParameterRangeError
from .estimator import binning_analysis, format_report
from .utils import RunHistory, make_progress_bar

MIN_SWEEPS = 50


class MetropolisSampler:
    """
    Single-chain Metropolis-Hastings sampler of |psi(sigma)|^2.

    Phases: "uninitialized" -> "thermalizing" -> "measuring" -> "done".
    The chain, the random generator and the wavefunction's lookup table
    belong to this sampler alone; run independent chains with separate
    samplers and separate lookup tables (RBM.spawn()).

    Healthy acceptance rate: 0.3 - 0.7.
    """

    def __init__(self, ansatz: Ansatz, hamiltonian: Hamiltonian, seed: int = -1,
                 state_writer=None, log_fn=print, show_progress: bool = True):
        """
        Args:
            ansatz:        Wavefunction with lookup tables (e.g. RBM).
            hamiltonian:   Hamiltonian providing find_connected_states/min_flips.
            seed:          Random seed; a negative value seeds from the clock.
            state_writer:  Optional sink with write_state(spins), called once
                           per measurement sweep (see fileio.StateWriter).
            log_fn:        Callable receiving progress/report lines.
            show_progress: Show tqdm progress bars over the sweeps.

        Raises:
            ConfigurationError: if ansatz and Hamiltonian disagree on the spin count.
        """
        if ansatz.n_spins != hamiltonian.n_spins:
            raise ConfigurationError(
                f"The wavefunction has {ansatz.n_spins} spins but the Hamiltonian "
                f"has {hamiltonian.n_spins}."
            )

        self.ansatz = ansatz
        self.hamiltonian = hamiltonian
        self.n_spins = ansatz.n_spins
        self.state_writer = state_writer
        self.log_fn = log_fn
        self.show_progress = show_progress

        self.seed = seed if seed >= 0 else time.time_ns() % (2 ** 32)
        self.rng = np.random.default_rng(self.seed)

        self.state = None
        self.phase = "uninitialized"
        self.history = RunHistory(self.n_spins)

        self._n_proposed = 0
        self._n_accepted = 0

    def log(self, message: str) -> None:
        if self.log_fn is not None:
            self.log_fn(message)

    def set_state_writer(self, state_writer) -> None:
        """Attach a configuration sink (None detaches)."""
        self.state_writer = state_writer

    # ------------------------------------------------------------------
    # Chain initialization
    # ------------------------------------------------------------------

    def init_random_state(self, zero_magnetization: bool = True) -> np.ndarray:
        """
        Draw a random configuration, each spin uniform in {-1, +1}.

        With zero_magnetization, randomly chosen majority spins are flipped
        until sum(sigma) == 0.

        Raises:
            ConfigurationError: zero magnetization requested for odd N.
        """
        if zero_magnetization and self.n_spins % 2:
            raise ConfigurationError(
                "Cannot initialize a random state with zero magnetization "
                f"for an odd number of spins ({self.n_spins})."
            )

        state = np.where(self.rng.random(self.n_spins) < 0.5, -1, 1)

        if zero_magnetization:
            magnetization = int(state.sum())
            while magnetization != 0:
                majority = 1 if magnetization > 0 else -1
                site = int(self.rng.integers(self.n_spins))
                while state[site] != majority:
                    site = int(self.rng.integers(self.n_spins))
                state[site] = -majority
                magnetization -= 2 * majority

        self.state = state
        return state

    def reset_state(self, spins: np.ndarray = None, zero_magnetization: bool = True) -> None:
        """
        Put the chain on a new configuration and rebuild the lookup table.

        Args:
            spins: New configuration. If None, draws a random one.
        """
        if spins is None:
            self.init_random_state(zero_magnetization)
        else:
            spins = np.array(spins, dtype=int)
            if spins.shape != (self.n_spins,) or not np.all(np.abs(spins) == 1):
                raise ConfigurationError(
                    f"A configuration must hold {self.n_spins} values of +1 or -1."
                )
            self.state = spins

        self.ansatz.init_lookup(self.state)
        self.reset_acceptance_stats()

    # ------------------------------------------------------------------
    # Metropolis moves
    # ------------------------------------------------------------------

    def random_flips(self, n_flips: int, zero_magnetization: bool = True):
        """
        Propose n_flips (1 or 2) random sites.

        For two flips the pair must be antiparallel (zero_magnetization) or at
        least two distinct sites; otherwise None is returned and the move
        counts as rejected. Discarding keeps the proposal symmetric.
        """
        first = int(self.rng.integers(self.n_spins))
        if n_flips == 1:
            return (first,)

        second = int(self.rng.integers(self.n_spins))
        if zero_magnetization:
            valid = self.state[first] != self.state[second]
        else:
            valid = first != second
        return (first, second) if valid else None

    def acceptance_probability(self, flips) -> float:
        """min(1, |psi(sigma')/psi(sigma)|^2) for the move `flips`."""
        with np.errstate(over='ignore'):
            ratio = self.ansatz.psi_ratio(self.state, flips)
            weight = float(np.abs(ratio) ** 2)
        return min(1.0, weight)

    def move(self, n_flips: int, zero_magnetization: bool = True) -> bool:
        """
        One Metropolis step. Returns True if the move was accepted.

        On acceptance the lookup table is updated with the pre-flip
        configuration, then the spins are flipped.
        """
        if self.state is None:
            raise RuntimeError("The chain has no configuration yet; call reset_state() first.")

        accepted = False
        flips = self.random_flips(n_flips, zero_magnetization)

        if flips is not None:
            if self.rng.random() < self.acceptance_probability(flips):
                self.ansatz.update_lookup(self.state, flips)
                self.state[list(flips)] *= -1
                self._n_accepted += 1
                accepted = True

        self._n_proposed += 1
        return accepted

    def sweep(self, n_flips: int, sweep_factor: int = 1, zero_magnetization: bool = True) -> None:
        """n_spins * sweep_factor consecutive moves."""
        for _ in range(self.n_spins * sweep_factor):
            self.move(n_flips, zero_magnetization)

    # ------------------------------------------------------------------
    # Measurement
    # ------------------------------------------------------------------

    def measure_energy(self) -> complex:
        """
        Local energy of the current configuration, appended to the history.

            E_loc = sum_k  mel_k * psi(sigma'_k) / psi(sigma)

        over every connected state, the diagonal (empty flip set, ratio 1)
        included.
        """
        energy = 0j
        for flips, mel in self.hamiltonian.find_connected_states(self.state):
            energy += self.ansatz.psi_ratio(self.state, flips) * mel
        energy = complex(energy)
        self.history.record_energy(energy)
        return energy

    @property
    def energies(self) -> list:
        """Local energies measured in the current (or last) run."""
        return self.history.energies

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    def run(self, n_sweeps, therm_fraction: float = 0.1, sweep_factor: int = 1,
            n_flips: int = None, zero_magnetization: bool = None):
        """
        Thermalize, sample and analyse.

        Runs ceil(n_sweeps * therm_fraction) thermalization sweeps whose
        statistics are discarded, then ceil(n_sweeps) measurement sweeps, each
        followed by one local-energy measurement (and one write to the
        configuration sink, if any). A sweep is n_spins * sweep_factor moves.

        Args:
            n_sweeps:           Number of measurement sweeps (>= 50).
            therm_fraction:     Thermalization length as a fraction of n_sweeps, in [0, 1].
            sweep_factor:       Moves per sweep, in units of n_spins (>= 1).
            n_flips:            Spins flipped per move, 1 or 2. Default: hamiltonian.min_flips().
            zero_magnetization: Start from a zero-magnetization state. Default:
                                only when moves conserve magnetization (n_flips == 2).

        Returns:
            BinningResult of the measured energies.

        Raises:
            ParameterRangeError: invalid sweeps, fraction, sweep factor or flips,
                                 detected before any sampling.
        """
        if n_flips is None:
            n_flips = self.hamiltonian.min_flips()
        self._check_run_parameters(n_sweeps, therm_fraction, sweep_factor, n_flips)
        sweep_factor = int(sweep_factor)
        n_flips = int(n_flips)
        if zero_magnetization is None:
            zero_magnetization = n_flips == 2

        n_measure = math.ceil(n_sweeps)
        n_therm = math.ceil(n_sweeps * therm_fraction)

        self.log("# Starting Monte Carlo sampling")
        self.log(f"# Number of sweeps to be performed is {n_measure}")

        self.history = RunHistory(self.n_spins)
        self.reset_state(zero_magnetization=zero_magnetization)

        # Thermalization: let the chain forget its random starting point
        self.phase = "thermalizing"
        self.log("# Thermalization...")
        for _ in self._progress(n_therm, "Thermalization"):
            self.sweep(n_flips, sweep_factor, zero_magnetization)
        self.history.therm_acceptance = self.acceptance_rate
        self.reset_acceptance_stats()

        # Measurement sweeps
        self.phase = "measuring"
        self.log("# Sweeping...")
        for _ in self._progress(n_measure, "Sweeping"):
            self.sweep(n_flips, sweep_factor, zero_magnetization)
            if self.state_writer is not None:
                self.state_writer.write_state(self.state)
            self.measure_energy()
        self.history.measure_acceptance = self.acceptance_rate
        self.phase = "done"

        result = binning_analysis(self.energies, self.n_spins)
        self.history.binning = result
        self.log(format_report(result))
        return result

    def _check_run_parameters(self, n_sweeps, therm_fraction, sweep_factor, n_flips) -> None:
        if n_flips not in (1, 2):
            raise ParameterRangeError(
                f"The number of spin flips should be equal to 1 or 2, got {n_flips}."
            )
        if not math.isfinite(therm_fraction) or not 0 <= therm_fraction <= 1:
            raise ParameterRangeError(
                f"The thermalization fraction should be a real number between 0 and 1, "
                f"got {therm_fraction}."
            )
        if not math.isfinite(n_sweeps):
            raise ParameterRangeError(f"The number of sweeps should be finite, got {n_sweeps}.")
        if not n_sweeps >= MIN_SWEEPS:
            raise ParameterRangeError(
                f"Please enter a number of sweeps sufficiently large (>={MIN_SWEEPS}), "
                f"got {n_sweeps}."
            )
        if (not math.isfinite(sweep_factor) or int(sweep_factor) != sweep_factor
                or sweep_factor < 1):
            raise ParameterRangeError(
                f"The sweep factor should be a positive integer, got {sweep_factor}."
            )

    def _progress(self, n: int, desc: str):
        return make_progress_bar(range(n), desc=desc, total=n, leave=False,
                                 disable=not self.show_progress)

    # ------------------------------------------------------------------
    # Statistics
    # ------------------------------------------------------------------

    @property
    def acceptance_rate(self) -> float:
        """Fraction of proposed moves that were accepted."""
        if self._n_proposed == 0:
            return 0.0
        return self._n_accepted / self._n_proposed

    def reset_acceptance_stats(self) -> None:
        """Reset acceptance counters (start of thermalization and of measurement)."""
        self._n_proposed = 0
        self._n_accepted = 0
