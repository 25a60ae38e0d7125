# nqs_vmc/cli.py
#
# ============================================================
# CLI ENTRY POINT : sample a pre-trained neural quantum state
# ============================================================
#
# USAGE:
#   nqs-run --filename=Ground/Ising1d_40_1.0_1.wf
#   nqs-run --filename=Ground/Heisenberg1d_40_1_1.wf --nsweeps=2e4 --seed=7
#   nqs-run --config=configs/heisenberg1d.yaml --plot=trace.png
#   nqs-run --filename=Ground/Ising1d_12_0.5_1.wf --exact
#
# WHAT THIS DOES:
#   1. Resolves the run options (command line > YAML config > defaults),
#      inferring model and coupling from the parameter file name if needed
#   2. Loads the RBM parameters and builds the matching Hamiltonian
#   3. Runs the Metropolis sampler (thermalization + measurement sweeps)
#   4. Prints the binned energy per spin, its error and the autocorrelation time
#   5. Optionally writes the sampled configurations, the run history and a plot,
#      and prints the exact ground state energy of small systems (--exact)
#
# Every configuration or range error is reported as "# Error : ..." on stderr
# with exit status 1; nothing partial is printed as a result.
#
# ============================================================

import argparse
import sys

from .ansatz import RBM
from .hamiltonians import IsingHamiltonian, HeisenbergHamiltonian, Heisenberg2dHamiltonian
from .sampler import MetropolisSampler
from .fileio import StateWriter
from .errors import NQSError, ParameterRangeError
from .exact import exact_ground_state_energy, MAX_EXACT_SPINS
from .options import resolve_options, ISING_1D, HEISENBERG_1D, HEISENBERG_2D
from .utils import plot_energy_trace


# ============================================================
# SECTION: Object Builders (Options → Python Objects)
# ============================================================

def build_hamiltonian(model: str, n_spins: int, coupling: float, pbc: bool = True):
    """Construct the Hamiltonian selected by the model name."""
    if model == ISING_1D:
        return IsingHamiltonian(n_spins=n_spins, hfield=coupling, pbc=pbc)
    elif model == HEISENBERG_1D:
        return HeisenbergHamiltonian(n_spins=n_spins, jz=coupling, pbc=pbc)
    elif model == HEISENBERG_2D:
        return Heisenberg2dHamiltonian(n_spins=n_spins, jz=coupling, pbc=pbc)
    else:
        raise ValueError(f"Unknown model '{model}'.")


def describe_hamiltonian(model: str, coupling: float) -> str:
    if model == ISING_1D:
        return f"# Using the 1d Transverse-field Ising model with h = {coupling}"
    dim = "1d" if model == HEISENBERG_1D else "2d"
    return f"# Using the {dim} Heisenberg model with J_z = {coupling}"


# ============================================================
# SECTION: Running
# ============================================================

def run(options: dict, log_fn=print, show_progress: bool = True):
    """
    Execute one sampling run from resolved options (see options.resolve_options).

    Returns:
        (result, sampler): the BinningResult and the sampler, whose history
                           holds the energy series and acceptance rates.
    """
    ansatz = RBM.from_file(options['filename'])
    log_fn(f"# NQS loaded from file {options['filename']}")
    log_fn(f"# N_visible = {ansatz.n_spins}  N_hidden = {ansatz.n_hidden}")

    hamiltonian = build_hamiltonian(options['model'], ansatz.n_spins,
                                    options['coupling'], options['pbc'])
    log_fn(describe_hamiltonian(options['model'], options['coupling']))

    with_exact = bool(options.get('exact'))
    if with_exact and ansatz.n_spins > MAX_EXACT_SPINS:
        raise ParameterRangeError(
            f"Exact diagonalization is limited to {MAX_EXACT_SPINS} spins, "
            f"the wavefunction has {ansatz.n_spins}."
        )

    sampler = MetropolisSampler(
        ansatz        = ansatz,
        hamiltonian   = hamiltonian,
        seed          = int(options['seed']),
        log_fn        = log_fn,
        show_progress = show_progress,
    )

    run_kwargs = dict(
        n_sweeps       = float(options['nsweeps']),
        therm_fraction = float(options['therm_fraction']),
        sweep_factor   = options['sweep_factor'],
        n_flips        = options['n_flips'],
    )

    if options['filestates']:
        with StateWriter(options['filestates']) as writer:
            log_fn(f"# Saving sampled configuration to file {options['filestates']}")
            sampler.set_state_writer(writer)
            result = sampler.run(**run_kwargs)
            sampler.set_state_writer(None)
    else:
        result = sampler.run(**run_kwargs)

    if with_exact:
        exact_energy = exact_ground_state_energy(hamiltonian) / ansatz.n_spins
        sampler.history.exact_energy = exact_energy
        log_fn(f"# Exact ground state energy per spin : {exact_energy:.8e}")

    return result, sampler


def print_header(log_fn=print) -> None:
    log_fn("")
    log_fn("\t|   Neural-network quantum states sampler   |")
    log_fn("")


# ============================================================
# SECTION: Main Entry Point
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='nqs-run',
        description='Monte Carlo sampling of a pre-trained neural-network quantum state.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
The model and its coupling are read from the parameter file name
(MODEL_N_COUPLING_..., MODEL containing Ising, Heisenberg1d or Heisenberg2d)
unless a --config file sets 'model' and 'coupling' explicitly.

Examples:
  nqs-run --filename=Ground/Ising1d_40_1.0_1.wf
  nqs-run --filename=Ground/Heisenberg1d_40_1_1.wf --nsweeps=2e4 --seed=7
        """
    )
    parser.add_argument('--filename',
                        help='file containing the neural-network weights')
    parser.add_argument('--nsweeps', type=float,
                        help='number of Monte Carlo sweeps (default 1.0e4)')
    parser.add_argument('--seed', type=int,
                        help='random seed, negative = from the clock (default -1)')
    parser.add_argument('--filestates',
                        help='file to print the sampled configurations to (default: none)')
    parser.add_argument('--config',
                        help='YAML file with run options (filename, model, coupling, ...)')
    parser.add_argument('--therm-fraction', dest='therm_fraction', type=float,
                        help='thermalization sweeps as a fraction of nsweeps (default 0.1)')
    parser.add_argument('--sweep-factor', dest='sweep_factor', type=int,
                        help='moves per sweep in units of the number of spins (default 1)')
    parser.add_argument('--nflips', dest='n_flips', type=int, choices=(1, 2),
                        help='spins flipped per move (default: set by the model)')
    parser.add_argument('--history',
                        help='save the run history (.npz) to this path')
    parser.add_argument('--plot',
                        help='save a plot of the local energy trace to this path')
    parser.add_argument('--quiet', action='store_true',
                        help='hide the progress bars')
    parser.add_argument('--exact', action='store_true', default=None,
                        help=f'also print the exact ground state energy (N <= {MAX_EXACT_SPINS})')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    print_header()

    try:
        options = resolve_options(vars(args), config_path=args.config)
        result, sampler = run(options, show_progress=not args.quiet)
    except NQSError as exc:
        print(f"# Error : {exc}", file=sys.stderr)
        return 1

    if args.history:
        sampler.history.save(args.history)
        print(f"# Run history saved to {args.history}")

    if args.plot:
        plot_energy_trace(
            sampler.energies,
            n_spins      = sampler.n_spins,
            estimate     = result,
            exact_energy = sampler.history.exact_energy,
            save_path    = args.plot,
        )

    return 0


if __name__ == '__main__':
    sys.exit(main())
