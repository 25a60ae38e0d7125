# nqs_vmc/utils.py
#
# Infrastructure utilities: run history, progress bars, plotting, and config
# loading.
#
# The energy trace plot tells the story of a run at a glance: the local
# energy per sweep with the binned estimate on top, so a chain that has not
# thermalized (drift) or is stuck (flat line) is obvious.

import numpy as np
import yaml
import matplotlib.pyplot as plt
from tqdm import tqdm


# ============================================================
# Run History
# ============================================================

class RunHistory:
    """
    Records what happened during one sampling run.

    Tracked quantities:
      - energies: complex local energy of every measurement sweep
      - thermalization / measurement acceptance rates (healthy: 0.3-0.7)
      - the binning result, once the run is analysed
      - the exact ground state energy per spin, when one was computed

    Uses a Python list internally (O(1) append) and converts to numpy on demand.
    """

    def __init__(self, n_spins: int = None):
        self.n_spins = n_spins
        self.energies = []
        self.therm_acceptance = None
        self.measure_acceptance = None
        self.binning = None
        self.exact_energy = None

    def record_energy(self, energy: complex) -> None:
        self.energies.append(energy)

    @property
    def history(self) -> dict:
        """All recorded quantities as a dict of numpy values (ready for plotting)."""
        data = {
            'energies':           np.array(self.energies, dtype=complex),
            'therm_acceptance':   np.nan if self.therm_acceptance is None else self.therm_acceptance,
            'measure_acceptance': np.nan if self.measure_acceptance is None else self.measure_acceptance,
            'n_spins':            -1 if self.n_spins is None else self.n_spins,
            'exact_energy':       np.nan if self.exact_energy is None else self.exact_energy,
        }
        if self.binning is not None:
            data.update(self.binning.as_dict())
        return data

    def save(self, path: str) -> None:
        """Save the run history to a .npz file (numpy compressed archive)."""
        np.savez(path, **self.history)

    @classmethod
    def load(cls, path: str) -> 'RunHistory':
        """Load a run history written by save(); the binning summary is not restored."""
        data = np.load(path)
        n_spins = int(data['n_spins'])
        run = cls(n_spins=None if n_spins < 0 else n_spins)
        run.energies = list(data['energies'])
        therm = float(data['therm_acceptance'])
        measure = float(data['measure_acceptance'])
        run.therm_acceptance = None if np.isnan(therm) else therm
        run.measure_acceptance = None if np.isnan(measure) else measure
        if 'exact_energy' in data.files:
            exact = float(data['exact_energy'])
            run.exact_energy = None if np.isnan(exact) else exact
        return run

    def summary(self) -> str:
        """One-paragraph summary of the run."""
        if not self.energies:
            return "RunHistory: no data recorded yet."
        lines = [f"Run summary ({len(self.energies)} measurement sweeps):"]
        if self.therm_acceptance is not None:
            lines.append(f"  acceptance (thermalization) = {self.therm_acceptance:.3f}")
        if self.measure_acceptance is not None:
            lines.append(f"  acceptance (measurement)    = {self.measure_acceptance:.3f}")
        if self.binning is not None:
            lines.append(f"  {self.binning!r}")
        if self.exact_energy is not None:
            lines.append(f"  exact ground state energy per spin = {self.exact_energy:.8f}")
        return "\n".join(lines)


# ============================================================
# Plotting
# ============================================================

def plot_energy_trace(energies, n_spins: int = None, estimate=None,
                      exact_energy: float = None, save_path: str = None) -> None:
    """
    Plot the local energy of every measurement sweep.

    Left panel: real part of E_loc per sweep, with the binned estimate
    (mean +/- error band) and an optional exact reference as dashed lines.
    Right panel: histogram of the same values.

    Args:
        energies:     Sequence of local energies (complex allowed).
        n_spins:      If given, normalizes energies to per-site values.
        estimate:     BinningResult to overlay (optional).
        exact_energy: Exact energy per site, for reference (optional).
        save_path:    File path to save figure. None = plt.show().
    """
    values = np.real(np.asarray(energies, dtype=complex))
    y_label = "Local energy"
    if n_spins is not None:
        values = values / n_spins
        y_label = "Local energy per site"

    fig, axes = plt.subplots(1, 2, figsize=(12, 4),
                             gridspec_kw={'width_ratios': [3, 1]})

    ax = axes[0]
    sweeps = np.arange(1, len(values) + 1)
    ax.plot(sweeps, values, color='royalblue', linewidth=0.8, alpha=0.8, label='E_loc')

    if estimate is not None:
        mean, err = estimate.mean_per_spin, estimate.error_per_spin
        if n_spins is None:
            mean, err = estimate.mean, estimate.error
        ax.axhline(mean, color='black', linewidth=1.2,
                   label=f'Binned: {mean:.5f} ± {err:.1e}')
        ax.axhspan(mean - err, mean + err, color='black', alpha=0.15)

    if exact_energy is not None:
        ax.axhline(exact_energy, color='crimson', linestyle='--', linewidth=1.5,
                   label=f'Exact: {exact_energy:.5f}')

    ax.set_xlabel('Measurement sweep')
    ax.set_ylabel(y_label)
    ax.set_title('Local Energy Trace')
    ax.legend()
    ax.grid(True, alpha=0.3)

    ax = axes[1]
    ax.hist(values, bins=40, orientation='horizontal', color='seagreen', alpha=0.8)
    ax.set_xlabel('Count')
    ax.set_title('Distribution')
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')
        print(f"Saved plot: {save_path}")
    else:
        plt.show()

    plt.close(fig)


# ============================================================
# Configuration Loading
# ============================================================

def load_config(path: str) -> dict:
    """
    Load a YAML run config file and return it as a dict.

    YAML supports inline comments, so a config records every run parameter
    in one self-documenting place.
    """
    with open(path, 'r') as f:
        config = yaml.safe_load(f)
    return config if config is not None else {}


# ============================================================
# Progress Bar
# ============================================================

def make_progress_bar(iterable, desc: str = "", total: int = None, **kwargs):
    """Wrap an iterable with a tqdm progress bar."""
    return tqdm(iterable, desc=desc, total=total, **kwargs)
