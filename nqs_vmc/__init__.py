# nqs_vmc: Monte Carlo sampling of pre-trained neural-network quantum states.
#
#   from nqs_vmc import RBM, IsingHamiltonian, MetropolisSampler
#
#   rbm = RBM.from_file("Ground/Ising1d_40_1.0_1.wf")
#   sampler = MetropolisSampler(rbm, IsingHamiltonian(rbm.n_spins, hfield=1.0), seed=42)
#   result = sampler.run(n_sweeps=10000)

from .ansatz import RBM
from .hamiltonians import IsingHamiltonian, HeisenbergHamiltonian, Heisenberg2dHamiltonian
from .sampler import MetropolisSampler
from .estimator import binning_analysis, BinningResult
from .errors import NQSError, ConfigurationError, ParameterRangeError, ResourceError

__version__ = "0.1.0"

__all__ = [
    "RBM",
    "IsingHamiltonian",
    "HeisenbergHamiltonian",
    "Heisenberg2dHamiltonian",
    "MetropolisSampler",
    "binning_analysis",
    "BinningResult",
    "NQSError",
    "ConfigurationError",
    "ParameterRangeError",
    "ResourceError",
]
