# Exposes the wavefunction engine at the package level so you can write:
#
#   from nqs_vmc.ansatz import RBM

from .base import Ansatz
from .rbm import RBM, lncosh

__all__ = ["Ansatz", "RBM", "lncosh"]
