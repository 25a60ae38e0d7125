#!/usr/bin/env python3
# scripts/run_nqs.py
#
# Run the sampler without installing the package:
#
#   python scripts/run_nqs.py --filename=Ground/Ising1d_40_1.0_1.wf --nsweeps=1e4
#
# Same options as the `nqs-run` command (see nqs_vmc/cli.py).

import sys
import os

# Add project root to path so we can import nqs_vmc/ regardless of where
# the script is called from
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nqs_vmc.cli import main


if __name__ == '__main__':
    sys.exit(main())
