# nqs_vmc/options.py
#
# Turning user input into run options.
#
# Pre-trained parameter files carry their model in the file name, e.g.
#
#   Ising1d_40_1.0_1.wf          -> transverse-field Ising, h = 1.0
#   Heisenberg2d_100_1_1.wf      -> 2D Heisenberg, jz = 1
#
# The model is found by substring ("Ising", "Heisenberg1d", "Heisenberg2d")
# and the coupling is the token between the second and third underscore of
# the file's base name. A YAML config can set the same things explicitly;
# explicit values always win over what the file name implies.

import os

import yaml

from .errors import ConfigurationError
from .utils import load_config

ISING_1D = "Ising1d"
HEISENBERG_1D = "Heisenberg1d"
HEISENBERG_2D = "Heisenberg2d"
MODELS = (ISING_1D, HEISENBERG_1D, HEISENBERG_2D)

# Substring searched in the file name -> model
_MODEL_TOKENS = (
    ("Ising", ISING_1D),
    ("Heisenberg1d", HEISENBERG_1D),
    ("Heisenberg2d", HEISENBERG_2D),
)

DEFAULTS = {
    'filename':       None,
    'model':          None,
    'coupling':       None,
    'nsweeps':        1.0e4,
    'seed':           -1,
    'filestates':     None,
    'therm_fraction': 0.1,
    'sweep_factor':   1,
    'n_flips':        None,
    'pbc':            True,
    'exact':          False,
}


def find_model(filename: str) -> str:
    """
    Model name encoded in a parameter file name.

    Raises:
        ConfigurationError: no known model token in the name.
    """
    for token, model in _MODEL_TOKENS:
        if token in filename:
            return model
    raise ConfigurationError(
        f"The given input file ({filename}) does not correspond to one of the "
        f"implemented problem hamiltonians ({', '.join(MODELS)})."
    )


def find_coupling(filename: str) -> float:
    """
    Coupling constant encoded in a parameter file name: the text between the
    second and third underscore of the base name.

    Raises:
        ConfigurationError: fewer than three underscores, or not a number.
    """
    name = os.path.basename(filename)
    parts = name.split("_")
    if len(parts) < 4:
        raise ConfigurationError(
            f"The filename {name} is not in the format specified for the "
            f"Ising/Heisenberg model (MODEL_N_COUPLING_...)."
        )
    try:
        return float(parts[2])
    except ValueError:
        raise ConfigurationError(
            f"The coupling '{parts[2]}' in filename {name} is not a number."
        ) from None


def resolve_options(cli_options: dict = None, config_path: str = None) -> dict:
    """
    Merge defaults, a YAML config file and command-line values.

    Precedence: command line > config file > defaults. Model and coupling
    are inferred from the parameter file name only when neither source sets
    them.

    Args:
        cli_options: dict of option values; None values are ignored.
        config_path: optional YAML file with any of the DEFAULTS keys.

    Returns:
        dict with every DEFAULTS key filled in.

    Raises:
        ConfigurationError: unknown config keys, missing filename, unknown model.
    """
    options = dict(DEFAULTS)

    if config_path is not None:
        try:
            config = load_config(config_path)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigurationError(f"Cannot read config file {config_path}: {exc}") from exc
        if not isinstance(config, dict):
            raise ConfigurationError(f"Config file {config_path} must hold a mapping.")
        unknown = sorted(set(config) - set(DEFAULTS))
        if unknown:
            raise ConfigurationError(
                f"Unknown keys in config file {config_path}: {', '.join(unknown)}."
            )
        options.update(config)

    for key, value in (cli_options or {}).items():
        if key in DEFAULTS and value is not None:
            options[key] = value

    if not options['filename']:
        raise ConfigurationError(
            "Option filename must be specified with the option --filename=FILENAME."
        )

    if options['model'] is None:
        options['model'] = find_model(options['filename'])
    elif options['model'] not in MODELS:
        raise ConfigurationError(
            f"Unknown model '{options['model']}'. Choose one of {', '.join(MODELS)}."
        )

    if options['coupling'] is None:
        options['coupling'] = find_coupling(options['filename'])

    return options
