# nqs_vmc/fileio.py
#
# Reading and writing the files around a sampling run:
#
#   1. Parameter files holding a pre-trained RBM. Plain text, whitespace
#      separated, in this order:
#
#        Nv Nh
#        a_0 ... a_{Nv-1}
#        b_0 ... b_{Nh-1}
#        W_00 W_01 ... W_0{Nh-1} W_10 ...      (visible-major)
#
#      Complex numbers are either Python literals ("0.1-0.2j", "(0.3+0j)",
#      "0.5") or "(re,im)" pairs, the form the existing parameter files use.
#
#   2. The configuration file: one line per measurement sweep with the spin
#      values as width-2 integers, each followed by a space.

import os
import re

import numpy as np

from .errors import ConfigurationError, ResourceError

# A parenthesised group may contain whitespace ("( 0.1 , -0.2 )"), anything
# else is split on whitespace.
_TOKEN = re.compile(r"\([^)]*\)|[^\s()]+")


def parse_complex(token: str) -> complex:
    """
    Parse one complex value.

    Accepts "(re,im)", "(re)", and anything Python's complex() accepts.

    Raises:
        ConfigurationError: if the token is not a number.
    """
    text = token.strip()
    try:
        if text.startswith("(") and text.endswith(")") and "," in text:
            re_part, im_part = text[1:-1].split(",")
            return complex(float(re_part), float(im_part))
        if text.startswith("(") and text.endswith(")") and "j" not in text:
            return complex(float(text[1:-1]))
        return complex(text.replace(" ", ""))
    except ValueError:
        raise ConfigurationError(f"Cannot parse '{token}' as a complex number.") from None


def _parse_count(token: str, name: str) -> int:
    try:
        value = int(token)
    except ValueError:
        raise ConfigurationError(
            f"Trying to load from an invalid file: {name} is '{token}'."
        ) from None
    if value < 0:
        raise ConfigurationError(f"Trying to load from an invalid file: {name} = {value}.")
    return value


def load_parameters(path: str):
    """
    Load RBM parameters (a, b, W) from a text parameter file.

    Args:
        path: File to read.

    Returns:
        (a, b, W): complex arrays of shapes (Nv,), (Nh,), (Nv, Nh).

    Raises:
        ConfigurationError: missing or unreadable file, bad unit counts,
                            malformed or truncated values.
    """
    if not os.path.isfile(path):
        raise ConfigurationError(f"Cannot load from file {path} : file not found.")

    try:
        with open(path, 'r') as f:
            tokens = _TOKEN.findall(f.read())
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(f"Cannot read parameter file {path}: {exc}") from exc

    if len(tokens) < 2:
        raise ConfigurationError(f"Trying to load from an invalid file: {path} is truncated.")

    n_visible = _parse_count(tokens[0], "the number of visible units")
    n_hidden = _parse_count(tokens[1], "the number of hidden units")
    if n_visible == 0:
        raise ConfigurationError("Trying to load from an invalid file: no visible units.")

    n_values = n_visible + n_hidden + n_visible * n_hidden
    values = tokens[2:2 + n_values]
    if len(values) < n_values:
        raise ConfigurationError(
            f"Trying to load from an invalid file: expected {n_values} complex "
            f"values, found {len(values)}."
        )

    data = np.array([parse_complex(t) for t in values], dtype=complex)
    a = data[:n_visible]
    b = data[n_visible:n_visible + n_hidden]
    W = data[n_visible + n_hidden:].reshape(n_visible, n_hidden)
    return a, b, W


def _format_complex(z: complex) -> str:
    return f"({z.real:.17g},{z.imag:.17g})"


def save_parameters(path: str, a, b, W) -> None:
    """Write RBM parameters in the "(re,im)" parameter-file format."""
    a = np.asarray(a, dtype=complex).ravel()
    b = np.asarray(b, dtype=complex).ravel()
    W = np.asarray(W, dtype=complex).reshape(a.size, b.size)

    with open(path, 'w') as f:
        f.write(f"{a.size}\n{b.size}\n")
        f.write(" ".join(_format_complex(z) for z in a) + "\n")
        f.write(" ".join(_format_complex(z) for z in b) + "\n")
        for row in W:
            f.write(" ".join(_format_complex(z) for z in row) + "\n")


class StateWriter:
    """
    Sink that appends sampled spin configurations to a text file.

    Usable as a context manager:

        with StateWriter("states.txt") as writer:
            sampler.set_state_writer(writer)
            sampler.run(1000)
    """

    def __init__(self, path: str):
        self.path = path
        try:
            self._file = open(path, 'w')
        except OSError as exc:
            raise ResourceError(f"Cannot open file {path} for writing: {exc.strerror}") from exc
        self.n_written = 0

    def write_state(self, spins) -> None:
        self._file.write("".join(f"{int(s):2d} " for s in spins) + "\n")
        self.n_written += 1

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
