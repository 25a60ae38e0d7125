# tests/test_fileio.py
#
# ============================================================
# UNIT TESTS: Parameter Files and Configuration Output
# ============================================================
#
# WHAT WE'RE TESTING:
#   load_parameters() must read the existing "(re,im)" parameter files and
#   reject anything truncated or malformed with a ConfigurationError, so a
#   broken file never turns into a silently wrong wavefunction.
#
# ============================================================

import sys
import os
import unittest
import tempfile
import numpy as np

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from nqs_vmc.fileio import parse_complex, load_parameters, save_parameters, StateWriter
from nqs_vmc.ansatz import RBM
from nqs_vmc.errors import ConfigurationError, ResourceError, NQSError


class TestParseComplex(unittest.TestCase):

    def test_pair_form(self):
        self.assertEqual(parse_complex("(0.5,-0.25)"), 0.5 - 0.25j)
        self.assertEqual(parse_complex("( 1e-3 , 2 )"), 0.001 + 2j)

    def test_real_in_parentheses(self):
        self.assertEqual(parse_complex("(3.5)"), 3.5 + 0j)

    def test_python_literals(self):
        self.assertEqual(parse_complex("0.1-0.2j"), 0.1 - 0.2j)
        self.assertEqual(parse_complex("(0.3+0.4j)"), 0.3 + 0.4j)
        self.assertEqual(parse_complex("2"), 2 + 0j)

    def test_garbage(self):
        with self.assertRaises(ConfigurationError):
            parse_complex("abc")
        with self.assertRaises(ConfigurationError):
            parse_complex("(1,2,3)")


class TestParameterFiles(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = self.tmp.name

    def tearDown(self):
        self.tmp.cleanup()

    def _write(self, name, text):
        path = os.path.join(self.dir, name)
        with open(path, 'w') as f:
            f.write(text)
        return path

    def test_load_hand_written_file(self):
        """
        Nv = 2, Nh = 1:
            a = (0.1, 0.2j), b = (-0.3), W = [[1], [-1j]]
        """
        path = self._write("Ising1d_2_1.0_1.wf",
                           "2 1\n(0.1,0) (0,0.2)\n(-0.3,0)\n(1,0)\n(0,-1)\n")
        a, b, W = load_parameters(path)
        np.testing.assert_allclose(a, [0.1, 0.2j])
        np.testing.assert_allclose(b, [-0.3])
        np.testing.assert_allclose(W, [[1.0], [-1j]])

    def test_save_load_preserves_values(self):
        rbm = RBM.random(n_spins=3, alpha=2, seed=5, sigma=0.7)
        path = os.path.join(self.dir, "params.wf")
        save_parameters(path, rbm.a, rbm.b, rbm.W)
        loaded = RBM.from_file(path)
        np.testing.assert_array_equal(loaded.a, rbm.a)
        np.testing.assert_array_equal(loaded.b, rbm.b)
        np.testing.assert_array_equal(loaded.W, rbm.W)

    def test_extra_tokens_ignored(self):
        path = self._write("p.wf", "1 1\n(1,0)\n(2,0)\n(3,0)\ntrailing notes\n")
        a, b, W = load_parameters(path)
        self.assertEqual(W.shape, (1, 1))

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            load_parameters(os.path.join(self.dir, "nope.wf"))

    def test_truncated_file(self):
        path = self._write("t.wf", "2 2\n(0,0) (0,0)\n(0,0)\n")
        with self.assertRaises(ConfigurationError):
            load_parameters(path)

    def test_bad_counts(self):
        for text in ("-2 1\n", "0 3\n", "x 1\n", "4\n"):
            with self.subTest(text=text):
                with self.assertRaises(ConfigurationError):
                    load_parameters(self._write("c.wf", text))

    def test_binary_file(self):
        """Bytes that are not text are a malformed file, not a decoding crash."""
        path = os.path.join(self.dir, "binary.wf")
        with open(path, 'wb') as f:
            f.write(b"4 4\n\xff\xfe\x00garbage")
        with self.assertRaises(ConfigurationError):
            load_parameters(path)

    def test_errors_share_a_base(self):
        with self.assertRaises(NQSError):
            load_parameters(os.path.join(self.dir, "nope.wf"))


class TestStateWriter(unittest.TestCase):

    def test_line_format(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "states.txt")
            with StateWriter(path) as writer:
                writer.write_state(np.array([1, -1, -1, 1]))
                writer.write_state(np.array([-1, 1, 1, -1]))
            with open(path) as f:
                content = f.read()
        self.assertEqual(content, " 1 -1 -1  1 \n-1  1  1 -1 \n")

    def test_unwritable_path(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "missing_dir", "states.txt")
            with self.assertRaises(ResourceError):
                StateWriter(path)


if __name__ == '__main__':
    unittest.main(verbosity=2)
