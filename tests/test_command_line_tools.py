import contextlib
import io
import logging
import os.path as op
import subprocess

import pytest

from cifxtal.command_line.crystal_summary import build_argparser, main, parse_args
from cifxtal.utils.mock_utils import BaseTestRunner, DDL2_CIF, MOLECULE_CIF, MULTI_BLOCK_CIF


class TestCommandLineTools(BaseTestRunner):

    def tearDown(self):
        module_logger = logging.getLogger("cifxtal")
        for handler in list(module_logger.handlers):
            module_logger.removeHandler(handler)
        super().tearDown()

    def _run_main(self, *args):
        stdout = io.StringIO()
        with contextlib.redirect_stdout(stdout):
            return_code = main(["cifxtal_summary", *args])
        return return_code, stdout.getvalue()

    def test_summary(self):
        fname = self._write_tmp_cif(MOLECULE_CIF)
        return_code, output = self._run_main(fname)
        assert return_code == 0
        lines = output.strip().split("\n")
        assert lines[0].startswith("Cell: a=10.0000 b=12.0000 c=15.0000")
        assert "Space group: P 21/c (14), 4 symmetry operations" in lines
        assert "Atoms: 5 (C: 1, H: 1, N: 1, O: 1, P: 1)" in lines
        assert "Bonds: 4" in lines
        assert "H-bonds: 1" in lines
        assert "Connected groups: 2" in lines

    def test_modifiers(self):
        fname = self._write_tmp_cif(MOLECULE_CIF)
        return_code, output = self._run_main(
            fname, "--grow", "bonds-none-hbonds-yes", "--exclude", "P1"
        )
        assert return_code == 0
        assert "Atoms: 8 (C: 2, H: 2, N: 2, O: 2)" in output

        return_code, output = self._run_main(fname, "--hydrogens", "none")
        assert "Atoms: 4 (C: 1, N: 1, O: 1, P: 1)" in output
        assert "H-bonds: 0" in output

    def test_log_file(self):
        fname = self._write_tmp_cif(MOLECULE_CIF)
        log_dir = op.abspath("logs")
        return_code, _ = self._run_main(fname, "-d", log_dir, "-v")
        assert return_code == 0
        assert op.isfile(op.join(log_dir, "cifxtal_summary.log"))

    def test_invalid_structure(self):
        cif = MOLECULE_CIF.replace("2_655 ?", "9_655 ?")
        fname = self._write_tmp_cif(cif, suffix="_bad")
        return_code, output = self._run_main(fname)
        assert return_code == 1
        assert "9_655" in output

    def test_missing_block(self):
        fname = self._write_tmp_cif(MULTI_BLOCK_CIF)
        return_code, _ = self._run_main(fname, "--block-name", "c")
        assert return_code == 1

    def test_argument_validation(self):
        fname = self._write_tmp_cif(MOLECULE_CIF)
        args = parse_args(["cifxtal_summary", fname, "--no-split-su"])
        assert args.split_su is False
        with pytest.raises(SystemExit):
            parse_args(["cifxtal_summary", "missing.cif"])
        with pytest.raises(SystemExit):
            parse_args(["cifxtal_summary", fname, "--grow", "sometimes"])

    def test_bond_options(self):
        fname = self._write_tmp_cif(DDL2_CIF)
        return_code, output = self._run_main(fname)
        assert "Bonds: 0" in output
        assert "Connected groups: 2" in output

        return_code, output = self._run_main(fname, "--bonds", "create")
        assert return_code == 0
        assert "Bonds: 1" in output
        assert "Connected groups: 1" in output

        return_code, output = self._run_main(fname, "--bonds", "create", "--bond-tolerance", "0.5")
        assert "Bonds: 0" in output

    def test_fix_hydrogens(self):
        cif = (
            "data_oh\n_cell_length_a 10\n_cell_length_b 10\n_cell_length_c 10\n"
            "_cell_angle_alpha 90\n_cell_angle_beta 90\n_cell_angle_gamma 90\n"
            "loop_\n_atom_site_label\n_atom_site_fract_x\n_atom_site_fract_y\n"
            "_atom_site_fract_z\nC1 0.10 0.10 0.10\nO1 0.10 0.10 0.25\nH1 0.20 0.10 0.10\n"
            "loop_\n_geom_bond_atom_site_label_1\n_geom_bond_atom_site_label_2\nC1 O1\n"
        )
        fname = self._write_tmp_cif(cif, suffix="_oh")
        _, output = self._run_main(fname)
        assert "Bonds: 1" in output
        assert "Connected groups: 2" in output
        _, output = self._run_main(fname, "--fix-hydrogens")
        assert "Bonds: 2" in output
        assert "Connected groups: 1" in output

    def test_fix_cif(self):
        cif = MOLECULE_CIF.replace("O1 N1 1.350(3)", "o1 N(1) 1.350(3)")
        fname = self._write_tmp_cif(cif, suffix="_labels")
        return_code, _ = self._run_main(fname)
        assert return_code == 1
        return_code, output = self._run_main(fname, "--fix-cif")
        assert return_code == 0
        assert "Bonds: 4" in output

    def test_toggle_help(self):
        help_text = build_argparser().format_help()
        assert "--[no-]split-su" in help_text
        assert "--[no-]fix-cif" in help_text

    def test_tools_help(self):
        subprocess.check_call(["cifxtal_summary", "--help"])
