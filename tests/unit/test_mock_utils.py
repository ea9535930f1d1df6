import os
import os.path as op

from cifxtal.cif import CIF
from cifxtal.utils.mock_utils import (
    BaseTestRunner,
    DDL2_CIF,
    DISORDER_CIF,
    MOLECULE_CIF,
    MULTI_BLOCK_CIF,
)


class TestMockUtils(BaseTestRunner):

    def test_fixtures_parse(self):
        for cif_str in (MOLECULE_CIF, DISORDER_CIF, DDL2_CIF):
            structure = self._load_structure(cif_str)
            assert len(structure.atoms) > 0
        assert len(CIF(MULTI_BLOCK_CIF)) == 2

    def test_write_tmp_cif(self):
        fname = self._write_tmp_cif(MOLECULE_CIF, suffix="_molecule")
        assert op.basename(fname) == "tmp_molecule.cif"
        with open(fname, encoding="utf-8") as cif_in:
            assert cif_in.read() == MOLECULE_CIF

    def test_run_in_tmpdir(self):
        cwd = os.getcwd()
        with self._run_in_tmpdir() as dirname:
            assert os.getcwd() == op.realpath(dirname) or os.getcwd() == dirname
        assert os.getcwd() == cwd
