"""Read a crystal structure from a CIF file and summarise its content.

Optionally repairs label and symmetry code mismatches in the CIF, derives
bonds from covalent radii, filters hydrogens, disorder groups or atoms by
label and grows symmetry equivalent fragments before the summary is printed.
"""

import argparse
import logging
import os
import sys

from cifxtal import CIF, CrystalStructure
from cifxtal.cif import CIFError
from cifxtal.cif.fixcif import try_to_fix_cif_block
from cifxtal.command_line.custom_argparsers import (
    CustomHelpFormatter,
    ToggleActionFlag,
    ValidateCifFileArgument,
)
from cifxtal.logtools import log_run_info, setup_logging
from cifxtal.modifiers import (
    AtomLabelFilter,
    BondGenerator,
    DisorderFilter,
    HydrogenFilter,
    InvalidModeError,
    IsolatedHydrogenFixer,
    SymmetryGrower,
)
from cifxtal.xtal import StructureError, SymmetryCodeError, SymmetryOperationError


logger = logging.getLogger(__name__)


def build_argparser():
    p = argparse.ArgumentParser(
        formatter_class=CustomHelpFormatter, description=__doc__
    )
    p.add_argument(
        "cif",
        type=str,
        action=ValidateCifFileArgument,
        help="CIF file containing the structure.",
    )

    # Input options
    p.add_argument(
        "-b",
        "--block",
        type=int,
        default=0,
        metavar="<int>",
        help="Index of the data block to read.",
    )
    p.add_argument(
        "--block-name",
        type=str,
        default=None,
        metavar="<name>",
        help="Name of the data block to read, overrides --block.",
    )
    p.add_argument(
        "--split-su",
        action=ToggleActionFlag,
        dest="split_su",
        default=True,
        help="Split standard uncertainties from numerical values.",
    )
    p.add_argument(
        "--fix-cif",
        action=ToggleActionFlag,
        dest="fix_cif",
        default=False,
        help="Match bond and aniso labels to the atom_site labels and "
        "rewrite nonstandard symmetry codes before reading the structure.",
    )

    # Modifier options
    mo = p.add_argument_group("Modifier options")
    mo.add_argument(
        "--bonds",
        type=str,
        default=None,
        choices=BondGenerator.MODES,
        help="Generation of bonds from covalent radii. Not applied if omitted.",
    )
    mo.add_argument(
        "--bond-tolerance",
        type=float,
        default=1.3,
        metavar="<float>",
        help="Factor applied to the sum of covalent radii for generated bonds.",
    )
    mo.add_argument(
        "--fix-hydrogens",
        action=ToggleActionFlag,
        dest="fix_hydrogens",
        default=False,
        help="Bond hydrogens without any bond to a close non-hydrogen atom.",
    )
    mo.add_argument(
        "--hydrogens",
        type=str,
        default=None,
        choices=HydrogenFilter.MODES,
        help="Hydrogen display mode. Not applied if omitted.",
    )
    mo.add_argument(
        "--disorder",
        type=str,
        default=None,
        choices=DisorderFilter.MODES,
        help="Disorder group selection. Not applied if omitted.",
    )
    mo.add_argument(
        "--grow",
        type=str,
        default=None,
        choices=SymmetryGrower.MODES,
        help="Symmetry growth mode. Not applied if omitted.",
    )
    mo.add_argument(
        "--exclude",
        type=str,
        nargs="+",
        default=None,
        metavar="<label>",
        help="Atom labels to remove together with their bonds.",
    )

    # Output options
    p.add_argument(
        "-d",
        "--directory",
        type=os.path.abspath,
        default=None,
        metavar="<dir>",
        help="Directory to store the log file in.",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Be verbose.")
    p.add_argument(
        "--debug", action=ToggleActionFlag, default=False, help="Log as much information as possible."
    )
    return p


def parse_args(argv=sys.argv):
    p = build_argparser()
    return p.parse_args(argv[1:])


def build_modifiers(args):
    """Modifiers requested on the command line, in application order."""
    modifiers = []
    if args.bonds is not None:
        modifiers.append(BondGenerator(tolerance_factor=args.bond_tolerance, mode=args.bonds))
    if args.fix_hydrogens:
        modifiers.append(IsolatedHydrogenFixer(IsolatedHydrogenFixer.ON))
    if args.exclude:
        modifiers.append(AtomLabelFilter(args.exclude, mode=AtomLabelFilter.ON))
    if args.disorder is not None:
        modifiers.append(DisorderFilter(args.disorder))
    if args.hydrogens is not None:
        modifiers.append(HydrogenFilter(args.hydrogens))
    if args.grow is not None:
        modifiers.append(SymmetryGrower(args.grow))
    return modifiers


def load_structure(cif_text, block=0, block_name=None, split_su=True, fix_cif=False):
    cif = CIF(cif_text, split_su=split_su)
    if block_name is not None:
        cif_block = cif.get_block_by_name(block_name)
    else:
        cif_block = cif.get_block(block)
    logger.info(f"Reading data block {cif_block.data_block_name}")
    if fix_cif:
        try_to_fix_cif_block(cif_block)
    return CrystalStructure.from_cif(cif_block)


def format_summary(structure):
    cell = structure.cell
    symmetry = structure.symmetry
    elements = {}
    for atom in structure.atoms:
        elements[atom.atom_type] = elements.get(atom.atom_type, 0) + 1

    lines = [
        f"Cell: a={cell.a:.4f} b={cell.b:.4f} c={cell.c:.4f} "
        f"alpha={cell.alpha:.3f} beta={cell.beta:.3f} gamma={cell.gamma:.3f}",
        f"Volume: {cell.calc_volume():.2f}",
        f"Space group: {symmetry.space_group_name} ({symmetry.space_group_number}), "
        f"{len(symmetry.symmetry_operations)} symmetry operations",
        f"Atoms: {len(structure.atoms)} "
        + "(" + ", ".join(f"{el}: {n}" for el, n in sorted(elements.items())) + ")",
        f"Bonds: {len(structure.bonds)}",
        f"H-bonds: {len(structure.h_bonds)}",
        f"Connected groups: {len(structure.connected_groups)}",
    ]
    return "\n".join(lines)


def main(argv=sys.argv):
    args = parse_args(argv)
    if args.directory is not None:
        os.makedirs(args.directory, exist_ok=True)

    # Setup logger
    setup_logging(options=args, filename="cifxtal_summary.log")
    log_run_info(args, logger)

    with open(args.cif, "r", encoding="utf-8") as f:
        cif_text = f.read()

    try:
        structure = load_structure(
            cif_text, args.block, args.block_name, args.split_su, args.fix_cif
        )
        for modifier in build_modifiers(args):
            structure = modifier.apply(structure)
            logger.info(f"Applied {modifier!r}")
    except (
        CIFError,
        StructureError,
        SymmetryCodeError,
        SymmetryOperationError,
        InvalidModeError,
    ) as e:
        logger.error(f"Could not build structure from {args.cif}: {e}")
        return 1

    print(format_summary(structure))
    return 0
