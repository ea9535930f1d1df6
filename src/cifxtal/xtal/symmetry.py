"""Symmetry operations and the symmetry of a crystal cell."""

import logging

import numpy as np
import pyparsing as pp

from ..cif import CifLoop
from .adp import UAnisoADP
from .errors import SymmetryCodeError, SymmetryOperationError
from .position import CartPosition, FractPosition


logger = logging.getLogger(__name__)

SPACE_GROUP_NAME_KEYS = [
    "_symmetry_space_group_name_H-M",
    "_space_group_name_H-M_alt",
    "_space_group.name_H-M_alt",
    "_space_group.name_h-m_alt",
    "_space_group.name_H-M_full",
]
SPACE_GROUP_NUMBER_KEYS = [
    "_symmetry_Int_Tables_number",
    "_space_group_IT_number",
    "_space_group.IT_number",
    "_space_group.it_number",
]
SYMOP_LOOP_KEYS = [
    "_space_group_symop",
    "_symmetry_equiv",
    "_symmetry_equiv_pos",
    "_space_group_symop_operation_xyz",
    "_space_group_symop.operation_xyz",
    "_symmetry_equiv_pos_as_xyz",
    "_symmetry_equiv.pos_as_xyz",
]
SYMOP_LOOP_PREFIXES = ("_space_group_symop", "_symmetry_equiv")
SYMOP_XYZ_KEYS = [
    "_space_group_symop_operation_xyz",
    "_space_group_symop.operation_xyz",
    "_symmetry_equiv_pos_as_xyz",
    "_symmetry_equiv.pos_as_xyz",
]
SYMOP_ID_KEYS = [
    "_space_group_symop_id",
    "_space_group_symop.id",
    "_symmetry_equiv_pos_site_id",
    "_symmetry_equiv.id",
]

FRACTION_DENOMINATORS = (2, 3, 4, 6)
FRACTION_EPS = 2.1e-3


def format_translation_as_fraction(number):
    """Format `number` as a short fraction if it is close to one.

    Returns an empty string for (near) zero and a decimal string if none of
    the denominators 2, 3, 4 or 6 fits.
    """
    if abs(number) < FRACTION_EPS:
        return ""
    sign = "-" if number < 0 else ""
    abs_number = abs(number)

    if abs(abs_number - round(abs_number)) < FRACTION_EPS:
        return sign + str(int(round(abs_number)))

    for denominator in FRACTION_DENOMINATORS:
        scaled = abs_number * denominator
        numerator = int(round(scaled))
        if abs(scaled - numerator) < FRACTION_EPS:
            if numerator == denominator:
                return sign + "1"
            return f"{sign}{numerator}/{denominator}"

    return sign + str(float(abs_number))


class _Term:
    __slots__ = ["column", "value"]

    def __init__(self, column, value):
        self.column = column
        self.value = value


class _SymmetryComponentParser:

    """
    Parse one component of a symmetry instruction, e.g. ``-x+y+1/2``.

    Every term is a signed number, optionally multiplying x, y or z. Only
    the first term may omit its sign.
    """

    def __init__(self):
        sign = pp.one_of("+ -")
        fraction = pp.Regex(r"\d+\s*/\s*\d+")
        decimal = pp.Regex(r"\d+\.\d*|\.\d+")
        integer = pp.Word(pp.nums)
        number = (fraction | decimal | integer).set_parse_action(self._to_number)
        variable = pp.Char("xyzXYZ")

        coefficient = number + pp.Optional(pp.Suppress("*"))
        variable_term = (pp.Optional(coefficient, default=1.0) + variable).set_parse_action(
            self._variable_term
        )
        constant_term = number.copy().add_parse_action(self._constant_term)
        term = variable_term | constant_term

        first_term = (pp.Optional(sign, default="+") + term).set_parse_action(
            self._apply_sign
        )
        next_term = (sign + term).set_parse_action(self._apply_sign)
        self.grammar = first_term + pp.ZeroOrMore(next_term)

    @staticmethod
    def _to_number(tokens):
        text = tokens[0]
        if "/" in text:
            numerator, denominator = text.split("/")
            return float(numerator) / float(denominator)
        return float(text)

    @staticmethod
    def _variable_term(tokens):
        return _Term("xyz".index(tokens[1].lower()), tokens[0])

    @staticmethod
    def _constant_term(tokens):
        return _Term(None, tokens[0])

    @staticmethod
    def _apply_sign(tokens):
        term = tokens[1]
        if tokens[0] == "-":
            term.value = -term.value
        return term

    def __call__(self, component):
        """Return the matrix row and translation of `component`."""
        try:
            terms = self.grammar.parse_string(component, parse_all=True)
        except pp.ParseException as e:
            raise SymmetryOperationError(
                f"Could not parse symmetry component '{component}': {e}"
            ) from e
        row = np.zeros(3)
        translation = 0.0
        for term in terms:
            if term.column is None:
                translation += term.value
            else:
                row[term.column] += term.value
        return row, translation


_component_parser = _SymmetryComponentParser()


class SymmetryOperation:

    """Rotation matrix and translation vector acting on fractional
    coordinates, created from an instruction such as ``-x+1/2,y,-z``.
    """

    def __init__(self, instruction):
        self.rot_matrix, self.trans_vector = self.parse_symmetry_instruction(
            instruction
        )

    def __repr__(self):
        return f"SymmetryOperation({self.to_symmetry_string()!r})"

    @staticmethod
    def parse_symmetry_instruction(instruction):
        """Parse an instruction into a 3x3 matrix and a translation vector.

        Raises:
            SymmetryOperationError: The instruction does not have exactly
                three components or a component can not be parsed.
        """
        components = [comp.strip() for comp in str(instruction).split(",")]
        if len(components) != 3:
            raise SymmetryOperationError(
                "Symmetry operation must have exactly three components"
            )
        matrix = np.zeros((3, 3))
        vector = np.zeros(3)
        for i, component in enumerate(components):
            matrix[i], vector[i] = _component_parser(component)
        return matrix, vector

    def is_identity(self):
        return np.allclose(self.rot_matrix, np.eye(3)) and np.allclose(
            self.trans_vector, 0
        )

    def apply_to_point(self, point):
        return np.dot(self.rot_matrix, np.asarray(point, float)) + self.trans_vector

    def apply_to_atom(self, atom, additional_translation=None):
        """Return a copy of `atom` moved by the operation.

        Anisotropic ADPs are rotated as R U R^T, isotropic ones are kept.
        """
        if isinstance(atom.position, CartPosition):
            raise TypeError(
                f"Atom {atom.label} has Cartesian coordinates, symmetry "
                "operations act on fractional coordinates"
            )
        coords = self.apply_to_point(atom.position.coords)
        if additional_translation is not None:
            coords = coords + np.asarray(additional_translation, float)

        adp = atom.adp
        if isinstance(adp, UAnisoADP):
            r = self.rot_matrix
            adp = UAnisoADP.from_matrix(r @ adp.as_matrix() @ r.T)
        elif adp is not None:
            adp = adp.copy()

        return atom.copy(position=FractPosition(*coords), adp=adp)

    def apply_to_atoms(self, atoms, additional_translation=None):
        return [self.apply_to_atom(atom, additional_translation) for atom in atoms]

    def copy(self):
        new_op = SymmetryOperation("x,y,z")
        new_op.rot_matrix = self.rot_matrix.copy()
        new_op.trans_vector = self.trans_vector.copy()
        return new_op

    def to_symmetry_string(self, additional_translation=None):
        """Render the operation in shorthand notation, e.g. ``1/2-x,y,-z``."""
        variables = "xyz"
        translation = self.trans_vector
        if additional_translation is not None:
            translation = translation + np.asarray(additional_translation, float)

        components = []
        for i in range(3):
            terms = []
            for j in range(3):
                coeff = self.rot_matrix[i, j]
                if abs(coeff) < 1e-10:
                    continue
                if abs(abs(coeff) - 1) < 1e-10:
                    coeff_str = ""
                else:
                    coeff_str = format_translation_as_fraction(abs(coeff))
                terms.append(("" if coeff > 0 else "-") + coeff_str + variables[j])
            expr = "+".join(terms).replace("+-", "-") or "0"

            if abs(translation[i]) > 1e-10:
                translation_term = format_translation_as_fraction(translation[i])
                if expr == "0":
                    expr = translation_term or "0"
                elif translation_term == "":
                    pass
                elif expr.startswith("-"):
                    expr = translation_term + expr
                else:
                    expr = translation_term + "+" + expr
            components.append(expr)
        return ",".join(components)


class CellSymmetry:

    """Space group information and symmetry operations of a cell.

    Operations are addressed by their id, which defaults to the 1-based
    position in `symmetry_operations`.
    """

    def __init__(
        self, space_group_name, space_group_number, symmetry_operations, operation_ids=None
    ):
        self.space_group_name = space_group_name
        self.space_group_number = space_group_number
        self.symmetry_operations = list(symmetry_operations)
        if operation_ids is None:
            operation_ids = {
                str(index + 1): index for index in range(len(self.symmetry_operations))
            }
        self.operation_ids = operation_ids

        self.identity_sym_op_id = None
        for op_id, index in self.operation_ids.items():
            if self.symmetry_operations[index].is_identity():
                self.identity_sym_op_id = op_id
                break

    def __repr__(self):
        return (
            f"CellSymmetry({self.space_group_name!r}, {self.space_group_number!r}, "
            f"{len(self.symmetry_operations)} operations)"
        )

    def __len__(self):
        return len(self.symmetry_operations)

    def generate_equivalent_positions(self, point):
        return [op.apply_to_point(point) for op in self.symmetry_operations]

    def parse_position_code(self, position_code):
        """Split a code like ``2_655`` into the operation and a cell translation.

        A bare operation id is accepted as a code without translation.

        Returns:
            tuple[SymmetryOperation, np.ndarray[int]]

        Raises:
            SymmetryCodeError: Unknown operation id or malformed translation.
        """
        position_code = str(position_code).strip()
        if "_" in position_code:
            op_id, digits = position_code.split("_", 1)
            if len(digits) != 3 or not digits.isdigit():
                raise SymmetryCodeError(
                    f"Invalid translation in symmetry code {position_code}, "
                    'expecting string format "<symOpId>_abc"'
                )
            translation = np.array([int(digit) - 5 for digit in digits])
        else:
            op_id = position_code
            translation = np.zeros(3, int)

        try:
            index = self.operation_ids[op_id]
        except KeyError:
            raise SymmetryCodeError(
                f"Invalid symmetry operation ID in string {position_code}: {op_id}, "
                'expecting string format "<symOpId>_abc". ID entry in present symOp loop?'
            )
        return self.symmetry_operations[index], translation

    def apply_symmetry(self, position_code, atoms):
        """Apply the operation and cell translation of `position_code`.

        Args:
            position_code (str): Symmetry code such as ``2_655``.
            atoms (Atom or list[Atom]): Atoms in fractional coordinates.

        Returns:
            Atom or list[Atom]: New atoms, in the shape of the input.
        """
        sym_op, translation = self.parse_position_code(position_code)
        if isinstance(atoms, (list, tuple)):
            return sym_op.apply_to_atoms(atoms, translation)
        return sym_op.apply_to_atom(atoms, translation)

    @staticmethod
    def _find_symop_entry(cif_block):
        entry = cif_block.get(SYMOP_LOOP_KEYS, None)
        if entry is not None:
            return entry
        for key, value in cif_block.items():
            if isinstance(value, CifLoop) and key.startswith(SYMOP_LOOP_PREFIXES):
                if value.get(SYMOP_XYZ_KEYS, None) is not None:
                    return value
        return None

    @classmethod
    def from_cif(cls, cif_block):
        """Read space group and symmetry operations from a CIF block.

        Without any symmetry operations a warning is logged and the
        symmetry falls back to P1.
        """
        space_group_name = cif_block.get(SPACE_GROUP_NAME_KEYS, None)
        if space_group_name is None:
            logger.info("No space group name found in CIF block, using 'Unknown'")
            space_group_name = "Unknown"
        space_group_number = cif_block.get(SPACE_GROUP_NUMBER_KEYS, None)
        if not isinstance(space_group_number, int):
            logger.info("No space group number found in CIF block, using 0")
            space_group_number = 0

        symop_entry = cls._find_symop_entry(cif_block)
        if symop_entry is None:
            logger.warning("No symmetry operations found in CIF block, will use P1")
            return cls("Unknown", 0, [SymmetryOperation("x,y,z")])

        if not isinstance(symop_entry, CifLoop):
            return cls(
                str(space_group_name),
                space_group_number,
                [SymmetryOperation(symop_entry)],
            )

        operations = [SymmetryOperation(op) for op in symop_entry.get(SYMOP_XYZ_KEYS)]
        ids = symop_entry.get(SYMOP_ID_KEYS, None)
        operation_ids = None
        if ids is not None:
            operation_ids = {str(op_id): index for index, op_id in enumerate(ids)}

        return cls(str(space_group_name), space_group_number, operations, operation_ids)
