"""Repair of common inconsistencies between the loops of a CIF data block.

Atom labels in the aniso, bond and H-bond loops are matched against the
atom_site labels after normalisation, and symmetry codes written in
nonstandard ways (``2 555``, ``20555``) are rewritten as ``id_abc``.
"""

import logging
import re

from .cifloop import CifLoop


logger = logging.getLogger(__name__)

RE_LABEL_BRACKETS = re.compile(r"[()\[\]{}]")
LABEL_SUFFIX_PATTERNS = (
    re.compile(r"\^[a-zA-Z1-9]+$"),
    re.compile(r"_[a-zA-Z1-9]+$"),
    re.compile(r"_\$\d+$"),
)

RE_STANDARD_SYMMETRY_CODE = re.compile(r"^\d+_\d{3}$")
RE_SEPARATED_SYMMETRY_CODE = re.compile(r"^-?([^\s\-_.]+)[\s\-.](\d{3})$")
RE_ENCODED_SYMMETRY_CODE = re.compile(r"^\d{5,6}$")

ATOM_SITE_LABEL_KEYS = ["_atom_site.label", "_atom_site_label"]
ANISO_LABEL_KEYS = ["_atom_site_aniso.label", "_atom_site_aniso_label"]
BOND_LABEL_KEYS = (
    ["_geom_bond.atom_site_label_1", "_geom_bond_atom_site_label_1"],
    ["_geom_bond.atom_site_label_2", "_geom_bond_atom_site_label_2"],
)
BOND_SYMMETRY_KEYS = (
    ["_geom_bond.site_symmetry_1", "_geom_bond_site_symmetry_1"],
    ["_geom_bond.site_symmetry_2", "_geom_bond_site_symmetry_2"],
)
HBOND_LABEL_KEYS = (
    ["_geom_hbond.atom_site_label_d", "_geom_hbond_atom_site_label_D"],
    ["_geom_hbond.atom_site_label_h", "_geom_hbond_atom_site_label_H"],
    ["_geom_hbond.atom_site_label_a", "_geom_hbond_atom_site_label_A"],
)
HBOND_SYMMETRY_KEYS = (
    ["_geom_hbond.site_symmetry_a", "_geom_hbond_site_symmetry_A"],
)


def normalize_atom_label(label, remove_suffixes=True):
    """Uppercase `label` and strip brackets, and optionally the suffixes
    ``^a``, ``_a`` and ``_$1`` that some programs append.

    Raises:
        ValueError: The label is not a string or normalises to nothing.
    """
    if not label or not isinstance(label, str):
        raise ValueError(f"Empty or invalid atom label: {label!r}")

    normalized = RE_LABEL_BRACKETS.sub("", label.upper())
    if remove_suffixes:
        for pattern in LABEL_SUFFIX_PATTERNS:
            normalized = pattern.sub("", normalized)

    if normalized == "":
        raise ValueError(f'Label "{label}" normalizes to an empty string')
    return normalized


def atom_labels_match(label1, label2, remove_suffixes=True):
    return normalize_atom_label(label1, remove_suffixes) == normalize_atom_label(
        label2, remove_suffixes
    )


def create_label_map(labels, remove_suffixes=True):
    """Map normalised labels to the original label.

    Normalised labels shared by several originals are left out, since they
    cannot be mapped back unambiguously.
    """
    originals_by_normalized = {}
    for label in labels:
        try:
            normalized = normalize_atom_label(label, remove_suffixes)
        except ValueError as e:
            logger.warning(f"Skipping invalid label: {e}")
            continue
        originals_by_normalized.setdefault(normalized, []).append(label)

    label_map = {}
    for normalized, originals in originals_by_normalized.items():
        if len(originals) == 1:
            label_map[normalized] = originals[0]
        else:
            logger.warning(
                f"Multiple labels map to {normalized}: {', '.join(originals)}. "
                "Skipping mapping."
            )
    return label_map


def reconcile_atom_labels(loop, column, reference_labels, remove_suffixes=True):
    """Replace the labels in `column` of `loop` by the matching reference
    label. Labels without a unique match are kept.
    """
    label_map = create_label_map(reference_labels, remove_suffixes)
    reconciled = []
    for value in loop.get(column):
        try:
            normalized = normalize_atom_label(value, remove_suffixes)
        except ValueError:
            reconciled.append(value)
            continue
        reconciled.append(label_map.get(normalized, value))
    loop.set_column(column, reconciled)


def _distance_from_555(digits):
    return sum(abs(int(digit) - 5) for digit in digits)


def guess_symmetry_operation(code):
    """Rewrite a symmetry code in the standard ``id_abc`` form.

    Recognised are ``2_555`` (kept), codes with a space, dash or dot as
    separator (``2 555``, ``m1-565``, ``-2x 555``) and codes packed into a
    five or six digit integer (``20555``, ``565012``). For packed codes the
    three digits closer to ``555`` are taken as the translation part.
    Anything else is returned unchanged.
    """
    if code is None or code == "" or code == ".":
        return "."

    text = str(code).strip()
    if RE_STANDARD_SYMMETRY_CODE.match(text):
        return text

    match = RE_SEPARATED_SYMMETRY_CODE.match(text)
    if match:
        symop_id, translation = match.groups()
        prefix = "-" if text.startswith("-") else ""
        return f"{prefix}{symop_id}_{translation}"

    if RE_ENCODED_SYMMETRY_CODE.match(text):
        first_three, last_three = text[:3], text[-3:]
        if _distance_from_555(first_three) < _distance_from_555(last_three):
            return f"{int(text[3:])}_{first_three}"
        return f"{int(text[:-4])}_{last_three}"

    return code


def reconcile_symmetry_operations(loop, column):
    loop.set_column(column, [guess_symmetry_operation(value) for value in loop.get(column)])


def _available_key(loop, keys):
    for key in keys:
        if key in loop.header_lines:
            return key
    return None


def _loop_or_none(block, name):
    entry = block.get(name, None)
    return entry if isinstance(entry, CifLoop) else None


def try_to_fix_cif_block(
    block, fix_adp_labels=True, fix_bond_labels=True, fix_bond_symmetry=True
):
    """Reconcile the labels and symmetry codes of the aniso, bond and H-bond
    loops of `block` in place.

    Loops or columns missing from the block are skipped.
    """
    atom_site_labels = None
    if fix_adp_labels or fix_bond_labels:
        atom_site_labels = block.get("_atom_site").get(ATOM_SITE_LABEL_KEYS)

    if fix_adp_labels:
        aniso_loop = _loop_or_none(block, "_atom_site_aniso")
        if aniso_loop is not None:
            key = _available_key(aniso_loop, ANISO_LABEL_KEYS)
            if key is not None:
                reconcile_atom_labels(aniso_loop, key, atom_site_labels)

    if not (fix_bond_labels or fix_bond_symmetry):
        return

    for loop_name, label_keys, symmetry_keys in (
        ("_geom_bond", BOND_LABEL_KEYS, BOND_SYMMETRY_KEYS),
        ("_geom_hbond", HBOND_LABEL_KEYS, HBOND_SYMMETRY_KEYS),
    ):
        loop = _loop_or_none(block, loop_name)
        if loop is None:
            continue
        if fix_bond_labels:
            for keys in label_keys:
                key = _available_key(loop, keys)
                if key is not None:
                    reconcile_atom_labels(loop, key, atom_site_labels)
        if fix_bond_symmetry:
            for keys in symmetry_keys:
                key = _available_key(loop, keys)
                if key is not None:
                    reconcile_symmetry_operations(loop, key)
        logger.debug(f"Reconciled labels and symmetry codes of {loop_name}")
