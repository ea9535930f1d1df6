"""Grouping of atoms into fragments connected by bonds and H-bonds."""

import itertools

from ..xtal.errors import UnknownAtomLabelError
from .bonds import is_symmetry_code


class ConnectedGroup:
    """Atoms of one fragment with the bonds and H-bonds between them."""

    def __init__(self, atoms=None, bonds=None, h_bonds=None):
        self.atoms = atoms if atoms is not None else []
        self.bonds = bonds if bonds is not None else []
        self.h_bonds = h_bonds if h_bonds is not None else []

    def __repr__(self):
        return "ConnectedGroup(atoms=[%s], bonds=%d, h_bonds=%d)" % (
            ", ".join(atom.label for atom in self.atoms),
            len(self.bonds),
            len(self.h_bonds),
        )

    @property
    def labels(self):
        return [atom.label for atom in self.atoms]


class _GroupArena:
    def __init__(self, atoms):
        self.atom_by_label = {atom.label: atom for atom in atoms}
        self.group_of = {}
        self.groups = {}
        self._ids = itertools.count()

    def new_group(self):
        group_id = next(self._ids)
        self.groups[group_id] = ConnectedGroup()
        return group_id

    def _merge(self, target_id, source_id):
        target = self.groups[target_id]
        source = self.groups.pop(source_id)
        for atom in source.atoms:
            self.group_of[atom.label] = target_id
        target.atoms.extend(source.atoms)
        target.bonds.extend(source.bonds)
        target.h_bonds.extend(source.h_bonds)

    def join(self, labels):
        """Put all atoms of `labels` into one group and return it.

        Existing groups are merged into the largest one among them.
        """
        for label in labels:
            if label not in self.atom_by_label:
                raise UnknownAtomLabelError(
                    f"Could not find atom with label: {label}, available are: "
                    + ", ".join(self.atom_by_label)
                )

        group_ids = sorted(
            set(self.group_of[label] for label in labels if label in self.group_of)
        )
        if not group_ids:
            target_id = self.new_group()
        else:
            target_id = max(group_ids, key=lambda i: len(self.groups[i].atoms))
            for group_id in group_ids:
                if group_id != target_id:
                    self._merge(target_id, group_id)

        target = self.groups[target_id]
        for label in labels:
            if label not in self.group_of:
                target.atoms.append(self.atom_by_label[label])
                self.group_of[label] = target_id
        return target


def calc_connected_groups(atoms, bonds, h_bonds):
    """Split `atoms` into groups connected by bonds and H-bonds.

    Bonds and H-bonds to symmetry generated positions do not connect
    atoms. Every atom ends up in exactly one group, unconnected atoms in a
    group of their own.

    Raises:
        UnknownAtomLabelError: A bond refers to an atom not in `atoms`.
    """
    arena = _GroupArena(atoms)

    for bond in bonds:
        if is_symmetry_code(bond.atom2_site_symmetry):
            continue
        arena.join(bond.labels).bonds.append(bond)

    for h_bond in h_bonds:
        if is_symmetry_code(h_bond.acceptor_atom_symmetry):
            continue
        arena.join(h_bond.labels).h_bonds.append(h_bond)

    for atom in atoms:
        if atom.label not in arena.group_of:
            arena.join([atom.label])

    return list(arena.groups.values())
