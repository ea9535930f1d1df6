"""Common behaviour of mode-driven structure modifiers."""

import logging
from abc import ABC, abstractmethod
from typing import Sequence


logger = logging.getLogger(__name__)


class InvalidModeError(ValueError):
    """Mode string not among the modes of a modifier."""
    pass


def normalise_mode(mode):
    return str(mode).lower().replace("_", "-")


class BaseFilter(ABC):
    """A modifier turning a CrystalStructure into a new CrystalStructure.

    Subclasses list their modes in MODES and the order in which modes are
    tried when the current one does not fit a structure in
    PREFERRED_FALLBACK_ORDER.
    """

    MODES: Sequence[str] = ()
    PREFERRED_FALLBACK_ORDER: Sequence[str] = ()

    def __init__(self, mode):
        self._mode = None
        self.mode = mode

    def __repr__(self):
        return f"{type(self).__name__}(mode={self.mode!r})"

    @property
    def mode(self):
        return self._mode

    @mode.setter
    def mode(self, value):
        used_mode = normalise_mode(value)
        if used_mode not in self.MODES:
            raise InvalidModeError(
                f'Invalid {type(self).__name__} mode: "{value}". '
                f"Valid modes are: {', '.join(self.MODES)}"
            )
        self._mode = used_mode

    @abstractmethod
    def get_applicable_modes(self, structure):
        """Return the modes that make a difference for `structure`."""

    @abstractmethod
    def apply(self, structure):
        """Return a new structure, leaving `structure` unchanged."""

    def ensure_valid_mode(self, structure):
        """Switch to a fallback mode if the current one does not fit."""
        valid_modes = self.get_applicable_modes(structure)
        if self._mode in valid_modes:
            return
        new_mode = next(
            (mode for mode in self.PREFERRED_FALLBACK_ORDER if mode in valid_modes),
            valid_modes[0],
        )
        logger.warning(
            f"{type(self).__name__} mode {self._mode} is not applicable to the "
            f"structure, switching to {new_mode}"
        )
        self._mode = new_mode

    def cycle_mode(self, structure):
        """Advance to the next applicable mode and return it."""
        modes = self.get_applicable_modes(structure)
        self.ensure_valid_mode(structure)
        current_index = modes.index(self._mode)
        self._mode = modes[(current_index + 1) % len(modes)]
        return self._mode
