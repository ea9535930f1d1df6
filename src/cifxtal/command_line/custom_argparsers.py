"""argparse actions and the help formatter of the cifxtal command line tools."""

import argparse
from pathlib import Path


class ToggleActionFlag(argparse.Action):
    """A boolean option that is switched on by ``--name`` and off by
    ``--no-name``, e.g. ``--split-su`` / ``--no-split-su``.
    """

    def __init__(self, option_strings, dest=None, **kwargs):
        if len(option_strings) != 1 or not option_strings[0].startswith("--"):
            raise ValueError(
                f"{self.__class__.__name__} needs exactly one long option, "
                f"got {option_strings}"
            )
        name = option_strings[0][2:]
        if dest is None:
            dest = name.replace("-", "_")
        super().__init__(["--" + name, "--no-" + name], dest, nargs=0, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, not option_string.startswith("--no-"))

    def format_usage(self):
        return "--[no-]" + self.option_strings[0][2:]


class CustomHelpFormatter(
    argparse.RawDescriptionHelpFormatter,
    argparse.ArgumentDefaultsHelpFormatter,
):
    """Keeps the description layout, shows defaults and prints toggle flags
    once as ``--[no-]name``.
    """

    def _format_action_invocation(self, action):
        if isinstance(action, ToggleActionFlag):
            return action.format_usage()
        return super()._format_action_invocation(action)


class ValidateCifFileArgument(argparse.Action):
    """Checks that an existing CIF file was provided."""

    extension_choices = (".cif",)

    def __call__(self, parser, namespace, value, option_string=None):
        fname = Path(value)

        if fname.suffix.lower() not in self.extension_choices:
            parser.error(
                f"Provided file ({value}) does not end in one of "
                f"{', '.join(self.extension_choices)}."
            )
        if not fname.is_file():
            parser.error(f"Could not find CIF file ({value}).")

        setattr(namespace, self.dest, value)
