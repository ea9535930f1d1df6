from .errors import CIFError, CIFLookupError, CIFLoopError, CIFSyntaxError
from .values import ValueSU, parse_value, parse_multiline_string
from .cifloop import CifLoop, STANDARD_LOOP_NAMES, resolve_loop_naming_conflict
from .ciffile import CIF, CifBlock
from .fixcif import try_to_fix_cif_block
