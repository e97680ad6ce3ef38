"""Packet fragmentation and out-of-order reassembly.

- ``fragment`` splits a byte stream into numbered, fixed-size fragments
- ``Reassembler`` rebuilds the stream from fragments in any arrival order,
  or reports exactly which sequence indices never arrived
- ``delivery`` and ``simulate`` play the unreliable network around them
"""

from .errors import IncompleteReassembly, InvalidConfiguration, ReassemblyError
from .fragment import Fragment, FragmentSet, fragment
from .reassembler import Reassembler, ReassemblyStats

__all__ = [
    "Fragment",
    "FragmentSet",
    "IncompleteReassembly",
    "InvalidConfiguration",
    "Reassembler",
    "ReassemblyError",
    "ReassemblyStats",
    "fragment",
]
