"""
Exceptions raised by the generator stages.

Anything derived from GeneratorError is scoped to a single declaration:
the pipeline logs it, records it in the report and moves on to the next
entry. MemoryError is deliberately not part of this hierarchy.
"""


class GeneratorError(Exception):
    """Base class for entry-scoped generator failures."""


class OptionParseError(GeneratorError, ValueError):
    """A mount option carried a value that could not be parsed."""


class UnitExistsError(GeneratorError, FileExistsError):
    """A unit file with the same name was already present in the output directory."""


class UnitWriteError(GeneratorError, OSError):
    """Writing a unit file, drop-in or dependency link failed."""


class UnresolvableDeviceError(GeneratorError):
    """A device specifier did not resolve to an absolute device node."""


class FstabReadError(GeneratorError):
    """A mount table exists but could not be read."""
