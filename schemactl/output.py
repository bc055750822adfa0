"""
Process-wide output options set by the root CLI callback.

verbose: include causes and stack traces in error output, DEBUG logging
json: emit errors and rollback warnings as JSON on stderr
"""

from dataclasses import dataclass


@dataclass
class OutputOptions:
    verbose: bool = False
    json: bool = False


_options = OutputOptions()


def set_verbose(value: bool) -> None:
    _options.verbose = value


def set_json(value: bool) -> None:
    _options.json = value


def is_json() -> bool:
    return _options.json


def get_output_options() -> OutputOptions:
    """Return the live output options."""
    return _options


def reset_output_options() -> None:
    """Restore defaults. Used between CLI invocations in tests."""
    _options.verbose = False
    _options.json = False
