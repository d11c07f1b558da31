# Log helpers used by the engine and directory modules.
#
# Verbosity is decided here; rendering is left to the rich console module.

import os

from . import console

_VERBOSE = False
_DEBUG = False


def set_verbosity(verbose: bool, debug_flag: bool):
    """Set verbosity levels for the module and the console."""
    global _VERBOSE, _DEBUG
    _VERBOSE = verbose
    _DEBUG = debug_flag
    console.set_debug(debug_flag)

    if debug_flag:
        os.environ["GROUPHOUND_DEBUG"] = "1"


def _chatty() -> bool:
    return _VERBOSE or _DEBUG


def status(msg: str):
    console.status(msg)


def good(msg: str):
    """Success message, shown in verbose/debug mode."""
    if _chatty():
        console.good(msg)


def info(msg: str):
    """Info message, shown in verbose/debug mode."""
    if _chatty():
        console.info(msg)


def warn(msg: str):
    console.warn(msg)


def error(msg: str):
    console.error(msg)


def debug(msg: str):
    """Per-member and per-query detail, shown with --debug or GROUPHOUND_DEBUG."""
    if _DEBUG or os.getenv("GROUPHOUND_DEBUG"):
        console.debug(msg)
