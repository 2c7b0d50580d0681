from typing import List
import os
import shutil


TRACE_PREFIX = "$"


def format_command(args: List[str]) -> str:
    """Render an argument vector the way it is echoed before execution"""
    return " ".join([TRACE_PREFIX] + [str(a) for a in args])


def resolve_binary(preferred: str) -> str:
    """Return the configured binary path, or the one found on PATH.

    The step image ships docker under /usr/bin. Outside of it (local runs,
    dry runs on a workstation) fall back to whatever PATH provides, and keep
    the configured value if nothing is found so the error names it.
    """
    if os.path.isabs(preferred) and os.path.exists(preferred):
        return preferred
    found = shutil.which(os.path.basename(preferred))
    if found:
        return found
    return preferred
