import logging
import subprocess
import sys
from typing import List, Optional, TextIO

from docker_publish.utils import format_command


# Conventional shell status for "command not found"
EXIT_NOT_FOUND = 127


class CommandFailed(RuntimeError):
    """An external command exited with a non-zero status"""

    def __init__(self, args: List[str], returncode: int):
        self.args_list = list(args)
        self.returncode = returncode
        super().__init__(f"{args[0]} exited with status {returncode}")


class CommandRunner:
    """Runs external commands synchronously inside the workspace.

    - Every command runs with the workspace as its working directory
    - The argument vector is echoed to stderr before execution
    - stdout/stderr are inherited so the tool's own diagnostics reach the user,
      unless ``quiet`` is requested (daemon launch and readiness probing)
    - In dry-run mode commands are traced but never executed
    """

    def __init__(self, workspace: str, dry_run: bool = False, trace_stream: Optional[TextIO] = None):
        self.workspace = workspace
        self.dry_run = dry_run
        self.trace_stream = trace_stream

    def trace(self, args: List[str]):
        stream = self.trace_stream or sys.stderr
        print(format_command(args), file=stream, flush=True)

    def run(self, args: List[str], input_text: Optional[str] = None, quiet: bool = False, trace: bool = True) -> int:
        """Run a command to completion and return its exit status"""
        if trace:
            self.trace(args)
        if self.dry_run:
            return 0

        # Children write straight to fd 1; anything we printed must land first
        sys.stdout.flush()
        sink = subprocess.DEVNULL if quiet else None
        stdin_data = input_text.encode("utf-8") if input_text is not None else None
        try:
            completed = subprocess.run(
                args,
                cwd=self.workspace or None,
                input=stdin_data,
                stdout=sink,
                stderr=sink,
            )
        except OSError as e:
            logging.error("Failed to execute %s: %s", args[0], e)
            return EXIT_NOT_FOUND
        return completed.returncode

    def check(self, args: List[str], input_text: Optional[str] = None, quiet: bool = False, trace: bool = True):
        """Run a command and raise CommandFailed on a non-zero exit"""
        rc = self.run(args, input_text=input_text, quiet=quiet, trace=trace)
        if rc != 0:
            raise CommandFailed(args, rc)
