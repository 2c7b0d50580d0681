"""Shared fakes for exercising the publish step without a Docker engine."""

from __future__ import annotations

from typing import Callable, List, Optional

import pytest

from docker_publish.runner import CommandFailed


class RecordingRunner:
    """Stands in for CommandRunner; records every argv and scripts exit codes."""

    dry_run = False

    def __init__(self, fail_when: Optional[Callable[[List[str]], int]] = None) -> None:
        self.calls: List[List[str]] = []
        self.inputs: List[Optional[str]] = []
        self.fail_when = fail_when or (lambda args: 0)

    def run(self, args, input_text=None, quiet=False, trace=True) -> int:
        self.calls.append(list(args))
        self.inputs.append(input_text)
        return self.fail_when(list(args))

    def check(self, args, input_text=None, quiet=False, trace=True) -> None:
        rc = self.run(args, input_text=input_text, quiet=quiet, trace=trace)
        if rc != 0:
            raise CommandFailed(args, rc)

    def subcommands(self) -> List[str]:
        return [call[1] for call in self.calls]


@pytest.fixture
def recording_runner() -> RecordingRunner:
    return RecordingRunner()
