import os
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from docker_publish.config import LOGIN_USERNAME, EffectiveConfig
from docker_publish.runner import CommandFailed, CommandRunner


class StageError(RuntimeError):
    """A pipeline stage failed; the run stops here"""

    def __init__(self, stage: str, returncode: int, message: str):
        self.stage = stage
        self.returncode = returncode
        self.message = message
        super().__init__(f"{stage}: {message}")


class LoginFailed(StageError):
    pass


@dataclass
class PipelineResult:
    success: bool
    completed: List[str] = None
    skipped: List[str] = None
    failed_stage: Optional[str] = None
    returncode: int = 0
    message: str = ""

    def __post_init__(self):
        if self.completed is None:
            self.completed = []
        if self.skipped is None:
            self.skipped = []

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


class PublishPipeline:
    """Login, restore cache, build, tag, push and archive, strictly in that order.

    Each stage either completes, reports itself skipped (returns False) or
    raises StageError. The first StageError ends the run; nothing already
    tagged or pushed is rolled back.
    """

    def __init__(self, config: EffectiveConfig, runner: CommandRunner, docker_binary: str):
        self.config = config
        self.runner = runner
        self.docker = docker_binary

    def stages(self) -> List[Tuple[str, Callable[[], bool]]]:
        return [
            ("login", self.login),
            ("load", self.restore_cache),
            ("build", self.build),
            ("tag", self.tag),
            ("push", self.push),
            ("save", self.save_archive),
        ]

    def run(self) -> PipelineResult:
        result = PipelineResult(success=True)
        for name, stage in self.stages():
            try:
                ran = stage()
            except StageError as e:
                result.success = False
                result.failed_stage = e.stage
                result.returncode = e.returncode
                result.message = e.message
                return result
            if ran:
                result.completed.append(name)
            else:
                result.skipped.append(name)
        return result

    def _docker(self, stage: str, args: List[str], input_text: Optional[str] = None):
        cmd = [self.docker] + args
        try:
            self.runner.check(cmd, input_text=input_text)
        except CommandFailed as e:
            raise StageError(stage, e.returncode, f"docker {args[0]} exited with status {e.returncode}") from e

    def login(self) -> bool:
        # Token goes over stdin so it never shows up in argv or the trace
        args = ["login", "-u", LOGIN_USERNAME, "--password-stdin", self.config.registry]
        try:
            self._docker("login", args, input_text=self.config.auth_token)
        except StageError as e:
            print("Login failed.")
            raise LoginFailed("login", e.returncode, "Login failed.") from e
        return True

    def restore_cache(self) -> bool:
        path = self.config.load_archive_path
        if not path:
            return False
        if not os.path.exists(path):
            print(f"Archive {path} does not exist. Building from scratch.")
            return False
        self._docker("load", ["load", "-i", path])
        return True

    def build(self) -> bool:
        self._docker("build", [
            "build",
            "--pull=true",
            "--rm=true",
            "-f", self.config.dockerfile_path,
            "-t", self.config.commit_ref,
            self.config.build_context,
        ])
        return True

    def tag(self) -> bool:
        for tag in self.config.tags:
            self._docker("tag", ["tag", self.config.commit_ref, self.config.tag_reference(tag)])
        return True

    def push(self) -> bool:
        # --all-tags: a bare repository push only sends :latest on current engines
        self._docker("push", ["push", "--all-tags", self.config.repository])
        return True

    def save_archive(self) -> bool:
        path = self.config.save_archive_path
        if not path:
            return False
        directory = os.path.dirname(path)
        if not self.runner.dry_run:
            try:
                os.makedirs(directory, mode=0o755, exist_ok=True)
            except OSError as e:
                raise StageError("save", 1, f"cannot create {directory}: {e}") from e
        self._docker("save", ["save", "-o", path] + self.config.save_references())
        return True
