import logging
import threading
import time
from typing import Callable, List, Optional

from docker_publish.config import READY_ATTEMPTS, READY_INTERVAL_SECONDS
from docker_publish.runner import CommandRunner


class DaemonSupervisor:
    """Starts the docker daemon in the background and waits for it to answer.

    The launch runs in a detached thread. Nothing joins it: the daemon is
    expected to outlive the pipeline, and a crash only becomes visible through
    the readiness probe. The thread records the daemon's exit status so a
    failed readiness wait can say why.
    """

    def __init__(
        self,
        runner: CommandRunner,
        docker_binary: str,
        dockerd_binary: str,
        storage_driver: Optional[str] = None,
        debug: bool = False,
        attempts: int = READY_ATTEMPTS,
        interval: float = READY_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.runner = runner
        self.docker_binary = docker_binary
        self.dockerd_binary = dockerd_binary
        self.storage_driver = storage_driver
        self.debug = debug
        self.attempts = attempts
        self.interval = interval
        self._sleep = sleep
        self.launch_exit_code: Optional[int] = None

    def launch_args(self) -> List[str]:
        args = [self.dockerd_binary]
        if self.storage_driver:
            args += ["--storage-driver", self.storage_driver]
        return args

    def _run_daemon(self):
        self.launch_exit_code = self.runner.run(self.launch_args(), quiet=not self.debug)

    def launch(self) -> threading.Thread:
        """Start the daemon without waiting for it"""
        thread = threading.Thread(target=self._run_daemon, name="dockerd-launch", daemon=True)
        thread.start()
        return thread

    def probe(self) -> bool:
        return self.runner.run([self.docker_binary, "info"], quiet=True, trace=False) == 0

    def wait_until_ready(self) -> bool:
        """Poll ``docker info`` until it succeeds or attempts run out.

        Running out of attempts is not an error; the next docker command will
        fail with the engine's own message if the daemon never came up.
        """
        for attempt in range(1, self.attempts + 1):
            if self.probe():
                logging.debug("Docker daemon ready after %d attempt(s)", attempt)
                return True
            logging.debug("Docker daemon not ready (attempt %d/%d)", attempt, self.attempts)
            if attempt < self.attempts:
                self._sleep(self.interval)

        if self.launch_exit_code is not None:
            logging.warning(
                "Docker daemon exited with status %d before becoming ready; continuing anyway",
                self.launch_exit_code,
            )
        else:
            logging.warning("Docker daemon not ready after %d attempts; continuing anyway", self.attempts)
        return False
