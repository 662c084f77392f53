import logging
import os
import shlex
import signal
import subprocess
from typing import Protocol


logger = logging.getLogger(__name__)


class RegistrationAction(Protocol):
    def __call__(self, item_id: str) -> bool: ...


class SubprocessRegistrationAction:
    """Runs the external registration command once for an item id.

    Only the exit code is observed; output is logged at debug level.
    """

    def __init__(self, command: str | list[str], *, timeout_seconds: float | None = None) -> None:
        self.argv = shlex.split(command) if isinstance(command, str) else list(command)
        if not self.argv:
            raise ValueError("registration command is empty")
        self.timeout_seconds = timeout_seconds

    def __call__(self, item_id: str) -> bool:
        argv = [*self.argv, item_id]
        try:
            # Own session; a timeout kills the whole process group.
            proc = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                start_new_session=True,
            )
        except OSError as exc:
            logger.error("registration command could not start", extra={"item_id": item_id, "error": str(exc)})
            return False

        try:
            stdout, stderr = proc.communicate(timeout=self.timeout_seconds)
        except subprocess.TimeoutExpired:
            self._kill_group(proc)
            logger.error("registration timed out", extra={"item_id": item_id, "timeout": self.timeout_seconds})
            return False

        if proc.returncode != 0:
            logger.warning(
                "registration failed",
                extra={"item_id": item_id, "returncode": proc.returncode, "stderr": stderr.strip()},
            )
            return False

        logger.debug("registration succeeded", extra={"item_id": item_id, "stdout": stdout.strip()})
        return True

    @staticmethod
    def _kill_group(proc: subprocess.Popen) -> None:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        except PermissionError:
            # Group members owned by another user (sudo).
            logger.warning("could not signal registration process group", extra={"pid": proc.pid})
            proc.kill()
        proc.wait()
        for stream in (proc.stdout, proc.stderr):
            if stream is not None:
                stream.close()
