import logging
import os
import re
import subprocess
import time
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from rich.console import Console

__all__ = ["console", "SubprocessHandler", "slugify", "strict_slugify", "utc_today"]

logger = logging.getLogger(__name__)

console = Console()

_WHITESPACE_RUN = re.compile(r"\s+")
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9\-]")


def slugify(text: str) -> str:
    """Lowercase ``text`` and turn every whitespace run into a single hyphen."""
    return _WHITESPACE_RUN.sub("-", text.lower())


def strict_slugify(text: str) -> str:
    """Like :func:`slugify`, then drop everything outside ``[a-z0-9-]``."""
    return _NON_SLUG_CHARS.sub("", slugify(text))


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


class SubprocessHandler:
    """Runs external commands and hands back their decoded output.

    Commands are awaited to completion one at a time. No timeout is imposed
    unless one is configured; git and its credential helpers may prompt.
    """

    def __init__(self, cwd: Optional[Union[str, Path]] = None,
                 timeout: Optional[float] = None,
                 max_termination_retries: int = 3,
                 termination_wait: float = 0.5) -> None:
        """Initialize the handler.

        Args:
            cwd: Working directory for every command, defaults to the process cwd.
            timeout: Maximum time in seconds to wait for a command, None waits forever.
            max_termination_retries: Polls after terminate() before kill().
            termination_wait: Seconds between termination polls.
        """
        self.cwd: Optional[str] = str(cwd) if cwd is not None else None
        self.timeout: Optional[float] = timeout
        self.max_termination_retries: int = max_termination_retries
        self.termination_wait: float = termination_wait

    @staticmethod
    def create_env() -> Dict[str, str]:
        """Copy the environment with UTF-8 output and git's pager disabled."""
        env = os.environ.copy()
        env['PYTHONIOENCODING'] = 'utf-8'
        env['GIT_PAGER'] = 'cat'
        return env

    def run_command(self, command: List[str], encoding: str = 'utf-8',
                    errors: str = 'replace') -> Tuple[str, str, int]:
        """Execute a command and return stdout, stderr and the return code.

        Commands run exactly once; undecodable bytes are replaced rather than
        retried, since most git commands here mutate the repository.

        Raises:
            TimeoutError: If a timeout is configured and exceeded.
            FileNotFoundError: If the executable does not exist.
        """
        logger.debug("Running %s", " ".join(command))
        process: Optional[subprocess.Popen[Any]] = None
        try:
            process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
                env=self.create_env(),
                text=True,
                encoding=encoding,
                errors=errors,
            )
            stdout, stderr = process.communicate(timeout=self.timeout)
            return stdout, stderr, process.returncode
        except subprocess.TimeoutExpired:
            self._terminate_process(process)
            raise TimeoutError(f"Command timed out after {self.timeout} seconds: {' '.join(command)}")
        finally:
            self._cleanup_process(process)

    def _terminate_process(self, process: Optional[subprocess.Popen[Any]]) -> None:
        if process is None or process.poll() is not None:
            return

        try:
            process.terminate()
            for _ in range(self.max_termination_retries):
                if process.poll() is not None:
                    return
                time.sleep(self.termination_wait)
            if process.poll() is None:
                process.kill()
        except OSError:
            # Process already gone
            pass

    def _cleanup_process(self, process: Optional[subprocess.Popen[Any]]) -> None:
        if process is None:
            return

        for fd in (process.stdout, process.stderr):
            if fd is not None:
                try:
                    fd.close()
                except OSError:
                    pass

        self._terminate_process(process)
