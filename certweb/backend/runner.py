"""Run the certsuite command for a submitted configuration."""

import asyncio
import logging
import shlex
from contextlib import contextmanager
from pathlib import Path

from certweb.backend.log_buffer import LogBuffer
from certweb.errors import RunError, RunInProgressError

logger = logging.getLogger(__name__)


class CertsuiteRunner:
    """Runs certsuite as a subprocess, one run at a time.

    A run is reserved with ``reserve()`` before its configuration file is
    written and released after the process exits, so a second request can
    never rewrite the file under an active run. Output lines are appended
    to ``log_buffer`` as they arrive.
    """

    def __init__(self, command: str, output_folder: str, log_buffer: LogBuffer):
        self.command = command
        self.output_folder = output_folder
        self.log_buffer = log_buffer
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @contextmanager
    def reserve(self):
        """Claim the runner for one request.

        The check and the claim happen without yielding to the event loop.

        Raises:
            RunInProgressError: If another request holds the runner.
        """
        if self._busy:
            raise RunInProgressError("A certsuite run is already in progress")
        self._busy = True
        try:
            yield self
        finally:
            self._busy = False

    def build_args(
        self,
        label_filter: str,
        config_path: str,
        kubeconfig_path: str | None = None,
    ) -> list[str]:
        args = shlex.split(self.command)
        args += [
            f"--label-filter={label_filter}",
            f"--output-dir={self.output_folder}",
            f"--config-file={config_path}",
        ]
        if kubeconfig_path:
            args.append(f"--kubeconfig={kubeconfig_path}")
        return args

    async def run(
        self,
        label_filter: str,
        config_path: str,
        kubeconfig_path: str | None = None,
    ) -> int:
        """Reserve the runner, run certsuite and wait for it to finish."""
        with self.reserve():
            return await self.execute(label_filter, config_path, kubeconfig_path)

    async def execute(
        self,
        label_filter: str,
        config_path: str,
        kubeconfig_path: str | None = None,
    ) -> int:
        """Run certsuite for a caller that already holds the reservation.

        Raises:
            RunError: If the command cannot be started or exits with a
                non-zero status.
        """
        Path(self.output_folder).mkdir(parents=True, exist_ok=True)
        args = self.build_args(label_filter, config_path, kubeconfig_path)
        logger.info(
            "Running certsuite. Labels filter: %s, outputFolder: %s",
            label_filter,
            self.output_folder,
        )
        self.log_buffer.append(f"Running: {shlex.join(args)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            self.log_buffer.append(f"Failed to start certsuite: {e}")
            raise RunError(f"Failed to start certsuite: {e}") from e

        assert process.stdout is not None
        async for raw in process.stdout:
            self.log_buffer.append(raw.decode("utf-8", errors="replace").rstrip("\n"))

        exit_code = await process.wait()
        self.log_buffer.append(f"certsuite exited with code {exit_code}")
        if exit_code != 0:
            raise RunError(f"certsuite exited with code {exit_code}", exit_code=exit_code)
        return exit_code
