"""Azure CLI subprocess client."""
import asyncio
import json
import re
import shutil
import subprocess
from typing import Any, Optional

from toolkit_auth.config import get_logger, settings
from toolkit_auth.models.errors import AuthenticationFailureError, CommandError
from toolkit_auth.models.schemas import AzureCliSubscription

logger = get_logger(__name__)


def _parse_version(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in re.findall(r"\d+", version)[:3])


class AzureCliClient:
    """Runs ``az`` commands and parses their JSON output."""

    def __init__(
        self,
        command: Optional[str] = None,
        timeout: Optional[int] = None,
        min_version: Optional[str] = None,
    ) -> None:
        """Initialize the client."""
        self._command = command or settings.auth.az_command
        self._timeout = timeout or settings.auth.az_timeout
        self._min_version = min_version or settings.auth.az_min_version

    def _resolve_executable(self) -> str:
        # On Windows the CLI is az.cmd, which subprocess cannot find without a shell
        executable = shutil.which(self._command)
        if executable is None:
            raise CommandError(
                "Azure CLI is not installed, see https://aka.ms/azure-cli-install.",
                {"command": self._command},
                not_installed=True,
            )
        return executable

    def _run(self, args: list[str]) -> str:
        executable = self._resolve_executable()
        logger.debug(f"Executing: az {' '.join(args)}")
        try:
            result = subprocess.run(
                [executable, *args],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f"Azure CLI did not respond within {self._timeout} seconds.",
                {"args": args},
            ) from e
        except OSError as e:
            raise CommandError(f"Cannot execute Azure CLI: {e}", {"args": args}) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise CommandError(
                f"Azure CLI command 'az {' '.join(args)}' failed: {stderr}",
                {"args": args, "returncode": result.returncode, "stderr": stderr},
            )
        return result.stdout

    async def run_json(self, *args: str) -> Any:
        """
        Run an ``az`` command with ``--output json`` and parse stdout.

        Raises:
            CommandError: If the CLI is missing, fails or prints invalid JSON.
        """
        argv = [*args, "--output", "json"]
        stdout = await asyncio.to_thread(self._run, argv)
        try:
            return json.loads(stdout)
        except json.JSONDecodeError as e:
            raise CommandError(
                f"Cannot parse output of 'az {' '.join(argv)}' as JSON.",
                {"args": argv},
            ) from e

    async def version(self) -> str:
        """Installed CLI version, e.g. ``2.53.0``."""
        data = await self.run_json("version")
        return str(data.get("azure-cli", ""))

    async def ensure_minimum_version(self) -> None:
        """
        Check the installed CLI against the configured minimum.

        Raises:
            AuthenticationFailureError: If the CLI is older than required.
        """
        installed = await self.version()
        if not installed or _parse_version(installed) < _parse_version(self._min_version):
            raise AuthenticationFailureError(
                f"Azure CLI version '{installed or 'unknown'}' is too old, "
                f"please upgrade to {self._min_version} or newer.",
                {"installed": installed, "required": self._min_version},
            )

    async def get_access_token(self) -> dict[str, Any]:
        """Raw ``az account get-access-token`` result for the current session."""
        return await self.run_json("account", "get-access-token")

    async def list_subscriptions(self) -> list[AzureCliSubscription]:
        """Subscriptions known to the CLI, in listing order."""
        data = await self.run_json("account", "list")
        return [AzureCliSubscription.model_validate(item) for item in data or []]
