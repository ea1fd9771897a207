"""
Trust-gated execution of contribution lifecycle scripts.

Platforms and tools may ship a post-install or pre-uninstall script. At most
one script runs per hook. Archives often wrap their payload in a single
top-level directory, so when a folder has no script but exactly one
subdirectory the search continues inside it.

Scripts from untrusted packages are skipped unless the caller forces
execution with ``trust_all``.
"""

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

from contribkit.core.exceptions import ScriptExecutionError
from contribkit.core.filesystem import is_executable_file, list_subdirectories
from contribkit.core.platform import ScriptDiscovery

logger = logging.getLogger(__name__)

MAX_SCRIPT_SEARCH_DEPTH = 10

ScriptFinder = Callable[[Path], List[Path]]


class ScriptRunner:
    """
    Finds and runs lifecycle scripts.

    Example:
        >>> runner = ScriptRunner()
        >>> runner.run_post_install(Path("tools/avrdude/6.3.0"), True, False)
    """

    def __init__(
        self,
        discovery: Optional[ScriptDiscovery] = None,
        timeout: Optional[int] = None,
    ):
        """
        Args:
            discovery: Script discovery collaborator (host default if None)
            timeout: Optional limit in seconds for one script run
        """
        self.discovery = discovery or ScriptDiscovery()
        self.timeout = timeout

    def run_post_install(
        self, folder: Path, trusted: bool, trust_all: bool
    ) -> Optional[Path]:
        """Run the post-install script found under folder, if any."""
        return self._find_and_run(
            folder, self.discovery.post_install_scripts, trusted, trust_all
        )

    def run_pre_uninstall(
        self, folder: Path, trusted: bool, trust_all: bool
    ) -> Optional[Path]:
        """Run the pre-uninstall script found under folder, if any."""
        return self._find_and_run(
            folder, self.discovery.pre_uninstall_scripts, trusted, trust_all
        )

    def find_script(self, folder: Path, finder: ScriptFinder) -> Optional[Path]:
        """
        Locate the script a hook would run.

        Returns:
            First executable candidate, or None when the search stops
        """
        current = Path(folder)
        for _ in range(MAX_SCRIPT_SEARCH_DEPTH):
            scripts = [s for s in finder(current) if is_executable_file(s)]
            if scripts:
                return scripts[0]

            subfolders = list_subdirectories(current)
            if len(subfolders) != 1:
                return None
            current = subfolders[0]

        logger.debug(f"Script search depth limit reached under {folder}")
        return None

    def _find_and_run(
        self, folder: Path, finder: ScriptFinder, trusted: bool, trust_all: bool
    ) -> Optional[Path]:
        """
        Returns:
            The script that ran, or None if nothing ran

        Raises:
            ScriptExecutionError: If the script fails
        """
        if folder is None or not Path(folder).is_dir():
            return None

        script = self.find_script(folder, finder)
        if script is None:
            return None

        if not trusted and not trust_all:
            logger.warning(
                "Warning: non trusted contribution, skipping script execution "
                f"({script})"
            )
            return None

        if trust_all:
            logger.warning(f"Warning: forced untrusted script execution ({script})")

        self.execute(script)
        return script

    def execute(self, script: Path) -> None:
        """
        Run a script from its own folder, capturing its output.

        Raises:
            ScriptExecutionError: On a non-zero exit code or launch failure
        """
        logger.info(f"Running script: {script}")
        try:
            result = subprocess.run(
                [str(script)],
                cwd=script.parent,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise ScriptExecutionError(str(script), stderr=str(e)) from e

        if result.stdout:
            logger.debug(f"{script.name} stdout:\n{result.stdout}")
        if result.stderr:
            logger.debug(f"{script.name} stderr:\n{result.stderr}")

        if result.returncode != 0:
            logger.error(f"Script {script} exited with code {result.returncode}")
            raise ScriptExecutionError(str(script), result.returncode, result.stderr)


__all__ = ["ScriptRunner", "MAX_SCRIPT_SEARCH_DEPTH"]
