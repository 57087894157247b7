"""Deployment of an application archive into a provisioned server via the management CLI."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence

from common.exec_util import exec_command
from constants import Constants
from errors import DeploymentPrecondition, ExternalToolUnavailable

logger = logging.getLogger(__name__)


def is_domain_config(config_name: Optional[str]) -> bool:
    return bool(config_name) and Path(config_name).name == Constants.DOMAIN_XML


def get_deployment_commands(artifact_path, name: Optional[str] = None,
                            runtime_name: Optional[str] = None,
                            server_groups: Optional[Sequence[str]] = None,
                            config_name: str = Constants.STANDALONE_XML) -> List[str]:
    """Return the CLI commands deploying ``artifact_path``.

    Raises:
        DeploymentPrecondition: the archive does not exist, or a managed
            domain deployment was requested without server groups.
    """
    path = Path(artifact_path)
    if is_domain_config(config_name) and not server_groups:
        raise DeploymentPrecondition(
            f"Deploying {path.name} to a managed domain ({config_name}) requires at least one server group"
        )
    if not path.exists():
        raise DeploymentPrecondition(f"The deployment '{path.absolute()}' could not be found.")

    command = f"deploy {path.absolute()}"
    if name:
        command += f" --name={name}"
    if runtime_name:
        command += f" --runtime-name={runtime_name}"
    if server_groups:
        command += f" --server-groups={','.join(server_groups)}"
    return [command]


def wrap_for_offline_execution(commands: Sequence[str], domain: bool = False,
                               config_name: Optional[str] = None) -> List[str]:
    """Bracket ``commands`` with the embed/stop directives of the target mode."""
    if domain:
        config = config_name or Constants.DOMAIN_XML
        return ([f"embed-host-controller --domain-config={config}"]
                + list(commands) + ["stop-embedded-host-controller"])
    config = config_name or Constants.STANDALONE_XML
    return ([f"embed-server --server-config={config}"]
            + list(commands) + ["stop-embedded-server"])


def run_cli_commands(home: Path, commands: Sequence[str]) -> None:
    """Run ``commands`` through the installation's CLI script.

    Raises:
        ExternalToolUnavailable: the CLI script is missing.
        DeploymentPrecondition: the CLI exited with an error.
    """
    script = Path(home) / Constants.JBOSS_CLI_SCRIPT
    if not script.exists():
        raise ExternalToolUnavailable(f"CLI script {script} not found")
    with tempfile.NamedTemporaryFile("w", suffix=".cli", delete=False, encoding="utf-8") as fh:
        fh.write("\n".join(commands) + "\n")
        cli_file = Path(fh.name)
    try:
        code = exec_command([str(script), f"--file={cli_file}"], cwd=Path(home),
                            env={"JBOSS_HOME": str(home)})
    finally:
        cli_file.unlink()
    if code != 0:
        raise DeploymentPrecondition(f"CLI execution in {home} failed with exit code {code}")


def deploy(home: Path, artifact_path, name: Optional[str] = None,
           runtime_name: Optional[str] = None,
           server_groups: Optional[Sequence[str]] = None,
           config_name: str = Constants.STANDALONE_XML) -> List[str]:
    """Deploy into the offline server at ``home`` and return the commands run."""
    commands = get_deployment_commands(artifact_path, name, runtime_name, server_groups, config_name)
    wrapped = wrap_for_offline_execution(commands, domain=is_domain_config(config_name),
                                         config_name=config_name)
    logger.info("Deploying %s to %s", Path(artifact_path).name, home)
    run_cli_commands(home, wrapped)
    return wrapped
