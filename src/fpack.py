"""fpack: provision, package and containerize servers from feature packs.

Entry point of the command line tool. Library code raises typed errors;
this module turns them into log records and exit codes.
"""

import logging
import os
import sys
from pathlib import Path

from args import parse_args
from channels import ChannelOverlayResolver
from cli_config import (
    channels_config,
    image_info,
    load_config_file,
    packaging_options,
    provisioning_spec,
)
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes, Goals
from content import copy_extra_content
from deployment import deploy
from errors import (
    ChannelLoadFailure,
    ConfigurationError,
    DeploymentPrecondition,
    ExternalToolUnavailable,
    FpackError,
    InvalidPlanSpec,
    ProvisioningEngineFailure,
    RecorderClosed,
    UnresolvedArtifact,
)
from image import build_application_image
from provisioning import GalleonCliEngine, ProvisioningPlanBuilder, ServerProvisioner

logger = logging.getLogger(__name__)

_EXIT_CODES = (
    ((ConfigurationError, InvalidPlanSpec), ExitCodes.CONFIG_ERROR),
    ((ChannelLoadFailure, UnresolvedArtifact), ExitCodes.CONNECTION_ERROR),
    ((ProvisioningEngineFailure, RecorderClosed, ExternalToolUnavailable), ExitCodes.PROVISIONING_ERROR),
    ((DeploymentPrecondition,), ExitCodes.FILE_ERROR),
)


def exit_code_for(exc: FpackError) -> ExitCodes:
    for types, code in _EXIT_CODES:
        if isinstance(exc, types):
            return code
    return ExitCodes.PROVISIONING_ERROR


def _setup_logging(args) -> None:
    # CLI --loglevel wins over the environment
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging()
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)


def _layout(args, data):
    base_dir = Path(args.BASE_DIR)
    build_dir = base_dir / (args.TARGET_DIR or data.get("target-dir") or Constants.DEFAULT_BUILD_DIR)
    provisioning_dir = args.PROVISIONING_DIR or data.get("provisioning-dir") or Constants.DEFAULT_PROVISION_DIR
    return base_dir, build_dir, provisioning_dir


def _package(args, data, base_dir: Path, build_dir: Path, home: Path, image_optional: bool):
    options = packaging_options(args, data)
    copy_extra_content(options.extra_content_dirs, home, base_dir)
    artifact_id = options.artifact_id or base_dir.resolve().name
    if not options.skip_deployment:
        filename = options.filename or f"{artifact_id}.war"
        deploy(home, build_dir / filename, options.name, options.runtime_name,
               options.server_groups, options.config_name)
    if args.GOAL == Goals.IMAGE.value or image_optional:
        info = image_info(args, data)
        build_application_image(info, artifact_id, build_dir, server_dir=home.name,
                                mandatory=args.GOAL == Goals.IMAGE.value)


def run(argv=None) -> int:
    """Run one goal and return the process exit code."""
    args = parse_args(argv)
    _setup_logging(args)
    if is_debug_enabled(logger):
        logger.debug("CLI start", extra=extra_context(
            event="function_entry", component="cli", action="main", target=args.GOAL
        ))
    try:
        data = load_config_file(args.CONFIG)
        if data.get("skip"):
            logger.info("Goal %s skipped by configuration", args.GOAL)
            return ExitCodes.SUCCESS.value
        base_dir, build_dir, provisioning_dir = _layout(args, data)
        home = build_dir / provisioning_dir
        offline = bool(args.OFFLINE or data.get("offline", False))
        plan = None
        if args.GOAL != Goals.UPDATE.value:
            plan = ProvisioningPlanBuilder().build(provisioning_spec(args, data, base_dir))

        resolver = ChannelOverlayResolver.from_config(channels_config(args, data), build_dir,
                                                      base_dir=base_dir, offline=offline)
        record_state = not getattr(args, "NO_RECORD_STATE", False) and bool(data.get("record-state", True))
        engine = GalleonCliEngine(args.GALLEON_BINARY or data.get("galleon-binary"), record_state=record_state)
        provisioner = ServerProvisioner(engine, resolver)

        if args.GOAL == Goals.UPDATE.value:
            provisioner.update(home, options=data.get("galleon-options"))
        else:
            provisioner.provision(plan, home)
            if args.GOAL in (Goals.PACKAGE.value, Goals.IMAGE.value):
                _package(args, data, base_dir, build_dir, home, image_optional="image" in data)
    except FpackError as exc:
        logger.error("%s", exc)
        return exit_code_for(exc).value
    logger.info("Goal %s finished", args.GOAL)
    return ExitCodes.SUCCESS.value


def main():
    """Main function of the program."""
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
