"""Application container image generation, build and push."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from common.exec_util import exec_command, exec_silent_with_timeout
from constants import Constants
from errors import ExternalToolUnavailable

logger = logging.getLogger(__name__)


@dataclass
class ApplicationImageInfo:
    """Naming and registry settings of the application image."""
    build: bool = True
    push: bool = False
    jdk: str = Constants.DEFAULT_IMAGE_JDK
    group: Optional[str] = None
    name: Optional[str] = None
    tag: str = Constants.DEFAULT_IMAGE_TAG
    registry: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None

    @classmethod
    def from_dict(cls, data) -> "ApplicationImageInfo":
        data = data or {}
        return cls(
            build=bool(data.get("build", True)),
            push=bool(data.get("push", False)),
            jdk=str(data.get("jdk-version", data.get("jdk", Constants.DEFAULT_IMAGE_JDK))),
            group=data.get("group"),
            name=data.get("name"),
            tag=str(data.get("tag", Constants.DEFAULT_IMAGE_TAG)),
            registry=data.get("registry"),
            user=data.get("user"),
            password=data.get("password"),
        )

    def application_image_name(self, artifact_id: str) -> str:
        registry = f"{self.registry}/" if self.registry else ""
        group = f"{self.group}/" if self.group else ""
        name = self.name or artifact_id.lower()
        return f"{registry}{group}{name}:{self.tag}"

    def runtime_base_image(self, jdk: Optional[str] = None) -> str:
        return Constants.RUNTIME_IMAGES.get(jdk or self.jdk, Constants.RUNTIME_IMAGES[Constants.DEFAULT_IMAGE_JDK])


def generate_dockerfile(build_dir: Path, runtime_image: str, server_dir: str) -> Path:
    dockerfile = Path(build_dir) / "Dockerfile"
    dockerfile.write_text(
        f"FROM {runtime_image}\n"
        f"COPY --chown=jboss:root {server_dir} $JBOSS_HOME\n"
        "RUN chmod -R ug+rwX $JBOSS_HOME\n",
        encoding="utf-8",
    )
    return dockerfile


class ImageBuilder:
    """Shells out to the container binary to build, log in and push images."""

    def __init__(self, binary: str = Constants.DOCKER_BINARY):
        self.binary = binary

    def is_available(self) -> bool:
        try:
            if not exec_silent_with_timeout([self.binary, "-v"], Constants.DOCKER_CMD_CHECK_TIMEOUT):
                logger.warning("'%s -v' returned an error code. Make sure your %s binary is correct",
                               self.binary, self.binary)
                return False
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("No %s binary found or general error: %s", self.binary, exc)
            return False
        return True

    def build(self, build_dir: Path, image: str) -> bool:
        logger.info("Building application image %s using %s", image, self.binary)
        ok = exec_command([self.binary, "build", "-t", image, "."], cwd=build_dir) == 0
        if ok:
            logger.info("Successfully built application image %s", image)
        return ok

    def login(self, registry: str, user: str, password: str) -> bool:
        logger.info("Logging in %s to container registry %s", user, registry)
        return exec_command([self.binary, "login", "-u", user, "--password-stdin", registry],
                            input_text=password) == 0

    def push(self, image: str) -> bool:
        logger.info("Pushing application image %s", image)
        ok = exec_command([self.binary, "push", image]) == 0
        if ok:
            logger.info("Successfully pushed application image %s", image)
        return ok


def build_application_image(info: ApplicationImageInfo, artifact_id: str, build_dir: Path,
                            server_dir: str = Constants.DEFAULT_PROVISION_DIR,
                            builder: Optional[ImageBuilder] = None,
                            mandatory: bool = True) -> Optional[str]:
    """Generate the Dockerfile, build the image and optionally push it.

    Returns the image name, or None when the build was skipped.

    Raises:
        ExternalToolUnavailable: the container binary is unusable and the
            build was mandatory, or the build, login or push failed.
    """
    if not info.build:
        return None
    builder = builder or ImageBuilder()
    if not builder.is_available():
        message = f"Unable to build container image with {builder.binary}. Please check your installation"
        if mandatory:
            raise ExternalToolUnavailable(message)
        logger.warning("%s; skipping image build", message)
        return None

    runtime_image = info.runtime_base_image()
    generate_dockerfile(build_dir, runtime_image, server_dir)
    logger.info("Base image is %s", runtime_image)
    image = info.application_image_name(artifact_id)
    if not builder.build(build_dir, image):
        raise ExternalToolUnavailable(f"Failed to build application image {image}")

    if info.push:
        if info.user and info.password:
            registry = info.registry or Constants.DEFAULT_REGISTRY
            if not builder.login(registry, info.user, info.password):
                raise ExternalToolUnavailable(f"Failed to login to registry {registry}")
        elif info.user or info.password:
            logger.warning("Registry credentials are incomplete, pushing without login")
        if not builder.push(image):
            raise ExternalToolUnavailable(f"Failed to push application image {image}")
    return image
