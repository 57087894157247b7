"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    PROVISIONING_ERROR = 4
    CONFIG_ERROR = 5


class Goals(Enum):
    """Goals (sub-commands) supported by the program.

    Args:
        Enum (string): Goal names.
    """

    PROVISION = "provision"
    PACKAGE = "package"
    IMAGE = "image"
    UPDATE = "update"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "FPACK_LOG_LEVEL"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_CACHE_TTL_SEC = 300
    DOWNLOAD_CHUNK_SIZE = 64 * 1024

    # Maven repositories
    MAVEN_CENTRAL_ID = "central"
    MAVEN_CENTRAL_URL = "https://repo1.maven.org/maven2/"
    MAVEN_METADATA_FILE = "maven-metadata.xml"
    DEFAULT_LOCAL_REPOSITORY = "~/.m2/repository"
    DEFAULT_EXTENSION = "jar"

    # Channels
    CHANNEL_CLASSIFIER = "channel"
    CHANNEL_EXTENSION = "yaml"
    CHANNEL_SCHEMA_VERSION = "1.0.0"
    CHANNELS_DIR = ".channels"
    CHANNELS_FILE = "channels.yaml"
    DIRECT_CHANNEL_NAME = "direct"
    VERSIONS_RESOLUTION_CACHE = "channels-versions-resolution-cache"

    # Provisioning
    STANDALONE = "standalone"
    STANDALONE_XML = "standalone.xml"
    DOMAIN_XML = "domain.xml"
    OPTIONAL_PACKAGES = "optional-packages"
    PASSIVE_PLUS = "passive+"
    MAVEN_REPO_PLUGIN_OPTION = "jboss-maven-repo"
    DEFAULT_PROVISIONING_FILE = "galleon/provisioning.xml"
    PLUGIN_PROVISIONING_FILE = ".fpack-provisioning.xml"
    GALLEON_STATE_DIR = ".galleon"
    GALLEON_PROVISIONING_FILE = "provisioning.xml"
    PROVISIONING_XML_NS = "urn:jboss:galleon:provisioning:3.0"
    DEFAULT_PROVISION_DIR = "server"
    DEFAULT_BUILD_DIR = "target"
    FEATURE_PACK_EXTENSION = "zip"
    GALLEON_BINARY = "galleon.sh"

    # Deployment
    JBOSS_CLI_SCRIPT = "bin/jboss-cli.sh"

    # Container image
    DOCKER_BINARY = "docker"
    DOCKER_CMD_CHECK_TIMEOUT = 3  # seconds
    DEFAULT_REGISTRY = "docker.io"
    ENV_REGISTRY_PASSWORD = "FPACK_REGISTRY_PASSWORD"
    DEFAULT_IMAGE_JDK = "11"
    DEFAULT_IMAGE_TAG = "latest"
    RUNTIME_IMAGES = {
        "11": "quay.io/wildfly/wildfly-runtime-jdk11:latest",
        "17": "quay.io/wildfly/wildfly-runtime-jdk17:latest",
    }
