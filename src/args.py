"""Argument parsing functionality for fpack."""

import argparse

from constants import Constants, Goals


def _common_parser():
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="YAML or JSON configuration file",
                        action="store", type=str)
    common.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    common.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store", type=str)
    common.add_argument("--base-dir",
                        dest="BASE_DIR",
                        help="Project directory relative paths resolve against (default: current directory)",
                        action="store", type=str, default=".")
    common.add_argument("--target-dir",
                        dest="TARGET_DIR",
                        help=f"Build directory (default: {Constants.DEFAULT_BUILD_DIR})",
                        action="store", type=str)
    common.add_argument("--provisioning-dir",
                        dest="PROVISIONING_DIR",
                        help=f"Server directory inside the build directory (default: {Constants.DEFAULT_PROVISION_DIR})",
                        action="store", type=str)

    channels = common.add_argument_group("channels")
    channels.add_argument("--channel",
                          dest="CHANNELS",
                          help="Channel manifest URL or groupId:artifactId[:version]; repeat in priority order",
                          action="append", type=str)
    channels.add_argument("--disable-latest-resolution",
                          dest="DISABLE_LATEST",
                          help="Require requested versions to be accepted by the channel instead of using the latest",
                          action="store_true")
    channels.add_argument("--direct-fallback",
                          dest="DIRECT_FALLBACK",
                          help="Let channels serve requested versions of artifacts they have no stream for",
                          action="store_true")
    channels.add_argument("--local-cache",
                          dest="LOCAL_CACHE",
                          help="Local artifact cache (default: ~/.m2/repository)",
                          action="store", type=str)
    channels.add_argument("--repository",
                          dest="REPOSITORIES",
                          help="Maven repository as [id=]url; repeat for several",
                          action="append", type=str)
    channels.add_argument("--offline",
                          dest="OFFLINE",
                          help="Do not contact remote repositories",
                          action="store_true")
    common.add_argument("--galleon-binary",
                        dest="GALLEON_BINARY",
                        help=f"Galleon command line tool (default: {Constants.GALLEON_BINARY})",
                        action="store", type=str)
    return common


def _provision_parser():
    prov = argparse.ArgumentParser(add_help=False)
    group = prov.add_argument_group("provisioning")
    group.add_argument("--feature-pack-location",
                       dest="FEATURE_PACK_LOCATION",
                       help="Single feature-pack location (shorthand for one feature-pack)",
                       action="store", type=str)
    group.add_argument("--feature-pack",
                       dest="FEATURE_PACKS",
                       help="Feature-pack location; repeat for several",
                       action="append", type=str)
    group.add_argument("--layer",
                       dest="LAYERS",
                       help="Layer to include in the default configuration; repeat for several",
                       action="append", type=str)
    group.add_argument("--excluded-layer",
                       dest="EXCLUDED_LAYERS",
                       help="Layer to exclude from the default configuration",
                       action="append", type=str)
    group.add_argument("--provisioning-file",
                       dest="PROVISIONING_FILE",
                       help=f"Provisioning file used when no feature-pack is set (default: {Constants.DEFAULT_PROVISIONING_FILE})",
                       action="store", type=str)
    group.add_argument("--plugin-option",
                       dest="PLUGIN_OPTIONS",
                       help="Provisioning option as name=value; repeat for several",
                       action="append", type=str)
    group.add_argument("--no-record-state",
                       dest="NO_RECORD_STATE",
                       help="Do not keep the engine's provisioning state in the server",
                       action="store_true")
    return prov


def _package_parser():
    pkg = argparse.ArgumentParser(add_help=False)
    group = pkg.add_argument_group("deployment")
    group.add_argument("--filename",
                       dest="FILENAME",
                       help="Deployment file name inside the build directory",
                       action="store", type=str)
    group.add_argument("--name",
                       dest="NAME",
                       help="Deployment name",
                       action="store", type=str)
    group.add_argument("--runtime-name",
                       dest="RUNTIME_NAME",
                       help="Deployment runtime name",
                       action="store", type=str)
    group.add_argument("--server-group",
                       dest="SERVER_GROUPS",
                       help="Server group to deploy to (managed domain); repeat for several",
                       action="append", type=str)
    group.add_argument("--config-name",
                       dest="CONFIG_NAME",
                       help=f"Server configuration to deploy into (default: {Constants.STANDALONE_XML})",
                       action="store", type=str)
    group.add_argument("--extra-content-dir",
                       dest="EXTRA_CONTENT_DIRS",
                       help="Directory copied over the provisioned server; repeat for several",
                       action="append", type=str)
    group.add_argument("--artifact-id",
                       dest="ARTIFACT_ID",
                       help="Application artifact id (names the image and the default deployment)",
                       action="store", type=str)
    group.add_argument("--skip-deployment",
                       dest="SKIP_DEPLOYMENT",
                       help="Provision and copy content without deploying",
                       action="store_true")
    return pkg


def _image_parser():
    img = argparse.ArgumentParser(add_help=False)
    group = img.add_argument_group("image")
    group.add_argument("--image-name", dest="IMAGE_NAME", help="Image name (default: artifact id)",
                       action="store", type=str)
    group.add_argument("--image-group", dest="IMAGE_GROUP", help="Image group",
                       action="store", type=str)
    group.add_argument("--image-tag", dest="IMAGE_TAG", help="Image tag (default: latest)",
                       action="store", type=str)
    group.add_argument("--registry", dest="REGISTRY", help="Container registry",
                       action="store", type=str)
    group.add_argument("--registry-user", dest="REGISTRY_USER",
                       help=f"Registry user; the password is read from {Constants.ENV_REGISTRY_PASSWORD}",
                       action="store", type=str)
    group.add_argument("--jdk", dest="JDK", help="Runtime JDK of the base image",
                       action="store", type=str, choices=sorted(Constants.RUNTIME_IMAGES))
    group.add_argument("--push", dest="PUSH", help="Push the image after building it",
                       action="store_true")
    group.add_argument("--no-build", dest="NO_BUILD", help="Skip the image build",
                       action="store_true")
    return img


def build_parser():
    """Build the top-level parser with one sub-command per goal."""
    parser = argparse.ArgumentParser(
        prog="fpack",
        description="fpack - provision, package and containerize servers from feature packs",
        add_help=True,
    )
    common = _common_parser()
    prov = _provision_parser()
    pkg = _package_parser()
    img = _image_parser()
    sub = parser.add_subparsers(dest="GOAL", metavar="GOAL", required=True)
    sub.add_parser(Goals.PROVISION.value, parents=[common, prov],
                   help="Provision a server from feature packs")
    sub.add_parser(Goals.PACKAGE.value, parents=[common, prov, pkg],
                   help="Provision a server, copy extra content and deploy the application")
    sub.add_parser(Goals.IMAGE.value, parents=[common, prov, pkg, img],
                   help="Package the server and build an application image")
    sub.add_parser(Goals.UPDATE.value, parents=[common],
                   help="Re-provision an existing server with the configured channels")
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
