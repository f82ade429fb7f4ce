"""
Command line interface::

    clickonce-version MyApp.csproj --build-id 123456 --update-min-version

Option names of the original ``Set-ProjectFilesClickOnceVersion`` script
(``-Version``, ``-BuildSystemsBuildId``, ...) are accepted as aliases, so existing
build definitions keep working.
"""

import argparse
import os

from clickonce_version import __version__, main_logger, set_verbose
from clickonce_version.config import get_options
from clickonce_version.errors import ClickOnceVersionError
from clickonce_version.project_file import update_project_file
from clickonce_version.version import is_explicit_version

def version_string(value : str) -> str:
    if not is_explicit_version(value):
        raise argparse.ArgumentTypeError(f"expected Major.Minor.Build[.Revision], got {value!r}")
    return value

def build_id(value : str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value!r}")
    return number

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        "clickonce-version",
        description="Update the ClickOnce version of a Visual Studio project file."
    )
    parser.add_argument("project_file", nargs="?", help="Path to the project file (.csproj, .vbproj).")
    parser.add_argument("-ProjectFilePath", dest="project_file_path", metavar="PATH", help=argparse.SUPPRESS)
    parser.add_argument("--version", "-Version", type=version_string, help="Explicit version, Major.Minor.Build[.Revision].")
    revision = parser.add_mutually_exclusive_group()
    revision.add_argument(
        "--build-id", "-BuildSystemsBuildId", type=build_id, metavar="ID",
        help="Ever-increasing build-system id (e.g. the CI run number), spread over Build and Revision."
    )
    revision.add_argument(
        "--increment-revision", "-IncrementProjectFilesRevision", action="store_true",
        help="Increment the ApplicationRevision stored in the project file."
    )
    parser.add_argument(
        "--update-min-version", "-UpdateMinimumRequiredVersionToCurrentVersion", action="store_true",
        help="Also set MinimumRequiredVersion to the new version and force clients to update."
    )
    parser.add_argument("--publish-url", "-PublishUrl", help="New PublishUrl.")
    parser.add_argument("--install-url", "-InstallUrl", help="New InstallUrl.")
    parser.add_argument("--config", help="YAML file with default values for the options above.")
    parser.add_argument("--verbose", action="store_true", help="Show debug output.")
    parser.add_argument("--tool-version", action="version", version=f"%(prog)s {__version__}")
    return parser

def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.project_file and args.project_file_path:
        parser.error("give the project file either as argument or with -ProjectFilePath, not both")
    project_file = args.project_file or args.project_file_path
    if not project_file:
        parser.error("the project file is required")
    if args.verbose:
        set_verbose()

    try:
        if not os.path.isfile(project_file):
            raise FileNotFoundError(f"Project file not found: {project_file}")
        options = get_options(
            project_file,
            args.config,
            version=args.version,
            build_id=args.build_id,
            increment_revision=args.increment_revision,
            update_min_version=args.update_min_version,
            publish_url=args.publish_url,
            install_url=args.install_url
        )
        if not options.has_changes:
            main_logger.warning(
                "Nothing to do: give at least one of --version, --build-id, --increment-revision, "
                "--update-min-version, --publish-url or --install-url. The project file was not changed."
            )
            return 0
        main_logger.debug(f"Updating '{project_file}' with {options}")
        update_project_file(project_file, options)
    except (FileNotFoundError, ClickOnceVersionError) as e:
        main_logger.error(str(e))
        return 1
    return 0
