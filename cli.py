from datetime import timedelta
import argparse
import logging
import os
import sys

from tagdeploy.models.errors import DeployError
from tagdeploy.models.state import AbortReason, DeployState
from tagdeploy.services.config_loader import load_config
from tagdeploy.services.orchestrator import DeploymentOrchestrator
from tagdeploy.services.version_ledger import VersionLedger
from tagdeploy.utils.git_repo import open_repository

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_PARTIAL = 2

ABORT_MESSAGES = {
    AbortReason.DIRTY_TREE: "Aborted: the working tree has uncommitted changes",
    AbortReason.ALREADY_DEPLOYED: "Aborted: already deployed from this commit (use --force to deploy anyway)",
    AbortReason.BUILD_FAILED: "Aborted: build failed",
    AbortReason.PACKAGE_FAILED: "Aborted: packaging failed",
    AbortReason.PUBLISH_FAILED: "Aborted: publishing to Lambda failed",
}


def _say(msg: str) -> None:
    print(msg, file=sys.stderr)


def _non_negative_int(value: str) -> int:
    days = int(value)
    if days < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more, got {days}")
    return days


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    )
    # botocore is chatty at DEBUG
    logging.getLogger("botocore").setLevel(logging.WARNING)


def deploy(args) -> int:
    """
    deploy one function from the config and report how it ended
    """
    try:
        config = load_config(args.config_file)
    except DeployError as e:
        _say(f"Error: {e}")
        return EXIT_ABORTED

    function = config.find(args.function)
    if function is None:
        _say(f"Error: no function named '{args.function}' in {args.config_file}")
        return EXIT_ABORTED

    try:
        orchestrator = DeploymentOrchestrator.from_environment(
            args.repo,
            region=args.region or config.region,
            profile=args.profile,
            min_age=timedelta(days=args.retain_days),
            build_command=config.build_command,
        )
        outcome = orchestrator.run(
            function,
            build=args.build,
            force=args.force,
            keep_artifact=args.keep_artifact,
        )
    except DeployError as e:
        _say(f"Error: {e}")
        return EXIT_ABORTED

    if outcome.state is DeployState.ABORTED:
        _say(ABORT_MESSAGES[outcome.abort_reason])
        _say(f"  {outcome.error}")
        return EXIT_ABORTED

    if outcome.state is DeployState.PARTIALLY_FAILED:
        _say("!" * 72)
        _say("PARTIAL FAILURE - a new version was published but not recorded.")
        _say(str(outcome.error))
        _say("Do not simply re-run the deploy: that would publish another version.")
        _say("!" * 72)
        return EXIT_PARTIAL

    result = outcome.result
    for version in result.deleted_versions:
        _say(f"Removed old version {version}")
    for failure in result.deletion_failures:
        _say(f"Remove failure {failure.version} - {failure.reason}")
    if result.cleanup_error:
        _say(f"Could not clean up old versions: {result.cleanup_error}")
    _say(f"Tag {result.function_name}@{result.new_version}")
    _say(f"New version {result.new_version}")
    return EXIT_OK


def list_markers(args) -> int:
    try:
        ledger = VersionLedger(open_repository(args.repo))
        markers = sorted(ledger.list_markers_for_current_commit(), key=str)
    except DeployError as e:
        _say(f"Error: {e}")
        return EXIT_ABORTED

    if not markers:
        _say("No deployments recorded on HEAD")
    for marker in markers:
        print(f"{marker.function_name}\t{marker.version}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tagdeploy',
        description='Deploy a bundle to AWS Lambda and record each published '
        'version as a "<function>@<version>" git tag on the deployed commit.'
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    subparsers = parser.add_subparsers(
        dest='command',
        help='Available commands'
    )

    deploy_parser = subparsers.add_parser(
        'deploy',
        help='Build, package and publish one function from the config file'
    )
    deploy_parser.add_argument('config_file', help='TOML file with [[functions]] entries')
    deploy_parser.add_argument('function', help='Name of the function to deploy')
    deploy_parser.add_argument('-b', '--build', action='store_true', help='Run the build command first')
    deploy_parser.add_argument(
        '-k',
        '--keep-artifact',
        action='store_true',
        help='Keep the uploaded zip as <function>.zip'
    )
    deploy_parser.add_argument(
        '-f',
        '--force',
        action='store_true',
        help='Deploy even if the current commit already has a tag for the function'
    )
    deploy_parser.add_argument(
        '--retain-days',
        type=_non_negative_int,
        default=0,
        help='Only delete old versions at least this many days old (default: 0, delete all)'
    )
    deploy_parser.add_argument('--region', help='AWS region (default: config, then AWS_REGION, then us-east-1)')
    deploy_parser.add_argument('--profile', help='AWS profile name')
    deploy_parser.add_argument('--repo', default='.', help='Git repository (default: current directory)')
    deploy_parser.set_defaults(func=deploy)

    markers_parser = subparsers.add_parser(
        'markers',
        help='List the deployments recorded on the current commit'
    )
    markers_parser.add_argument('--repo', default='.', help='Git repository (default: current directory)')
    markers_parser.set_defaults(func=list_markers)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    _configure_logging(getattr(args, 'verbose', False))
    sys.exit(args.func(args))


if __name__ == '__main__':
    main()
