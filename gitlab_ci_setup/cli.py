import argparse
import sys
import time
from typing import List

from gitlab_ci_setup.config import DEFAULT_CONFIG_PATH, load_config
from gitlab_ci_setup.errors import ConfigError, UsageError
from gitlab_ci_setup.gitlab_client import GitlabClient
from gitlab_ci_setup.logging_config import set_verbose
from gitlab_ci_setup.orchestrator import OPERATIONS, Orchestrator

METHOD_HELP = (
    "Specify method, available methods:\n"
    "  > -m setupci --id PROJECT_ID\n"
    "  > -m variables --id PROJECT_ID\n"
    "  > -m runner --id PROJECT_ID\n"
    "  > -m create --name PROJECT_NAME --namespace-id PROJECT_NAMESPACE\n"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitlab-ci-setup",
        description="Bootstrap CI variables and shared runners on GitLab projects.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-m", "--method", choices=OPERATIONS, help=METHOD_HELP)
    parser.add_argument("--id", dest="project_id", help="Specify project id")
    parser.add_argument("--name", help="Specify project name")
    parser.add_argument("--namespace-id", type=int, help="Specify project namespace id")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to JSON or YAML config")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _check_params(args: argparse.Namespace) -> None:
    if args.method == "create":
        if not (args.name or "").strip() or args.namespace_id is None:
            raise UsageError("create requires --name and --namespace-id")
    elif not (args.project_id or "").strip():
        raise UsageError(f"{args.method} requires --id")


def _usage_error(parser: argparse.ArgumentParser, error: UsageError) -> int:
    parser.print_usage(sys.stderr)
    print(f"ERROR: {error}", file=sys.stderr)
    return 2


def run(argv: List[str] = None, client=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.method:
        parser.print_help()
        return 0

    try:
        _check_params(args)
    except UsageError as e:
        return _usage_error(parser, e)

    set_verbose(args.verbose)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    orchestrator = Orchestrator(client or GitlabClient.from_config(config), config, progress=not args.no_progress)

    started_at = time.monotonic()
    try:
        res = orchestrator.run(
            args.method,
            project_id=args.project_id,
            name=args.name,
            namespace_id=args.namespace_id,
        )
    except UsageError as e:
        return _usage_error(parser, e)
    finally:
        print(f"processed in {time.monotonic() - started_at:.3f}s")

    if res.success:
        return 0
    for e in res.to_dict().get("errors", []):
        print(f"ERROR: {e}", file=sys.stderr)
    return 1


if __name__ == "__main__":
    raise SystemExit(run())
