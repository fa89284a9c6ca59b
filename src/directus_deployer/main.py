"""
Directus Deployer - CLI Entry Point.

Usage:
    directus-deploy [--project PATH] [--debug] graph [--show-secrets]
    directus-deploy [--project PATH] [--debug] preview
    directus-deploy [--project PATH] [--debug] up [--show-secrets]
    directus-deploy [--project PATH] [--debug] destroy
    directus-deploy [--project PATH] [--debug] outputs [--show-secrets]
    directus-deploy [--project PATH] [--debug] reset-generated [name]

The project directory holds the optional config.json and
config_credentials_azure.json; engine files go to <project>/.deploy/.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from .core.config_loader import load_credentials, load_stack_config
from .core.context import DeploymentContext
from .core.exceptions import DeploymentError
from .logger import logger, print_stack_trace, setup_logger
from .terraform.deployer_strategy import DeclarationDeployer, mask_outputs
from .terraform_runner import TerraformError


# ==========================================
# Context Management
# ==========================================

def create_context(project_path: Path) -> DeploymentContext:
    """
    Load configuration and credentials for a project directory.

    Raises:
        ConfigurationError: If any configuration input is invalid
    """
    project_path = Path(project_path)
    config = load_stack_config(project_path)
    credentials = load_credentials(project_path)
    return DeploymentContext(
        project_path=project_path,
        config=config,
        credentials=credentials,
    )


def _print_json(data) -> None:
    print(json.dumps(data, indent=2))


# ==========================================
# Command Handlers
# ==========================================

def handle_graph(deployer: DeclarationDeployer, args) -> None:
    """Print the resolved declaration."""
    deployment = deployer.deployment
    data = deployment.graph.to_dict(show_secrets=args.show_secrets)
    data["order"] = deployment.order
    data["config"] = deployment.config.as_values()
    _print_json(data)


def handle_preview(deployer: DeclarationDeployer, args) -> None:
    plan_file = deployer.preview()
    print(f"Plan saved to {plan_file}")


def handle_up(deployer: DeclarationDeployer, args) -> None:
    outputs = deployer.deploy()
    _print_json(mask_outputs(outputs, deployer.deployment, args.show_secrets))


def handle_destroy(deployer: DeclarationDeployer, args) -> None:
    deployer.destroy()


def handle_outputs(deployer: DeclarationDeployer, args) -> None:
    _print_json(deployer.outputs(show_secrets=args.show_secrets))


def handle_reset_generated(deployer: DeclarationDeployer, args) -> None:
    try:
        removed = deployer.store.reset(args.name)
    except KeyError as e:
        raise DeploymentError(e.args[0]) from e
    if removed:
        print(f"Reset: {', '.join(removed)}")
    else:
        print("No generated values stored.")


HANDLERS = {
    "graph": handle_graph,
    "preview": handle_preview,
    "up": handle_up,
    "destroy": handle_destroy,
    "outputs": handle_outputs,
    "reset-generated": handle_reset_generated,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="directus-deploy",
        description="Deploy Directus with PostgreSQL on Azure Container Apps"
    )
    parser.add_argument(
        "--project",
        default=".",
        help="Project directory with config.json (default: current directory)"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    graph = commands.add_parser("graph", help="Print the resource graph")
    graph.add_argument("--show-secrets", action="store_true")

    commands.add_parser("preview", help="Render and plan without applying")

    up = commands.add_parser("up", help="Render, plan and apply")
    up.add_argument("--show-secrets", action="store_true")

    commands.add_parser("destroy", help="Destroy all deployed resources")

    outputs = commands.add_parser("outputs", help="Show exported outputs")
    outputs.add_argument("--show-secrets", action="store_true")

    reset = commands.add_parser(
        "reset-generated",
        help="Forget generated credentials (forces server replacement on next apply)"
    )
    reset.add_argument("name", nargs="?", help="Logical name, e.g. db-password (default: all)")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logger(debug_mode=args.debug)

    try:
        context = create_context(Path(args.project))
        deployer = DeclarationDeployer(context)
        HANDLERS[args.command](deployer, args)
    except (DeploymentError, TerraformError, OSError) as e:
        # OSError: the project or .deploy directory is not writable
        logger.error(f"Error: {e}")
        print_stack_trace()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
