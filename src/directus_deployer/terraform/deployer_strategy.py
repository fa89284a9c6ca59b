"""
Terraform Deployer Strategy.

Drives one invocation end to end:

    DeclarationDeployer
        ├── build the declaration (pure, generated values from the store)
        ├── render main.tf.json + generated.tfvars.json
        └── terraform init / plan / apply | destroy / output

Every step before the first terraform command is local, so configuration
and graph errors abort the invocation before any external call. Engine
errors (authentication, quota, name collisions) propagate as TerraformError
without retries or compensation.

Usage:
    deployer = DeclarationDeployer(context)
    outputs = deployer.deploy()
"""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

from .. import constants as CONSTANTS
from ..core.config_loader import credentials_to_env
from ..core.context import DeploymentContext
from ..declaration import Deployment, build_declaration
from ..generators import GeneratedValueStore
from ..terraform_runner import TerraformRunner
from .renderer import write_terraform_files

logger = logging.getLogger(__name__)


def mask_outputs(
    outputs: Dict[str, object],
    deployment: Deployment,
    show_secrets: bool = False
) -> Dict[str, object]:
    """
    Replace values of secret outputs with a mask.

    Outputs that the engine returns but the declaration does not export are
    passed through unchanged.
    """
    if show_secrets:
        return dict(outputs)

    secret_names = {o.name for o in deployment.graph.outputs if o.secret}
    return {
        name: CONSTANTS.SECRET_MASK if name in secret_names else value
        for name, value in outputs.items()
    }


class DeclarationDeployer:
    """
    Builds, renders and applies the declaration for one project.

    Attributes:
        context: DeploymentContext with config, credentials and paths
        store: GeneratedValueStore persisted in the engine workdir
    """

    def __init__(
        self,
        context: DeploymentContext,
        runner: Optional[TerraformRunner] = None
    ):
        self.context = context
        self.store = GeneratedValueStore(
            context.get_deploy_path(CONSTANTS.GENERATED_VALUES_FILE)
        )
        self._runner = runner
        self._deployment: Optional[Deployment] = None

    @property
    def runner(self) -> TerraformRunner:
        """Lazy-load Terraform runner (the workdir must exist first)."""
        if self._runner is None:
            self.context.deploy_dir.mkdir(parents=True, exist_ok=True)
            self._runner = TerraformRunner(
                terraform_dir=str(self.context.deploy_dir),
                env=credentials_to_env(self.context.credentials)
            )
        return self._runner

    @property
    def deployment(self) -> Deployment:
        """The declaration, built once per deployer."""
        if self._deployment is None:
            self._deployment = build_declaration(self.context.config, self.store)
        return self._deployment

    def render(self) -> Tuple[Path, Path]:
        """Write the Terraform files for the current declaration."""
        return write_terraform_files(self.deployment, self.context.deploy_dir)

    # =========================================================================
    # Engine Operations
    # =========================================================================

    def preview(self) -> str:
        """
        Render and plan without changing anything.

        Returns:
            Path to the saved plan file
        """
        _, vars_path = self.render()
        self.runner.init()
        return self.runner.plan(var_file=str(vars_path))

    def deploy(self) -> Dict[str, object]:
        """
        Render, plan and apply the declaration.

        Returns:
            Output values reported by the engine (secrets included; mask
            before printing)
        """
        logger.info(f"Deploying stack '{self.context.config.resource_group_name}'...")
        _, vars_path = self.render()
        self.runner.init()
        plan_file = self.runner.plan(var_file=str(vars_path))
        self.runner.apply(plan_file=plan_file)
        outputs = self.runner.output()
        logger.info("✓ Deployment complete")
        return outputs

    def destroy(self) -> None:
        """Tear down every resource the engine manages for this project."""
        logger.info(f"Destroying stack '{self.context.config.resource_group_name}'...")
        _, vars_path = self.render()
        self.runner.init()
        self.runner.destroy(var_file=str(vars_path))
        logger.info("✓ Teardown complete")

    def outputs(self, show_secrets: bool = False) -> Dict[str, object]:
        """Read the current outputs from engine state, masked by default."""
        return mask_outputs(self.runner.output(), self.deployment, show_secrets)
