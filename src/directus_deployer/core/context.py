"""
Deployment context and configuration classes.

Configuration is loaded once into a StackConfig at startup and passed
explicitly to the declaration builder. A DeploymentContext bundles that
config with the project location and engine credentials for the deployer.

Design Pattern: Dependency Injection
    - All configuration is loaded into StackConfig at startup
    - DeploymentContext wraps config + credentials + paths
    - Context is passed explicitly to the deployer and CLI handlers
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict

from .. import constants as CONSTANTS


@dataclass(frozen=True)
class StackConfig:
    """
    Parsed configuration surface of the deployment.

    Frozen: the config is loaded once per invocation and never mutated.

    Attributes:
        resource_group_name: Name of the Azure resource group ("resourceGroupName")
        image_tag: Container image tag ("version"). Loaded and validated but
            not interpolated into the container image.
        location: Azure region of the resource group ("location")
        db_sku: PostgreSQL flexible server SKU name ("db:sku")
        db_storage_gb: Server storage size in GB ("db:storageGB")
        db_backup_retention_days: Backup retention in days ("db:bucketRetentionDays")
    """

    resource_group_name: str = CONSTANTS.CONFIG_DEFAULTS[CONSTANTS.KEY_RESOURCE_GROUP_NAME]
    image_tag: str = CONSTANTS.CONFIG_DEFAULTS[CONSTANTS.KEY_VERSION]
    location: str = CONSTANTS.CONFIG_DEFAULTS[CONSTANTS.KEY_LOCATION]
    db_sku: str = CONSTANTS.CONFIG_DEFAULTS[CONSTANTS.KEY_DB_SKU]
    db_storage_gb: int = CONSTANTS.CONFIG_DEFAULTS[CONSTANTS.KEY_DB_STORAGE_GB]
    db_backup_retention_days: int = CONSTANTS.CONFIG_DEFAULTS[CONSTANTS.KEY_DB_BACKUP_RETENTION_DAYS]

    @classmethod
    def from_values(cls, values: Dict[str, object]) -> "StackConfig":
        """
        Build a StackConfig from a mapping keyed by configuration key names.

        Args:
            values: e.g. {"resourceGroupName": "test-rg", "db:storageGB": 64}.
                Keys that are absent fall back to their defaults.

        Returns:
            StackConfig instance
        """
        merged = dict(CONSTANTS.CONFIG_DEFAULTS)
        merged.update(values)
        return cls(
            resource_group_name=merged[CONSTANTS.KEY_RESOURCE_GROUP_NAME],
            image_tag=merged[CONSTANTS.KEY_VERSION],
            location=merged[CONSTANTS.KEY_LOCATION],
            db_sku=merged[CONSTANTS.KEY_DB_SKU],
            db_storage_gb=merged[CONSTANTS.KEY_DB_STORAGE_GB],
            db_backup_retention_days=merged[CONSTANTS.KEY_DB_BACKUP_RETENTION_DAYS],
        )

    def as_values(self) -> Dict[str, object]:
        """Return the config keyed by configuration key names."""
        return {
            CONSTANTS.KEY_RESOURCE_GROUP_NAME: self.resource_group_name,
            CONSTANTS.KEY_VERSION: self.image_tag,
            CONSTANTS.KEY_LOCATION: self.location,
            CONSTANTS.KEY_DB_SKU: self.db_sku,
            CONSTANTS.KEY_DB_STORAGE_GB: self.db_storage_gb,
            CONSTANTS.KEY_DB_BACKUP_RETENTION_DAYS: self.db_backup_retention_days,
        }


@dataclass
class DeploymentContext:
    """
    Encapsulates all state needed for a deployment operation.

    Lifecycle:
        1. Created at the start of a CLI invocation
        2. Config and credentials are loaded from the project directory
        3. Passed to the DeclarationDeployer
        4. Garbage collected after the command completes

    Attributes:
        project_path: Directory holding config.json and the .deploy/ workdir
        config: Parsed StackConfig
        credentials: Raw credentials by provider name
            e.g., {"azure": {"azure_client_id": "...", ...}}
    """

    project_path: Path
    config: StackConfig
    credentials: Dict[str, dict] = field(default_factory=dict)

    @property
    def deploy_dir(self) -> Path:
        """Engine working directory (Terraform config, vars, state)."""
        return CONSTANTS.deploy_dir_for(self.project_path)

    def get_deploy_path(self, *subpaths: str) -> Path:
        """
        Get a path within the engine working directory.

        Example:
            >>> context.get_deploy_path("main.tf.json")
            Path("/work/my-stack/.deploy/main.tf.json")
        """
        return self.deploy_dir.joinpath(*subpaths)
