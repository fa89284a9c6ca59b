"""
Terraform JSON Renderer.

This module converts a validated Deployment into Terraform's JSON
configuration syntax (main.tf.json) plus a variables file
(generated.tfvars.json) that can be passed to terraform plan/apply.

Mapping:
    - Cloud resources become azurerm_* resources. Property names are
      translated from the declaration's shape (storage.storageSizeGB, ...)
      to the azurerm provider's arguments (storage_mb, ...).
    - Generated resources (random login/password) become input variables.
      Their values only ever go to the tfvars file, never into main.tf.json.
    - Ref values become Terraform interpolations.
    - Parents become explicit depends_on entries.
    - Exported outputs become Terraform outputs; secret ones are marked
      sensitive.

Usage:
    from directus_deployer.terraform.renderer import write_terraform_files

    config_path, vars_path = write_terraform_files(deployment, deploy_dir)
"""

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable, Dict, Tuple

from .. import constants as CONSTANTS
from ..core.exceptions import DeploymentError
from ..core.graph import Ref, ResourceDeclaration, reveal
from ..core.registry import GeneratorRegistry
from ..declaration import (
    CONTAINER_APP_TYPE,
    DATABASE_TYPE,
    DB_SERVER_TYPE,
    MANAGED_ENVIRONMENT_TYPE,
    RESOURCE_GROUP_TYPE,
    Deployment,
)
from ..util import write_private_json

logger = logging.getLogger(__name__)

# Declaration type -> azurerm resource type
TERRAFORM_TYPES = {
    RESOURCE_GROUP_TYPE: "azurerm_resource_group",
    DB_SERVER_TYPE: "azurerm_postgresql_flexible_server",
    DATABASE_TYPE: "azurerm_postgresql_flexible_server_database",
    MANAGED_ENVIRONMENT_TYPE: "azurerm_container_app_environment",
    CONTAINER_APP_TYPE: "azurerm_container_app",
}

# Declaration output attribute -> azurerm attribute
TERRAFORM_ATTRIBUTES = {
    "name": "name",
    "location": "location",
    "id": "id",
    "fullyQualifiedDomainName": "fqdn",
}

# azurerm encodes the tier in the SKU name: "B_Standard_B1ms"
SKU_TIER_PREFIXES = {
    "Burstable": "B",
    "GeneralPurpose": "GP",
    "MemoryOptimized": "MO",
}


def terraform_name(logical_name: str) -> str:
    """Terraform identifier for a logical name ("db-login" -> "db_login")."""
    return re.sub(r"[^a-zA-Z0-9_]", "_", logical_name)


def variable_name(resource: ResourceDeclaration, attribute: str) -> str:
    return f"{terraform_name(resource.name)}_{attribute}"


def container_secret_name(name: str) -> str:
    """
    Container App secret names are lowercase with dashes.

    Example:
        >>> container_secret_name("dbPassword")
        "db-password"
    """
    return re.sub(r"(?<!^)(?=[A-Z])", "-", name).lower()


class _RefResolver:
    """Turns Refs into Terraform interpolation strings for one deployment."""

    def __init__(self, deployment: Deployment):
        self._graph = deployment.graph

    def is_generated(self, resource: ResourceDeclaration) -> bool:
        return GeneratorRegistry.is_registered(resource.type)

    def address(self, resource: ResourceDeclaration) -> str:
        if resource.type not in TERRAFORM_TYPES:
            raise DeploymentError(
                f"No Terraform mapping for resource type '{resource.type}'",
                resource=resource.name
            )
        return f"{TERRAFORM_TYPES[resource.type]}.{terraform_name(resource.name)}"

    def expression(self, ref: Ref) -> str:
        target = self._graph.get(ref.resource)
        if self.is_generated(target):
            return f"${{var.{variable_name(target, ref.attribute)}}}"
        if ref.attribute not in TERRAFORM_ATTRIBUTES:
            raise DeploymentError(
                f"No Terraform attribute for '{ref.attribute}'",
                resource=ref.resource
            )
        return f"${{{self.address(target)}.{TERRAFORM_ATTRIBUTES[ref.attribute]}}}"

    def value(self, value: Any) -> Any:
        if isinstance(value, Ref):
            return self.expression(value)
        return value


# ==========================================
# Per-type translators
# ==========================================

def _resource_group(props: dict, resolve: _RefResolver) -> dict:
    return {
        "name": resolve.value(props["resourceGroupName"]),
        "location": resolve.value(props["location"]),
    }


def _db_server(props: dict, resolve: _RefResolver) -> dict:
    sku = props["sku"]
    tier = sku["tier"]
    if tier not in SKU_TIER_PREFIXES:
        raise DeploymentError(f"Unsupported database SKU tier '{tier}'")

    body = {
        "name": resolve.value(props["serverName"]),
        "resource_group_name": resolve.value(props["resourceGroupName"]),
        "location": resolve.value(props["location"]),
        "version": props["version"],
        "sku_name": f"{SKU_TIER_PREFIXES[tier]}_{sku['name']}",
        "storage_mb": props["storage"]["storageSizeGB"] * 1024,
        "administrator_login": resolve.value(props["administratorLogin"]),
        "administrator_password": resolve.value(props["administratorLoginPassword"]),
        "backup_retention_days": props["backup"]["backupRetentionDays"],
        "geo_redundant_backup_enabled": props["backup"]["geoRedundantBackup"] == "Enabled",
    }

    ha_mode = props.get("highAvailability", {}).get("mode", "Disabled")
    if ha_mode != "Disabled":
        body["high_availability"] = {"mode": ha_mode}
    return body


def _database(props: dict, resolve: _RefResolver) -> dict:
    server_ref = props["serverName"]
    return {
        "name": resolve.value(props["databaseName"]),
        # azurerm addresses the server by id rather than name
        "server_id": resolve.expression(Ref(server_ref.resource, "id")),
    }


def _managed_environment(props: dict, resolve: _RefResolver) -> dict:
    return {
        "name": resolve.value(props["environmentName"]),
        "resource_group_name": resolve.value(props["resourceGroupName"]),
        "location": resolve.value(props["location"]),
        "zone_redundancy_enabled": props.get("zoneRedundant", False),
    }


def _container_app(props: dict, resolve: _RefResolver) -> dict:
    secrets = [
        {
            "name": container_secret_name(secret["name"]),
            "value": resolve.value(secret["value"]),
        }
        for secret in props.get("configuration", {}).get("secrets", [])
    ]
    containers = [
        {
            "name": container["name"],
            "image": container["image"],
            "cpu": container["resources"]["cpu"],
            "memory": container["resources"]["memory"],
        }
        for container in props["template"]["containers"]
    ]

    body = {
        "name": resolve.value(props["containerAppName"]),
        "resource_group_name": resolve.value(props["resourceGroupName"]),
        "container_app_environment_id": resolve.value(props["environmentId"]),
        "revision_mode": "Single",
        "template": {"container": containers},
    }
    if secrets:
        body["secret"] = secrets
    return body


TRANSLATORS: Dict[str, Callable[[dict, _RefResolver], dict]] = {
    RESOURCE_GROUP_TYPE: _resource_group,
    DB_SERVER_TYPE: _db_server,
    DATABASE_TYPE: _database,
    MANAGED_ENVIRONMENT_TYPE: _managed_environment,
    CONTAINER_APP_TYPE: _container_app,
}


# ==========================================
# Public API
# ==========================================

def generate_terraform_config(deployment: Deployment) -> dict:
    """
    Render the deployment as a Terraform JSON configuration.

    Resources are emitted in the deployment's topological order.

    Args:
        deployment: A Deployment returned by build_declaration()

    Returns:
        Dictionary ready to be written as main.tf.json

    Raises:
        DeploymentError: If a resource type or attribute has no mapping
    """
    resolve = _RefResolver(deployment)
    graph = deployment.graph

    variables: Dict[str, dict] = {}
    resources: Dict[str, Dict[str, dict]] = {}

    for name in deployment.order:
        resource = graph.get(name)

        if resolve.is_generated(resource):
            generator = GeneratorRegistry.get(resource.type)
            variables[variable_name(resource, generator.output_attribute)] = {
                "type": "string",
                "sensitive": generator.secret,
            }
            continue

        if resource.type not in TRANSLATORS:
            raise DeploymentError(
                f"No Terraform mapping for resource type '{resource.type}'",
                resource=resource.name
            )

        body = TRANSLATORS[resource.type](resource.properties, resolve)
        if resource.parent is not None:
            parent = graph.get(resource.parent)
            if not resolve.is_generated(parent):
                body["depends_on"] = [resolve.address(parent)]

        tf_type = TERRAFORM_TYPES[resource.type]
        resources.setdefault(tf_type, {})[terraform_name(resource.name)] = body

    outputs = {}
    for output in graph.outputs:
        entry = {"value": resolve.expression(output.value)}
        if output.secret:
            entry["sensitive"] = True
        outputs[output.name] = entry

    config = {
        "terraform": {
            "required_providers": {
                "azurerm": {
                    "source": CONSTANTS.AZURERM_PROVIDER_SOURCE,
                    "version": CONSTANTS.AZURERM_PROVIDER_VERSION,
                },
            },
        },
        "provider": {
            "azurerm": {"features": {}},
        },
        "resource": resources,
        "output": outputs,
    }
    if variables:
        config["variable"] = variables
    return config


def generate_tfvars(deployment: Deployment) -> dict:
    """
    Collect the values of generated resources as Terraform variables.

    Returns:
        Dictionary of plain values ready to be written as a tfvars.json file.
        Contains secrets; never log it.
    """
    tfvars = {}
    for resource in deployment.generated_resources:
        generator = GeneratorRegistry.get(resource.type)
        attribute = generator.output_attribute
        tfvars[variable_name(resource, attribute)] = reveal(resource.outputs[attribute])
    return tfvars


def write_terraform_files(deployment: Deployment, deploy_dir: Path) -> Tuple[Path, Path]:
    """
    Write main.tf.json and generated.tfvars.json into the engine workdir.

    Args:
        deployment: A Deployment returned by build_declaration()
        deploy_dir: Engine working directory (created if missing)

    Returns:
        (config_path, vars_path)
    """
    deploy_dir = Path(deploy_dir)
    deploy_dir.mkdir(parents=True, exist_ok=True)

    config_path = deploy_dir / CONSTANTS.TERRAFORM_CONFIG_FILE
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(generate_terraform_config(deployment), f, indent=2)

    vars_path = deploy_dir / CONSTANTS.TERRAFORM_VARS_FILE
    write_private_json(vars_path, generate_tfvars(deployment))

    logger.info(f"✓ Rendered Terraform configuration: {config_path}")
    return config_path, vars_path
