"""
Deployment declaration for Directus on Azure.

Builds the desired-state resource graph from a StackConfig:

    azure-resource-group
    ├── directus-db-server  (login: db-login, password: db-password)
    │   └── directus-database
    └── directus-app-environment
        └── directus-container-app  (secret: db-password)

Construction is pure: it reads the config and the generated-value store
and never talks to the engine or to Azure. Creation, diffing and deletion
are inferred by the engine from the rendered graph.

Usage:
    config = load_stack_config(project_path)
    store = GeneratedValueStore(context.get_deploy_path("generated_values.json"))
    deployment = build_declaration(config, store)
"""

import logging
from dataclasses import dataclass
from typing import List

from . import constants as CONSTANTS
from .core.context import StackConfig
from .core.graph import ResourceDeclaration, ResourceGraph, Secret
from .core.registry import GeneratorRegistry
from .generators import RANDOM_PASSWORD_TYPE, RANDOM_PET_TYPE, GeneratedValueStore

logger = logging.getLogger(__name__)

RESOURCE_GROUP_TYPE = "azure-native:resources:ResourceGroup"
DB_SERVER_TYPE = "azure-native:dbforpostgresql:Server"
DATABASE_TYPE = "azure-native:dbforpostgresql:Database"
MANAGED_ENVIRONMENT_TYPE = "azure-native:app:ManagedEnvironment"
CONTAINER_APP_TYPE = "azure-native:app:ContainerApp"

# Logical names (engine identity keys). Renaming one recreates the resource.
RESOURCE_GROUP = "azure-resource-group"
DB_LOGIN = "db-login"
DB_PASSWORD = "db-password"
DB_SERVER = "directus-db-server"
DATABASE = "directus-database"
APP_ENVIRONMENT = "directus-app-environment"
CONTAINER_APP = "directus-container-app"

OUTPUT_RESOURCE_GROUP = "azureResourceGroup"
OUTPUT_DATABASE_NAME = "databaseName"
OUTPUT_DB_FQDN = "dbFQDN"
OUTPUT_DB_ADMIN_USERNAME = "dbAdminUsername"
OUTPUT_DB_ADMIN_PASSWORD = "dbAdminPassword"


@dataclass
class Deployment:
    """
    A validated declaration.

    Attributes:
        config: The config the graph was built from
        graph: Validated resource graph with exported outputs
        order: Logical names in a creation order consistent with the graph
    """

    config: StackConfig
    graph: ResourceGraph
    order: List[str]

    def resource(self, name: str) -> ResourceDeclaration:
        return self.graph.get(name)

    @property
    def generated_resources(self) -> List[ResourceDeclaration]:
        return [r for r in self.graph if GeneratorRegistry.is_registered(r.type)]


def _generated(
    name: str,
    resource_type: str,
    spec: dict,
    store: GeneratedValueStore
) -> ResourceDeclaration:
    """Declare a generated resource and attach its stored value as output."""
    resource = ResourceDeclaration(name=name, type=resource_type, properties=spec)
    generator = GeneratorRegistry.get(resource_type)
    value = store.resolve(resource)
    resource.outputs[generator.output_attribute] = Secret(value) if generator.secret else value
    return resource


def build_declaration(
    config: StackConfig,
    store: GeneratedValueStore
) -> Deployment:
    """
    Build and validate the resource graph.

    Args:
        config: Loaded StackConfig
        store: Store for generated values. Pass the persisted store of the
            deployment; GeneratedValueStore() without a path keeps values in
            memory only, so every new store yields new credentials.

    Returns:
        Deployment with the validated graph

    Raises:
        GraphValidationError: If the declared graph is invalid
        GeneratorNotFoundError: If a generated type has no generator
    """
    graph = ResourceGraph()

    resource_group = graph.add(ResourceDeclaration(
        name=RESOURCE_GROUP,
        type=RESOURCE_GROUP_TYPE,
        properties={
            "resourceGroupName": config.resource_group_name,
            "location": config.location,
        },
    ))

    db_login = graph.add(_generated(
        DB_LOGIN,
        RANDOM_PET_TYPE,
        {"length": 1, "prefix": CONSTANTS.DB_LOGIN_PREFIX, "separator": ""},
        store,
    ))

    db_password = graph.add(_generated(
        DB_PASSWORD,
        RANDOM_PASSWORD_TYPE,
        {
            "length": CONSTANTS.DB_PASSWORD_LENGTH,
            "special": True,
            "overrideSpecial": CONSTANTS.DB_PASSWORD_SPECIAL,
        },
        store,
    ))

    db_server = graph.add(ResourceDeclaration(
        name=DB_SERVER,
        type=DB_SERVER_TYPE,
        parent=RESOURCE_GROUP,
        properties={
            # Meta
            "resourceGroupName": resource_group.ref("name"),
            "serverName": CONSTANTS.DB_SERVER_NAME,
            "location": resource_group.ref("location"),
            "version": CONSTANTS.DB_SERVER_VERSION,
            # Billable parameters
            "sku": {
                "tier": CONSTANTS.DB_SKU_TIER,
                "name": config.db_sku,
            },
            "storage": {
                "storageSizeGB": config.db_storage_gb,
            },
            # Auth
            "administratorLogin": db_login.ref("id"),
            "administratorLoginPassword": db_password.ref("result"),
            # Backups
            "backup": {
                "backupRetentionDays": config.db_backup_retention_days,
                "geoRedundantBackup": "Disabled",
            },
            "highAvailability": {
                "mode": "Disabled",
            },
        },
    ))

    database = graph.add(ResourceDeclaration(
        name=DATABASE,
        type=DATABASE_TYPE,
        parent=DB_SERVER,
        properties={
            "serverName": db_server.ref("name"),
            "resourceGroupName": resource_group.ref("name"),
            "databaseName": CONSTANTS.DB_NAME,
        },
    ))

    environment = graph.add(ResourceDeclaration(
        name=APP_ENVIRONMENT,
        type=MANAGED_ENVIRONMENT_TYPE,
        parent=RESOURCE_GROUP,
        properties={
            "resourceGroupName": resource_group.ref("name"),
            "location": resource_group.ref("location"),
            "environmentName": CONSTANTS.APP_ENVIRONMENT_NAME,
            "zoneRedundant": False,
        },
    ))

    # The image is pinned; config.image_tag is not interpolated here.
    graph.add(ResourceDeclaration(
        name=CONTAINER_APP,
        type=CONTAINER_APP_TYPE,
        parent=APP_ENVIRONMENT,
        properties={
            "resourceGroupName": resource_group.ref("name"),
            "location": resource_group.ref("location"),
            "containerAppName": CONSTANTS.CONTAINER_APP_NAME,
            "environmentId": environment.ref("id"),
            "configuration": {
                "secrets": [
                    {
                        "name": CONSTANTS.DB_PASSWORD_SECRET_NAME,
                        "value": db_password.ref("result"),
                    },
                ],
            },
            "template": {
                "containers": [
                    {
                        "name": CONSTANTS.CONTAINER_APP_NAME,
                        "image": CONSTANTS.CONTAINER_IMAGE,
                        "resources": {
                            "cpu": CONSTANTS.CONTAINER_CPU,
                            "memory": CONSTANTS.CONTAINER_MEMORY,
                        },
                    },
                ],
            },
        },
    ))

    graph.export(OUTPUT_RESOURCE_GROUP, resource_group.ref("name"))
    graph.export(OUTPUT_DATABASE_NAME, database.ref("name"))
    graph.export(OUTPUT_DB_FQDN, db_server.ref("fullyQualifiedDomainName"))
    graph.export(OUTPUT_DB_ADMIN_USERNAME, db_login.ref("id"))
    graph.export(OUTPUT_DB_ADMIN_PASSWORD, db_password.ref("result"), secret=True)

    order = graph.validate()
    logger.debug(f"Declared {len(graph)} resources, creation order: {order}")
    return Deployment(config=config, graph=graph, order=order)
