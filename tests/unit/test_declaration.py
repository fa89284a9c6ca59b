"""
Unit tests for the deployment declaration.

Covers the documented defaults, the configured scenario, the shape of the
dependency graph, determinism and the stability of generated credentials.
"""

import pytest

from directus_deployer.core.context import StackConfig
from directus_deployer.core.graph import Ref, Secret
from directus_deployer.declaration import (
    APP_ENVIRONMENT,
    CONTAINER_APP,
    DATABASE,
    DB_LOGIN,
    DB_PASSWORD,
    DB_SERVER,
    RESOURCE_GROUP,
    build_declaration,
)
from directus_deployer.generators import GeneratedValueStore


class TestDefaults:
    """No configuration supplied."""

    def test_default_values_flow_into_resources(self, default_config, value_store):
        deployment = build_declaration(default_config, value_store)
        server = deployment.resource(DB_SERVER)

        assert deployment.resource(RESOURCE_GROUP).properties["resourceGroupName"] == "sits-www"
        assert server.get_property("sku.name") == "Standard_B1ms"
        assert server.get_property("sku.tier") == "Burstable"
        assert server.get_property("storage.storageSizeGB") == 32
        assert server.get_property("backup.backupRetentionDays") == 7
        assert deployment.config.image_tag == "latest"

    def test_container_app_defaults(self, default_config, value_store):
        app = build_declaration(default_config, value_store).resource(CONTAINER_APP)

        assert app.get_property("template.containers[0].image") == "directus/directus:11.1"
        assert app.get_property("template.containers[0].resources.cpu") == 0.5
        assert app.get_property("template.containers[0].resources.memory") == "1Gi"

    def test_image_tag_is_not_interpolated(self, value_store):
        deployment = build_declaration(StackConfig(image_tag="12.0"), value_store)

        image = deployment.resource(CONTAINER_APP).get_property("template.containers[0].image")
        assert image == "directus/directus:11.1"

    def test_fixed_literals(self, default_config, value_store):
        deployment = build_declaration(default_config, value_store)
        server = deployment.resource(DB_SERVER)

        assert server.get_property("serverName") == "directus-db"
        assert server.get_property("version") == "16"
        assert server.get_property("backup.geoRedundantBackup") == "Disabled"
        assert server.get_property("highAvailability.mode") == "Disabled"
        assert deployment.resource(DATABASE).get_property("databaseName") == "directus"
        assert deployment.resource(APP_ENVIRONMENT).get_property("environmentName") == "directus-prod"
        assert deployment.resource(APP_ENVIRONMENT).get_property("zoneRedundant") is False


class TestConfiguredScenario:

    def test_scenario_values(self, scenario_config, value_store):
        deployment = build_declaration(scenario_config, value_store)
        server = deployment.resource(DB_SERVER)

        assert server.get_property("storage.storageSizeGB") == 64
        assert server.get_property("backup.backupRetentionDays") == 14
        assert server.get_property("sku.name") == "Standard_B2ms"
        assert deployment.resource(RESOURCE_GROUP).get_property("resourceGroupName") == "test-rg"


class TestGraphShape:

    def test_parents(self, default_config, value_store):
        graph = build_declaration(default_config, value_store).graph

        assert graph.get(RESOURCE_GROUP).parent is None
        assert graph.get(DB_SERVER).parent == RESOURCE_GROUP
        assert graph.get(DATABASE).parent == DB_SERVER
        assert graph.get(APP_ENVIRONMENT).parent == RESOURCE_GROUP
        assert graph.get(CONTAINER_APP).parent == APP_ENVIRONMENT

    def test_order_respects_dependencies(self, default_config, value_store):
        order = build_declaration(default_config, value_store).order

        assert len(order) == 7
        assert order.index(RESOURCE_GROUP) < order.index(DB_SERVER) < order.index(DATABASE)
        assert order.index(DB_LOGIN) < order.index(DB_SERVER)
        assert order.index(DB_PASSWORD) < order.index(DB_SERVER)
        assert order.index(RESOURCE_GROUP) < order.index(APP_ENVIRONMENT) < order.index(CONTAINER_APP)
        assert order.index(DB_PASSWORD) < order.index(CONTAINER_APP)

    def test_every_edge_resolves(self, default_config, value_store):
        graph = build_declaration(default_config, value_store).graph

        for dependency, dependent in graph.edges():
            assert dependency in graph
            assert dependent in graph

    def test_credentials_are_references(self, default_config, value_store):
        graph = build_declaration(default_config, value_store).graph
        server = graph.get(DB_SERVER)
        app = graph.get(CONTAINER_APP)

        assert server.get_property("administratorLogin") == Ref(DB_LOGIN, "id")
        assert server.get_property("administratorLoginPassword") == Ref(DB_PASSWORD, "result")
        assert app.get_property("configuration.secrets[0].name") == "dbPassword"
        assert app.get_property("configuration.secrets[0].value") == Ref(DB_PASSWORD, "result")
        assert app.get_property("environmentId") == Ref(APP_ENVIRONMENT, "id")

    def test_outputs(self, default_config, value_store):
        graph = build_declaration(default_config, value_store).graph
        outputs = {o.name: o for o in graph.outputs}

        assert list(outputs) == [
            "azureResourceGroup",
            "databaseName",
            "dbFQDN",
            "dbAdminUsername",
            "dbAdminPassword",
        ]
        assert outputs["dbFQDN"].value == Ref(DB_SERVER, "fullyQualifiedDomainName")
        assert outputs["dbAdminPassword"].secret is True
        assert not any(o.secret for name, o in outputs.items() if name != "dbAdminPassword")

    def test_generated_outputs_attached(self, default_config, value_store):
        deployment = build_declaration(default_config, value_store)

        login = deployment.resource(DB_LOGIN).outputs["id"]
        password = deployment.resource(DB_PASSWORD).outputs["result"]

        assert login.startswith("directus")
        assert isinstance(password, Secret)
        assert len(password.value) == 32
        assert [r.name for r in deployment.generated_resources] == [DB_LOGIN, DB_PASSWORD]


class TestDeterminism:

    def test_same_config_same_graph(self, scenario_config, value_store):
        first = build_declaration(scenario_config, value_store)
        second = build_declaration(scenario_config, value_store)

        assert first.graph == second.graph
        assert first.order == second.order

    def test_credentials_stable_across_invocations(self, default_config, value_store):
        first = build_declaration(default_config, value_store)
        # A later invocation reopens the store from disk
        second = build_declaration(default_config, GeneratedValueStore(value_store.path))

        assert first.resource(DB_LOGIN).outputs == second.resource(DB_LOGIN).outputs
        assert first.resource(DB_PASSWORD).outputs == second.resource(DB_PASSWORD).outputs

    def test_credentials_stable_when_config_changes(self, default_config, scenario_config, value_store):
        first = build_declaration(default_config, value_store)
        second = build_declaration(scenario_config, value_store)

        assert first.resource(DB_PASSWORD).outputs == second.resource(DB_PASSWORD).outputs
        assert first.graph != second.graph

    def test_reset_regenerates_password(self, default_config, value_store):
        first = build_declaration(default_config, value_store)

        value_store.reset(DB_PASSWORD)
        second = build_declaration(default_config, value_store)

        assert first.resource(DB_PASSWORD).outputs != second.resource(DB_PASSWORD).outputs
        assert first.resource(DB_LOGIN).outputs == second.resource(DB_LOGIN).outputs

    def test_construction_needs_no_credentials(self, default_config):
        """Building the declaration is pure data; no engine or Azure access."""
        deployment = build_declaration(default_config, GeneratedValueStore())

        assert len(deployment.graph) == 7

    def test_store_is_required(self, default_config):
        """Without a store the generated credentials would differ per call."""
        with pytest.raises(TypeError):
            build_declaration(default_config)


@pytest.mark.parametrize("storage_gb", [32, 64, 128])
def test_storage_follows_config(storage_gb, value_store):
    deployment = build_declaration(StackConfig(db_storage_gb=storage_gb), value_store)

    assert deployment.resource(DB_SERVER).get_property("storage.storageSizeGB") == storage_gb
