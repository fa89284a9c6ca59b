"""
Unit tests for the resource graph.

Tests reference discovery, validation of parents/references, cycle
detection and deterministic topological ordering.
"""

import pytest

from directus_deployer.core.exceptions import GraphValidationError
from directus_deployer.core.graph import (
    Ref,
    ResourceDeclaration,
    ResourceGraph,
    Secret,
    reveal,
)


def _resource(name, parent=None, **properties):
    return ResourceDeclaration(name=name, type="test:Resource", properties=properties, parent=parent)


class TestResourceDeclaration:

    def test_references_are_found_in_nested_properties(self):
        resource = _resource(
            "app",
            env=Ref("env", "id"),
            configuration={"secrets": [{"name": "pw", "value": Ref("password", "result")}]},
        )

        assert resource.references() == [Ref("env", "id"), Ref("password", "result")]

    def test_dependencies_put_parent_first_without_duplicates(self):
        resource = _resource("db", parent="server", serverName=Ref("server", "name"), rg=Ref("rg", "name"))

        assert resource.dependencies() == ["server", "rg"]

    def test_get_property_with_index(self):
        resource = _resource("app", template={"containers": [{"image": "nginx"}]})

        assert resource.get_property("template.containers[0].image") == "nginx"

    def test_get_property_missing_raises(self):
        resource = _resource("app", template={})

        with pytest.raises(KeyError):
            resource.get_property("template.containers[0].image")


class TestSecret:

    def test_secret_is_masked(self):
        secret = Secret("hunter2")

        assert "hunter2" not in repr(secret)
        assert "hunter2" not in str(secret)
        assert "hunter2" not in repr(ResourceDeclaration(name="p", type="t", outputs={"result": secret}))
        assert reveal(secret) == "hunter2"
        assert reveal("plain") == "plain"

    def test_to_dict_masks_secrets_by_default(self):
        resource = ResourceDeclaration(name="p", type="t", outputs={"result": Secret("hunter2")})

        assert resource.to_dict()["outputs"]["result"] == "[secret]"
        assert resource.to_dict(show_secrets=True)["outputs"]["result"] == "hunter2"


class TestResourceGraph:

    def test_duplicate_name_raises(self):
        graph = ResourceGraph()
        graph.add(_resource("rg"))

        with pytest.raises(GraphValidationError, match="Duplicate"):
            graph.add(_resource("rg"))

    def test_duplicate_output_raises(self):
        graph = ResourceGraph()
        graph.add(_resource("rg"))
        graph.export("name", Ref("rg", "name"))

        with pytest.raises(GraphValidationError, match="Duplicate output"):
            graph.export("name", Ref("rg", "name"))

    def test_validate_returns_topological_order(self):
        graph = ResourceGraph()
        graph.add(_resource("rg"))
        graph.add(_resource("login"))
        graph.add(_resource("server", parent="rg", login=Ref("login", "id")))
        graph.add(_resource("db", parent="server"))

        order = graph.validate()

        assert order.index("rg") < order.index("server") < order.index("db")
        assert order.index("login") < order.index("server")

    def test_order_follows_declaration_for_independent_resources(self):
        graph = ResourceGraph()
        for name in ["c", "a", "b"]:
            graph.add(_resource(name))

        assert graph.validate() == ["c", "a", "b"]

    def test_undeclared_parent_raises(self):
        graph = ResourceGraph()
        graph.add(_resource("db", parent="server"))

        with pytest.raises(GraphValidationError, match="Parent 'server' is not declared"):
            graph.validate()

    def test_parent_declared_after_child_raises(self):
        graph = ResourceGraph()
        graph.add(_resource("db", parent="server"))
        graph.add(_resource("server"))

        with pytest.raises(GraphValidationError, match="before its child"):
            graph.validate()

    def test_undeclared_reference_raises(self):
        graph = ResourceGraph()
        graph.add(_resource("app", env=Ref("env", "id")))

        with pytest.raises(GraphValidationError, match="undeclared resource"):
            graph.validate()

    def test_output_with_undeclared_resource_raises(self):
        graph = ResourceGraph()
        graph.add(_resource("rg"))
        graph.export("fqdn", Ref("server", "fullyQualifiedDomainName"))

        with pytest.raises(GraphValidationError, match="Output 'fqdn'"):
            graph.validate()

    def test_reference_cycle_raises(self):
        graph = ResourceGraph()
        graph.add(_resource("a", other=Ref("b", "id")))
        graph.add(_resource("b", other=Ref("a", "id")))

        with pytest.raises(GraphValidationError, match="cycle"):
            graph.validate()

    def test_self_reference_is_a_cycle(self):
        graph = ResourceGraph()
        graph.add(_resource("a", me=Ref("a", "id")))

        with pytest.raises(GraphValidationError, match="cycle"):
            graph.validate()

    def test_edges(self):
        graph = ResourceGraph()
        graph.add(_resource("rg"))
        graph.add(_resource("env", parent="rg", rg=Ref("rg", "name")))

        assert graph.edges() == [("rg", "env")]

    def test_equality(self):
        def build():
            graph = ResourceGraph()
            graph.add(_resource("rg", resourceGroupName="x"))
            graph.export("name", Ref("rg", "name"))
            return graph

        assert build() == build()

        changed = build()
        changed.get("rg").properties["resourceGroupName"] = "y"
        assert build() != changed

    def test_get_unknown_raises_key_error(self):
        with pytest.raises(KeyError):
            ResourceGraph().get("missing")
