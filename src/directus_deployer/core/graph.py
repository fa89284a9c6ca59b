"""
Resource graph for the deployment declaration.

Resources are nodes; edges come from two sources:
    - parent: logical grouping (server under resource group, ...)
    - Ref: a property that reads another resource's output attribute

The graph only describes desired state. It is validated (all edges resolve,
no cycles) before it is rendered for the provisioning engine, which decides
the actual creation order and parallelism.

Usage:
    graph = ResourceGraph()
    rg = graph.add(ResourceDeclaration("rg", "azure-native:resources:ResourceGroup",
                                       {"resourceGroupName": "sits-www"}))
    graph.add(ResourceDeclaration("env", "azure-native:app:ManagedEnvironment",
                                  {"resourceGroupName": rg.ref("name")},
                                  parent="rg"))
    graph.export("azureResourceGroup", rg.ref("name"))
    order = graph.validate()  # ["rg", "env"]
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .. import constants as CONSTANTS
from .exceptions import GraphValidationError

_INDEX_PATTERN = re.compile(r"^(?P<key>[^\[]+)\[(?P<index>\d+)\]$")


@dataclass(frozen=True)
class Ref:
    """Reference to an output attribute of another declared resource."""

    resource: str
    attribute: str

    def __str__(self) -> str:
        return f"${{{self.resource}.{self.attribute}}}"


@dataclass(frozen=True)
class Secret:
    """
    Wrapper for a sensitive value.

    repr() and str() never reveal the value; use .value explicitly.
    """

    value: str = field(repr=False)

    def __repr__(self) -> str:
        return f"Secret({CONSTANTS.SECRET_MASK})"

    def __str__(self) -> str:
        return CONSTANTS.SECRET_MASK


def reveal(value: Any) -> Any:
    """Unwrap a Secret; other values pass through unchanged."""
    if isinstance(value, Secret):
        return value.value
    return value


def _iter_refs(value: Any) -> Iterator[Ref]:
    if isinstance(value, Ref):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _iter_refs(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_refs(item)


def _to_plain(value: Any, show_secrets: bool) -> Any:
    if isinstance(value, Ref):
        return str(value)
    if isinstance(value, Secret):
        return value.value if show_secrets else CONSTANTS.SECRET_MASK
    if isinstance(value, dict):
        return {k: _to_plain(v, show_secrets) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v, show_secrets) for v in value]
    return value


@dataclass
class ResourceDeclaration:
    """
    A single declared resource.

    Attributes:
        name: Logical name; the engine's stable identity key for the resource
        type: Type token, e.g. "azure-native:dbforpostgresql:Server"
        properties: Input properties (literals, nested dicts/lists, Refs)
        parent: Logical name of the parent resource, if any
        outputs: Output values already known at declaration time. Only
            generated resources (random login/password) have these.
    """

    name: str
    type: str
    properties: Dict[str, Any] = field(default_factory=dict)
    parent: Optional[str] = None
    outputs: Dict[str, Any] = field(default_factory=dict)

    def ref(self, attribute: str) -> Ref:
        return Ref(self.name, attribute)

    def references(self) -> List[Ref]:
        """All Refs found in the properties, in declaration order."""
        return list(_iter_refs(self.properties))

    def dependencies(self) -> List[str]:
        """Logical names this resource depends on (parent first, no duplicates)."""
        deps = []
        if self.parent:
            deps.append(self.parent)
        for ref in self.references():
            if ref.resource not in deps:
                deps.append(ref.resource)
        return deps

    def get_property(self, path: str) -> Any:
        """
        Read a nested property by dotted path.

        List elements are addressed with [n].

        Example:
            >>> app.get_property("template.containers[0].image")
            "directus/directus:11.1"

        Raises:
            KeyError: If any path segment does not exist
        """
        current: Any = self.properties
        for segment in path.split("."):
            match = _INDEX_PATTERN.match(segment)
            if match:
                current = current[match.group("key")][int(match.group("index"))]
            else:
                current = current[segment]
        return current

    def to_dict(self, show_secrets: bool = False) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type,
            "parent": self.parent,
            "dependsOn": self.dependencies(),
            "properties": _to_plain(self.properties, show_secrets),
        }
        if self.outputs:
            data["outputs"] = _to_plain(self.outputs, show_secrets)
        return data


@dataclass(frozen=True)
class OutputDeclaration:
    """A value exported once the graph is applied."""

    name: str
    value: Ref
    secret: bool = False


class ResourceGraph:
    """
    Ordered collection of resource declarations and exported outputs.

    Declaration order is preserved and used as the tie-breaker for the
    topological order, so the same declaration always yields the same order.
    """

    def __init__(self):
        self._resources: Dict[str, ResourceDeclaration] = {}
        self._outputs: Dict[str, OutputDeclaration] = {}

    def add(self, resource: ResourceDeclaration) -> ResourceDeclaration:
        """
        Declare a resource.

        Raises:
            GraphValidationError: If the logical name is already declared
        """
        if resource.name in self._resources:
            raise GraphValidationError(
                "Duplicate logical name", resource=resource.name
            )
        self._resources[resource.name] = resource
        return resource

    def export(self, name: str, value: Ref, secret: bool = False) -> OutputDeclaration:
        """
        Export an output value.

        Raises:
            GraphValidationError: If an output with that name already exists
        """
        if name in self._outputs:
            raise GraphValidationError(f"Duplicate output '{name}'")
        output = OutputDeclaration(name=name, value=value, secret=secret)
        self._outputs[name] = output
        return output

    @property
    def resources(self) -> List[ResourceDeclaration]:
        return list(self._resources.values())

    @property
    def outputs(self) -> List[OutputDeclaration]:
        return list(self._outputs.values())

    def get(self, name: str) -> ResourceDeclaration:
        """
        Get a resource by logical name.

        Raises:
            KeyError: If no resource has that name
        """
        if name not in self._resources:
            raise KeyError(f"Resource '{name}' is not declared")
        return self._resources[name]

    def by_type(self, resource_type: str) -> List[ResourceDeclaration]:
        return [r for r in self._resources.values() if r.type == resource_type]

    def get_output(self, name: str) -> OutputDeclaration:
        if name not in self._outputs:
            raise KeyError(f"Output '{name}' is not declared")
        return self._outputs[name]

    def __contains__(self, name: str) -> bool:
        return name in self._resources

    def __iter__(self) -> Iterator[ResourceDeclaration]:
        return iter(self._resources.values())

    def __len__(self) -> int:
        return len(self._resources)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceGraph):
            return NotImplemented
        return (
            list(self._resources.items()) == list(other._resources.items())
            and list(self._outputs.items()) == list(other._outputs.items())
        )

    def edges(self) -> List[Tuple[str, str]]:
        """Dependency edges as (dependency, dependent) pairs."""
        return [
            (dep, resource.name)
            for resource in self._resources.values()
            for dep in resource.dependencies()
        ]

    def validate(self) -> List[str]:
        """
        Check the graph and return a creation order consistent with it.

        Checks:
            - every parent and Ref points to a declared resource
            - every parent is declared before its child
            - every exported output points to a declared resource
            - the dependency edges are acyclic

        Returns:
            Logical names in topological order

        Raises:
            GraphValidationError: On the first problem found
        """
        position = {name: i for i, name in enumerate(self._resources)}

        for resource in self._resources.values():
            if resource.parent is not None:
                if resource.parent not in position:
                    raise GraphValidationError(
                        f"Parent '{resource.parent}' is not declared",
                        resource=resource.name
                    )
                if position[resource.parent] >= position[resource.name]:
                    raise GraphValidationError(
                        f"Parent '{resource.parent}' must be declared before its child",
                        resource=resource.name
                    )
            for ref in resource.references():
                if ref.resource not in position:
                    raise GraphValidationError(
                        f"Reference {ref} points to an undeclared resource",
                        resource=resource.name
                    )

        for output in self._outputs.values():
            if output.value.resource not in position:
                raise GraphValidationError(
                    f"Output '{output.name}' references undeclared resource "
                    f"'{output.value.resource}'"
                )

        return self.topological_order()

    def topological_order(self) -> List[str]:
        """
        Kahn's algorithm, breaking ties by declaration order.

        Raises:
            GraphValidationError: If the edges contain a cycle
        """
        position = {name: i for i, name in enumerate(self._resources)}
        in_degree = {name: 0 for name in self._resources}
        dependents: Dict[str, List[str]] = {name: [] for name in self._resources}

        for dep, dependent in self.edges():
            if dep not in in_degree:
                # Unresolved edges are reported by validate()
                continue
            in_degree[dependent] += 1
            dependents[dep].append(dependent)

        ready = sorted((n for n, d in in_degree.items() if d == 0), key=position.get)
        order = []
        while ready:
            current = ready.pop(0)
            order.append(current)
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    ready.append(dependent)
            ready.sort(key=position.get)

        if len(order) != len(self._resources):
            cyclic = [n for n in self._resources if n not in order]
            raise GraphValidationError(
                f"Dependency cycle between resources: {cyclic}"
            )
        return order

    def to_dict(self, show_secrets: bool = False) -> Dict[str, Any]:
        """JSON-serializable view of the graph; secrets masked by default."""
        return {
            "resources": [r.to_dict(show_secrets) for r in self._resources.values()],
            "outputs": {
                o.name: {"value": str(o.value), "secret": o.secret}
                for o in self._outputs.values()
            },
        }
