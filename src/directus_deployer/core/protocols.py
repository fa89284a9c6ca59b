"""
Protocol definitions for pluggable value generation.

Some declared resources (the database login suffix and password) are not
cloud resources at all: their value is generated locally, exactly once per
deployment, and then reused. A ValueGenerator produces such a value from
the resource's properties; the GeneratedValueStore decides when to call it.

Why Protocols instead of ABC?
    - No explicit inheritance required (duck typing)
    - Runtime checking with @runtime_checkable decorator
"""

from typing import Any, Dict, Protocol, runtime_checkable


@runtime_checkable
class ValueGenerator(Protocol):
    """
    Protocol for a generator of a single resource output value.

    Example Implementation:
        class RandomUuidGenerator:
            resource_type = "random:RandomUuid"
            output_attribute = "result"
            secret = False

            def generate(self, spec):
                return str(uuid.uuid4())
    """

    @property
    def resource_type(self) -> str:
        """Type token of the resources this generator serves."""
        ...

    @property
    def output_attribute(self) -> str:
        """Name of the output attribute the generated value is exposed as."""
        ...

    @property
    def secret(self) -> bool:
        """Whether the generated value is sensitive."""
        ...

    def generate(self, spec: Dict[str, Any]) -> Any:
        """
        Produce a new value.

        Args:
            spec: The resource's input properties (length, prefix, ...)

        Returns:
            The generated value (plain, never wrapped in Secret)
        """
        ...
