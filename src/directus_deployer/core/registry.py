"""
Generator registry for dynamic value-generator lookup.

This module implements the Registry pattern, providing a central place
to register and retrieve ValueGenerator implementations by resource type.

How Registration Works:
    The generators module registers its built-in generators when it is
    imported:

        # In directus_deployer/generators.py
        GeneratorRegistry.register("random:RandomPet", RandomPetGenerator)

    Additional generators can be registered the same way before the
    declaration is built.
"""

from typing import Dict, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from .protocols import ValueGenerator

from .exceptions import GeneratorNotFoundError


class GeneratorRegistry:
    """
    Central registry for value generator implementations.

    Uses class-level state because generators register themselves at
    import time, before any instances are created.

    Example Usage:
        GeneratorRegistry.register("random:RandomPet", RandomPetGenerator)
        generator = GeneratorRegistry.get("random:RandomPet")
        value = generator.generate({"length": 1, "prefix": "directus"})
    """

    # Key: resource type token, Value: generator class (not instance)
    _generators: Dict[str, Type['ValueGenerator']] = {}

    @classmethod
    def register(cls, resource_type: str, generator_class: Type['ValueGenerator']) -> None:
        """
        Register a generator class for a resource type.

        Registering the same class twice is allowed (idempotent); a different
        class for an already registered type raises an error.

        Raises:
            ValueError: If resource_type is already registered with a different class
        """
        if resource_type in cls._generators:
            existing_class = cls._generators[resource_type]
            if existing_class is not generator_class:
                raise ValueError(
                    f"Generator '{resource_type}' is already registered with {existing_class.__name__}. "
                    f"Cannot re-register with {generator_class.__name__}."
                )
            return

        cls._generators[resource_type] = generator_class

    @classmethod
    def get(cls, resource_type: str) -> 'ValueGenerator':
        """
        Get a new instance of the generator for a resource type.

        Raises:
            GeneratorNotFoundError: If nothing is registered for that type.
        """
        if resource_type not in cls._generators:
            raise GeneratorNotFoundError(resource_type, cls.list_generators())

        return cls._generators[resource_type]()

    @classmethod
    def list_generators(cls) -> list[str]:
        """List all registered resource types, sorted alphabetically."""
        return sorted(cls._generators.keys())

    @classmethod
    def is_registered(cls, resource_type: str) -> bool:
        return resource_type in cls._generators

    @classmethod
    def unregister(cls, resource_type: str) -> None:
        """
        Remove a registration.

        Used by tests that register throwaway generators.
        """
        cls._generators.pop(resource_type, None)
