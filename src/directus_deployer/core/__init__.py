"""
Core abstractions for the deployment declaration.

Modules:
    context: StackConfig and DeploymentContext for dependency injection
    config_loader: Configuration loading utilities
    graph: Resource declarations, references and the validated DAG
    protocols: ValueGenerator interface
    registry: GeneratorRegistry for generator lookup by resource type
    exceptions: Custom exception types

Usage:
    from directus_deployer.core import StackConfig, ResourceGraph
"""

from .context import DeploymentContext, StackConfig
from .exceptions import (
    ConfigurationError,
    DeploymentError,
    GeneratorNotFoundError,
    GraphValidationError,
)
from .graph import OutputDeclaration, Ref, ResourceDeclaration, ResourceGraph, Secret
from .protocols import ValueGenerator
from .registry import GeneratorRegistry

__all__ = [
    # Context
    "DeploymentContext",
    "StackConfig",
    # Graph
    "OutputDeclaration",
    "Ref",
    "ResourceDeclaration",
    "ResourceGraph",
    "Secret",
    # Generators
    "ValueGenerator",
    "GeneratorRegistry",
    # Exceptions
    "DeploymentError",
    "ConfigurationError",
    "GraphValidationError",
    "GeneratorNotFoundError",
]
