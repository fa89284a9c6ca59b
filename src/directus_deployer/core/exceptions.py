"""
Custom exceptions for the deployment declaration.

This module defines a hierarchy of exceptions used throughout the deployer
to provide clear, actionable error messages.

Exception Hierarchy:
    DeploymentError (base)
    ├── ConfigurationError - Invalid or missing configuration
    ├── GraphValidationError - Resource graph is not a valid DAG
    └── GeneratorNotFoundError - No value generator for a resource type

Provisioning failures are not part of this hierarchy: they come from the
external engine and surface as terraform_runner.TerraformError.
"""

from typing import Optional


class DeploymentError(Exception):
    """
    Base exception for all deployment-related errors.

    Attributes:
        message: Human-readable error description
        resource: Optional logical name of the resource involved
    """

    def __init__(self, message: str, resource: Optional[str] = None):
        self.message = message
        self.resource = resource

        if resource:
            full_message = f"{message} [resource={resource}]"
        else:
            full_message = message

        super().__init__(full_message)


class ConfigurationError(DeploymentError):
    """
    Raised when configuration is invalid or missing required fields.

    This typically occurs when:
    - Config file has invalid JSON
    - Config file contains an unknown key
    - A value has the wrong type (e.g. "db:storageGB": "lots")
    - A credentials file is missing a required field

    Example:
        >>> load_stack_config(project_path)
        ConfigurationError: Invalid value for 'db:storageGB': expected a positive integer, got 'lots' (file: .../config.json)
    """

    def __init__(
        self,
        message: str,
        config_file: Optional[str] = None,
        key: Optional[str] = None,
        source: Optional[str] = None
    ):
        self.config_file = config_file
        self.key = key
        # Origin of a value that did not come from a file
        self.source = source
        if config_file:
            message = f"{message} (file: {config_file})"
        elif source:
            message = f"{message} (from {source})"
        super().__init__(message)


class GraphValidationError(DeploymentError):
    """
    Raised when the declared resources do not form a valid dependency graph.

    This occurs when:
    - Two resources share a logical name
    - A parent or reference points to an undeclared resource
    - The parent/reference edges contain a cycle
    - An output references an undeclared resource
    """
    pass


class GeneratorNotFoundError(DeploymentError):
    """
    Raised when a generated resource type has no registered ValueGenerator.

    Example:
        >>> GeneratorRegistry.get("random:RandomUuid")
        GeneratorNotFoundError: Generator 'random:RandomUuid' not found. Available: ['random:RandomPassword', 'random:RandomPet']
    """

    def __init__(self, resource_type: str, available: list[str]):
        self.resource_type = resource_type
        self.available = available
        message = (
            f"Generator '{resource_type}' not found. "
            f"Available: {available}"
        )
        super().__init__(message)
