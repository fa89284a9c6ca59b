import os
import sys

import pytest

# Allow running the tests from a checkout without installing the package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))

from directus_deployer.core.context import DeploymentContext, StackConfig  # noqa: E402
from directus_deployer.generators import GeneratedValueStore  # noqa: E402


@pytest.fixture(scope="function", autouse=True)
def clean_env(monkeypatch):
    """Remove config overrides and Azure credentials from the environment."""
    for name in list(os.environ):
        if name.startswith("DEPLOY_") or name.startswith("ARM_"):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture(scope="function")
def default_config():
    """StackConfig with every default applied."""
    return StackConfig()


@pytest.fixture(scope="function")
def scenario_config():
    """StackConfig with the non-default database sizing used across tests."""
    return StackConfig(
        resource_group_name="test-rg",
        db_sku="Standard_B2ms",
        db_storage_gb=64,
        db_backup_retention_days=14,
    )


@pytest.fixture(scope="function")
def value_store(tmp_path):
    """Generated value store backed by a temporary file."""
    return GeneratedValueStore(tmp_path / ".deploy" / "generated_values.json")


@pytest.fixture(scope="function")
def project_dir(tmp_path):
    """Empty project directory (no config.json: defaults apply)."""
    project = tmp_path / "stack"
    project.mkdir()
    return project


@pytest.fixture(scope="function")
def deployment_context(project_dir, default_config):
    return DeploymentContext(project_path=project_dir, config=default_config)
