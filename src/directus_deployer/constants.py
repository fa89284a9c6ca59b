from pathlib import Path

# ==========================================
# 1. Configuration Filenames
# ==========================================
CONFIG_FILE = "config.json"
CONFIG_CREDENTIALS_AZURE_FILE = "config_credentials_azure.json"

# Working directory (inside the project) for engine files
DEPLOY_DIR_NAME = ".deploy"
TERRAFORM_CONFIG_FILE = "main.tf.json"
TERRAFORM_VARS_FILE = "generated.tfvars.json"
TERRAFORM_PLAN_FILE = "tfplan"
GENERATED_VALUES_FILE = "generated_values.json"

# ==========================================
# 2. Configuration Keys & Defaults
# ==========================================
KEY_RESOURCE_GROUP_NAME = "resourceGroupName"
KEY_VERSION = "version"
KEY_LOCATION = "location"
KEY_DB_SKU = "db:sku"
KEY_DB_STORAGE_GB = "db:storageGB"
KEY_DB_BACKUP_RETENTION_DAYS = "db:bucketRetentionDays"

CONFIG_DEFAULTS = {
    KEY_RESOURCE_GROUP_NAME: "sits-www",
    KEY_VERSION: "latest",
    KEY_LOCATION: "westeurope",
    KEY_DB_SKU: "Standard_B1ms",
    KEY_DB_STORAGE_GB: 32,
    KEY_DB_BACKUP_RETENTION_DAYS: 7,
}

STRING_CONFIG_KEYS = [KEY_RESOURCE_GROUP_NAME, KEY_VERSION, KEY_LOCATION, KEY_DB_SKU]
NUMBER_CONFIG_KEYS = [KEY_DB_STORAGE_GB, KEY_DB_BACKUP_RETENTION_DAYS]

# Environment overrides: DEPLOY_DB_STORAGEGB overrides "db:storageGB"
ENV_OVERRIDE_PREFIX = "DEPLOY_"

REQUIRED_CREDENTIALS_FIELDS = {
    "azure": ["azure_subscription_id", "azure_tenant_id", "azure_client_id", "azure_client_secret"],
}

# Credential field -> environment variable read by the azurerm provider
AZURE_CREDENTIALS_ENV = {
    "azure_subscription_id": "ARM_SUBSCRIPTION_ID",
    "azure_tenant_id": "ARM_TENANT_ID",
    "azure_client_id": "ARM_CLIENT_ID",
    "azure_client_secret": "ARM_CLIENT_SECRET",
}

# ==========================================
# 3. Resource Literals
# ==========================================
DB_SERVER_NAME = "directus-db"
DB_SERVER_VERSION = "16"
DB_SKU_TIER = "Burstable"
DB_NAME = "directus"

DB_LOGIN_PREFIX = "directus"
DB_PASSWORD_LENGTH = 32
DB_PASSWORD_SPECIAL = "!@#$%^&*()-_+"

APP_ENVIRONMENT_NAME = "directus-prod"
CONTAINER_APP_NAME = "directus"
CONTAINER_IMAGE = "directus/directus:11.1"
CONTAINER_CPU = 0.5
CONTAINER_MEMORY = "1Gi"
DB_PASSWORD_SECRET_NAME = "dbPassword"

# ==========================================
# 4. Engine
# ==========================================
TERRAFORM_BINARY = "terraform"
AZURERM_PROVIDER_SOURCE = "hashicorp/azurerm"
AZURERM_PROVIDER_VERSION = "~> 4.0"

SECRET_MASK = "[secret]"


def deploy_dir_for(project_path: Path) -> Path:
    """Absolute engine working directory; Terraform runs with -chdir."""
    return Path(project_path).resolve() / DEPLOY_DIR_NAME
