"""
Terraform integration.

Modules:
    renderer: Render a Deployment as Terraform JSON + tfvars
    deployer_strategy: DeclarationDeployer (render, plan, apply, destroy)
"""
