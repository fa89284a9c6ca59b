"""
Terraform CLI Wrapper.

Terraform is the external engine that provisions the rendered declaration.
It owns everything past rendering: provider plugins, diffing, ordering,
parallelism, state and state locking. Its failures surface unmodified as
TerraformError.

Usage:
    runner = TerraformRunner(terraform_dir="/work/my-stack/.deploy", env=arm_env)
    runner.init()
    plan_file = runner.plan(var_file="/work/my-stack/.deploy/generated.tfvars.json")
    runner.apply(plan_file)
    outputs = runner.output()
"""

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Optional

from . import constants as CONSTANTS

logger = logging.getLogger(__name__)

# Shell convention for "command not found"
MISSING_BINARY_EXIT_CODE = 127


class TerraformError(Exception):
    """Raised when a Terraform command fails or cannot be started."""

    def __init__(self, command: str, return_code: int, stderr: str):
        self.command = command
        self.return_code = return_code
        self.stderr = stderr
        super().__init__(f"Terraform {command} failed (exit {return_code}): {stderr}")


class TerraformRunner:
    """
    Runs Terraform against one engine working directory.

    Every command gets the caller's environment plus ``env`` (the ARM_*
    credentials) and TF_IN_AUTOMATION, and never prompts for input.
    """

    def __init__(self, terraform_dir: str, env: Optional[Dict[str, str]] = None):
        if not terraform_dir:
            raise ValueError("terraform_dir is required")

        self.terraform_dir = Path(terraform_dir)
        self.env = dict(env or {})

        if not self.terraform_dir.exists():
            raise ValueError(f"Terraform directory does not exist: {terraform_dir}")

    def _process_env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env.update(self.env)
        env["TF_IN_AUTOMATION"] = "1"
        return env

    def _run_command(self, args: list[str], stream_output: bool = False) -> str:
        """
        Run ``terraform -chdir=<dir> <args>`` and return its output.

        Long-running commands stream to the console as they run; the
        streamed text is still kept for the error message.

        Raises:
            TerraformError: On a non-zero exit, or if the binary is missing
        """
        cmd = [CONSTANTS.TERRAFORM_BINARY, f"-chdir={self.terraform_dir}"] + args
        logger.info(f"Running: {' '.join(cmd)}")

        try:
            if stream_output:
                returncode, stdout, stderr = self._stream(cmd)
            else:
                result = subprocess.run(cmd, capture_output=True, text=True, env=self._process_env())
                returncode, stdout, stderr = result.returncode, result.stdout, result.stderr
        except FileNotFoundError as e:
            raise TerraformError(
                args[0],
                MISSING_BINARY_EXIT_CODE,
                f"'{CONSTANTS.TERRAFORM_BINARY}' executable not found on PATH; install Terraform"
            ) from e

        if returncode != 0:
            error_output = "\n".join(part for part in (stdout, stderr) if part)
            raise TerraformError(args[0], returncode, error_output or "No output captured")

        return stdout or ""

    def _stream(self, cmd: list[str]):
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            env=self._process_env()
        )

        output_lines = []
        for line in process.stdout:
            print(line, end='', flush=True)
            output_lines.append(line)

        process.wait()
        return process.returncode, ''.join(output_lines), None

    def init(self) -> None:
        """Download the azurerm provider and set up local state."""
        logger.info("Initializing Terraform...")
        self._run_command(["init", "-input=false"])
        logger.info("✓ Terraform initialized")

    def plan(self, var_file: str) -> str:
        """
        Create an execution plan in the working directory.

        Returns:
            Path to the saved plan file
        """
        if not var_file:
            raise ValueError("var_file is required")

        out_file = str(self.terraform_dir / CONSTANTS.TERRAFORM_PLAN_FILE)
        logger.info("Creating execution plan...")
        self._run_command(
            ["plan", "-input=false", f"-var-file={var_file}", f"-out={out_file}"],
            stream_output=True
        )
        logger.info(f"✓ Plan saved to {out_file}")
        return out_file

    def apply(self, plan_file: str) -> None:
        """Apply a plan saved by plan()."""
        if not plan_file:
            raise ValueError("plan_file is required")

        logger.info("Applying Terraform plan...")
        self._run_command(["apply", "-input=false", "-auto-approve", plan_file], stream_output=True)
        logger.info("✓ Apply complete")

    def destroy(self, var_file: str) -> None:
        """Destroy all managed resources."""
        if not var_file:
            raise ValueError("var_file is required")

        logger.info("Destroying Terraform-managed resources...")
        self._run_command(
            ["destroy", "-input=false", "-auto-approve", f"-var-file={var_file}"],
            stream_output=True
        )
        logger.info("✓ Destroy complete")

    def output(self) -> Dict[str, object]:
        """
        Read all outputs from state.

        Sensitive values are included; callers must mask them.
        """
        stdout = self._run_command(["output", "-json"])
        if not stdout.strip():
            return {}
        return {name: entry.get("value") for name, entry in json.loads(stdout).items()}
