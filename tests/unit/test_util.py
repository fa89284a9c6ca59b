"""
Tests for util.write_private_json.
"""

import json
import stat

import pytest

from directus_deployer.util import write_private_json


def _mode(path):
    return stat.S_IMODE(path.stat().st_mode)


class TestWritePrivateJson:

    def test_writes_owner_only_file(self, tmp_path):
        target = tmp_path / ".deploy" / "generated.tfvars.json"

        write_private_json(target, {"db_password": "pw"})

        assert json.loads(target.read_text()) == {"db_password": "pw"}
        assert _mode(target) == 0o600

    def test_replaces_existing_file_and_leaves_no_temp(self, tmp_path):
        target = tmp_path / "generated_values.json"
        target.write_text("{}")
        target.chmod(0o644)

        write_private_json(target, {"db-login": {"value": "directusmole"}})

        assert json.loads(target.read_text())["db-login"]["value"] == "directusmole"
        assert _mode(target) == 0o600
        assert [p.name for p in tmp_path.iterdir()] == ["generated_values.json"]

    def test_failed_write_keeps_previous_contents(self, tmp_path):
        target = tmp_path / "generated_values.json"
        write_private_json(target, {"db-password": {"value": "old"}})

        with pytest.raises(TypeError):
            write_private_json(target, {"db-password": {"value": object()}})

        assert json.loads(target.read_text()) == {"db-password": {"value": "old"}}
        assert [p.name for p in tmp_path.iterdir()] == ["generated_values.json"]
