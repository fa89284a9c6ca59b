import json
import os
import tempfile
from pathlib import Path


def write_private_json(path: Path, data) -> None:
    """
    Atomically write JSON readable by the owner only.

    The data goes to a 0600 temporary file in the target directory, which
    then replaces the target. A crash mid-write leaves the old file intact
    and the contents are never readable by other users.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, sort_keys=True)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, 0o600)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
