# scheve_cms/storage/local_storage.py
from __future__ import annotations

import os
import tempfile
from pathlib import Path


class LocalFileStorage:
    """
    Files under a root directory. Keys are relative paths ("invoices/2024-01-01/x.pdf");
    absolute paths are used as-is so existing template paths keep working.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        p = Path(key)
        if p.is_absolute():
            return p
        return self.root / p

    def exists(self, key: str) -> bool:
        if not key:
            return False
        return self.path_for(key).is_file()

    def read_bytes(self, key: str) -> bytes:
        return self.path_for(key).read_bytes()

    def size(self, key: str) -> int:
        return self.path_for(key).stat().st_size

    def save_bytes(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        # temp file + rename: readers never see a half-written file
        target = self.path_for(key)
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".upload-", suffix=target.suffix)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        return key

    def delete(self, key: str) -> None:
        p = self.path_for(key)
        if p.is_file():
            p.unlink()
