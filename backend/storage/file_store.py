import os
import tempfile
from typing import Dict, Optional
from storage.base import RecordStorage

class LocalFileStorage(RecordStorage):
    """
    Implements RecordStorage using the local disk.
    - One JSON file per key under `base_path`.
    - Writes go to a temp file in the same directory and are swapped in with os.replace.
    """

    def __init__(self, base_path: str = "./data/records"):
        self.base_path = base_path
        os.makedirs(self.base_path, exist_ok=True)

    def _path(self, key: str) -> str:
        return os.path.join(self.base_path, f"{key}.json")

    def load(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError):
            # Unreadable storage counts as empty
            return None

    def save(self, key: str, text: str) -> None:
        fd, tmp_path = tempfile.mkstemp(dir=self.base_path, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

class MemoryStorage(RecordStorage):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def load(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def save(self, key: str, text: str) -> None:
        self.data[key] = text
