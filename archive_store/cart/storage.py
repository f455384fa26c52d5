"""
Ports de stockage du panier.
Un stockage expose read/write/clear sur une clé texte; le panier y range un snapshot JSON.
- MemoryCartStorage: dict en mémoire (tests, sessions éphémères)
- FileCartStorage: un fichier <clé>.json par panier dans un répertoire
"""
import re
from pathlib import Path
from typing import Dict, Optional, Protocol

from archive_store.config import CART_STORAGE_DIR


class CartStorage(Protocol):
    def read(self, key: str) -> Optional[str]: ...

    def write(self, key: str, value: str) -> None: ...

    def clear(self, key: str) -> None: ...


class MemoryCartStorage:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class FileCartStorage:
    """
    Stockage durable sur disque.
    - La clé est assainie pour former un nom de fichier ([A-Za-z0-9._-]).
    - Le répertoire est créé à la première écriture.
    """

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory else CART_STORAGE_DIR

    def _path(self, key: str) -> Path:
        safe = re.sub(r"[^A-Za-z0-9._-]", "_", key) or "cart"
        return self.directory / f"{safe}.json"

    def read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def write(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        self._path(key).write_text(value, encoding="utf-8")

    def clear(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
