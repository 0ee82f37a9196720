"""
Secret store for keys, preimages and discovered funding outpoints.

Lookups return None when a value is not known yet, so callers can tell
"not observed" apart from a failure.
"""

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union

from .core import OutPoint, preimage_hash
from .keys import PrivateKey

log = logging.getLogger(__name__)


class SecretStore(ABC):
    """Key/preimage/outpoint persistence. Implementations must be thread safe."""

    @abstractmethod
    def save_key(self, key: PrivateKey) -> None:
        ...

    @abstractmethod
    def get_private_key(self, pubkey: bytes) -> Optional[PrivateKey]:
        ...

    @abstractmethod
    def save_preimage(self, preimage: bytes) -> None:
        """Store a preimage, retrievable by its SHA256 hash."""

    @abstractmethod
    def get_preimage(self, hash_: bytes) -> Optional[bytes]:
        ...

    @abstractmethod
    def save_offer(self, script_pubkey: bytes, outpoint: OutPoint) -> None:
        """Store the funding outpoint of an offer, keyed by its funding script."""

    @abstractmethod
    def get_offer(self, script_pubkey: bytes) -> Optional[OutPoint]:
        ...

    def generate_key(self) -> PrivateKey:
        key = PrivateKey.generate()
        self.save_key(key)
        return key


class MemorySecretStore(SecretStore):
    """In-process store."""

    def __init__(self):
        self._lock = threading.Lock()
        self._keys: Dict[bytes, bytes] = {}
        self._preimages: Dict[bytes, bytes] = {}
        self._offers: Dict[bytes, OutPoint] = {}

    def save_key(self, key: PrivateKey) -> None:
        with self._lock:
            self._keys[key.pubkey] = key.secret

    def get_private_key(self, pubkey: bytes) -> Optional[PrivateKey]:
        with self._lock:
            secret = self._keys.get(bytes(pubkey))
        return PrivateKey(secret) if secret else None

    def save_preimage(self, preimage: bytes) -> None:
        with self._lock:
            self._preimages[preimage_hash(preimage)] = bytes(preimage)

    def get_preimage(self, hash_: bytes) -> Optional[bytes]:
        with self._lock:
            return self._preimages.get(bytes(hash_))

    def save_offer(self, script_pubkey: bytes, outpoint: OutPoint) -> None:
        with self._lock:
            self._offers[bytes(script_pubkey)] = outpoint

    def get_offer(self, script_pubkey: bytes) -> Optional[OutPoint]:
        with self._lock:
            return self._offers.get(bytes(script_pubkey))


class JsonFileSecretStore(SecretStore):
    """
    Store persisted to a single JSON file.

    Every save rewrites the file through a temp file + rename, so a crash
    never leaves a half-written store behind.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data = {"keys": {}, "preimages": {}, "offers": {}}
        if self.path.exists():
            with open(self.path, "r") as f:
                loaded = json.load(f)
            for section in self._data:
                self._data[section].update(loaded.get(section, {}))
            log.info(f"Loaded secret store from {self.path}")

    def _save(self, data: Dict[str, Dict[str, str]]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".store-")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def _put(self, section: str, key: str, value: str):
        with self._lock:
            # Memory only changes once the new file is in place
            data = {name: dict(entries) for name, entries in self._data.items()}
            data[section][key] = value
            self._save(data)
            self._data = data

    def _get(self, section: str, key: str) -> Optional[str]:
        with self._lock:
            return self._data[section].get(key)

    def save_key(self, key: PrivateKey) -> None:
        self._put("keys", key.pubkey.hex(), key.secret.hex())

    def get_private_key(self, pubkey: bytes) -> Optional[PrivateKey]:
        secret = self._get("keys", pubkey.hex())
        return PrivateKey(bytes.fromhex(secret)) if secret else None

    def save_preimage(self, preimage: bytes) -> None:
        self._put("preimages", preimage_hash(preimage).hex(), preimage.hex())

    def get_preimage(self, hash_: bytes) -> Optional[bytes]:
        preimage = self._get("preimages", hash_.hex())
        return bytes.fromhex(preimage) if preimage else None

    def save_offer(self, script_pubkey: bytes, outpoint: OutPoint) -> None:
        self._put("offers", script_pubkey.hex(), str(outpoint))

    def get_offer(self, script_pubkey: bytes) -> Optional[OutPoint]:
        outpoint = self._get("offers", script_pubkey.hex())
        return OutPoint.parse(outpoint) if outpoint else None
