"""
Persistence of learned state.

Two independent JSON blobs are kept in a key-value blob store: one for the
strategy bandit, one for the Bayesian opponent model. Loading is forgiving:
missing blobs mean a cold start, unparsable blobs are discarded, and
malformed entries inside a blob are skipped by the models themselves.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from .bandit import StrategySelector
from .bayesian import OpponentModel
from .schema import LEARNING_VERSION, LoadResult

STORAGE_KEY_PREFIX = "tictactoe_ai_"
BANDIT_KEY = f"{STORAGE_KEY_PREFIX}bandit"
BAYESIAN_KEY = f"{STORAGE_KEY_PREFIX}bayesian"


class BlobStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def put(self, key: str, text: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryBlobStore:
    def __init__(self) -> None:
        self.blobs: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.blobs.get(key)

    def put(self, key: str, text: str) -> None:
        self.blobs[key] = text

    def delete(self, key: str) -> None:
        self.blobs.pop(key, None)


class FileBlobStore:
    """One `<key>.json` file per blob inside `directory`."""

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, self._path(key))
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


@dataclass
class StoreLoadReport:
    found: bool
    bandit: Optional[LoadResult] = None
    bayesian: Optional[LoadResult] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return (self.found and self.error is None
                and self.bandit is not None and self.bandit.ok
                and self.bayesian is not None and self.bayesian.ok)


def _now_ms() -> int:
    return int(time.time() * 1000)


class LearningStore:
    def __init__(self, blob_store: BlobStore, opponent_model: OpponentModel, selector: StrategySelector) -> None:
        self.blob_store = blob_store
        self.opponent_model = opponent_model
        self.selector = selector

    def serialize(self) -> Dict[str, Dict[str, Any]]:
        stamp = {'version': LEARNING_VERSION, 'timestamp': _now_ms()}
        return {
            'bandit': {**stamp, **self.selector.stats()},
            'bayesian': {**stamp, **self.opponent_model.stats()},
        }

    def deserialize(self, bandit_blob: Any, bayesian_blob: Any) -> StoreLoadReport:
        report = StoreLoadReport(
            found=True,
            bandit=self.selector.load(bandit_blob),
            bayesian=self.opponent_model.load(bayesian_blob),
        )
        for label, result in (("bandit", report.bandit), ("bayesian", report.bayesian)):
            if not result.ok:
                logging.warning("Ignoring %s learning data: %s", label, result.error)
            elif result.skipped:
                logging.warning("Skipped %d malformed %s entries", result.skipped, label)
        return report

    def save(self) -> bool:
        blobs = self.serialize()
        try:
            self.blob_store.put(BANDIT_KEY, json.dumps(blobs['bandit']))
            self.blob_store.put(BAYESIAN_KEY, json.dumps(blobs['bayesian']))
        except OSError as e:
            logging.error("Error saving AI learning data: %s: %s", type(e).__name__, e)
            return False
        logging.debug("AI learning data saved (%d patterns)", blobs['bayesian']['totalPatterns'])
        return True

    def load(self) -> StoreLoadReport:
        try:
            bandit_text = self.blob_store.get(BANDIT_KEY)
            bayesian_text = self.blob_store.get(BAYESIAN_KEY)
        except UnicodeDecodeError as e:
            logging.warning("Discarding corrupted AI learning data: %s", e)
            self._delete_blobs()
            return StoreLoadReport(found=True, error=f"undecodable data: {e}")
        except OSError as e:
            logging.warning("Could not read AI learning data: %s", e)
            return StoreLoadReport(found=False, error=str(e))
        if not bandit_text or not bayesian_text:
            logging.info("No previous learning data found")
            return StoreLoadReport(found=False)
        try:
            bandit_blob = json.loads(bandit_text)
            bayesian_blob = json.loads(bayesian_text)
        except json.JSONDecodeError as e:
            logging.warning("Discarding corrupted AI learning data: %s", e)
            self._delete_blobs()
            return StoreLoadReport(found=True, error=f"unparsable JSON: {e}")
        report = self.deserialize(bandit_blob, bayesian_blob)
        logging.info(
            "Loaded AI learning data (%d arms, %d patterns)",
            report.bandit.loaded if report.bandit else 0,
            report.bayesian.loaded if report.bayesian else 0,
        )
        return report

    def reset(self) -> None:
        self._delete_blobs()
        self.selector.reset()
        self.opponent_model.reset()
        logging.info("AI learning data reset")

    def persistence_info(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            'hasSavedBanditData': False,
            'hasSavedBayesianData': False,
            'lastSavedTimestamp': None,
        }
        try:
            bandit_text = self.blob_store.get(BANDIT_KEY)
            info['hasSavedBanditData'] = bool(bandit_text)
            info['hasSavedBayesianData'] = bool(self.blob_store.get(BAYESIAN_KEY))
            if bandit_text:
                blob = json.loads(bandit_text)
                if isinstance(blob, dict):
                    info['lastSavedTimestamp'] = blob.get('timestamp')
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            info['error'] = str(e)
        return info

    def _delete_blobs(self) -> None:
        try:
            self.blob_store.delete(BANDIT_KEY)
            self.blob_store.delete(BAYESIAN_KEY)
        except OSError as e:
            logging.warning("Could not delete AI learning data: %s", e)
