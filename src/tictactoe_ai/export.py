"""
Export of the learned state (bandit arms and opponent patterns) as tabular
files plus a manifest for provenance.
"""
from __future__ import annotations

import csv
import hashlib
import importlib.util
import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

from .engine import AdaptiveEngine
from .paths import get_git_commit, get_git_is_dirty
from .schema import LEARNING_VERSION
from .tracking import log_artifact, log_params

EXPORT_FORMATS = ("csv", "parquet", "both")
ARM_FIELDS = ['name', 'wins', 'losses', 'draws', 'total', 'win_rate', 'alpha', 'beta', 'expected_value']
PATTERN_FIELDS = ['board_state', 'move', 'probability', 'total_observations']

PARQUET_MISSING = (
    "Parquet dependencies not available (install pandas and pyarrow). "
    "Use pip install .[parquet] to enable parquet support."
)


@dataclass
class ExportResult:
    out: Path
    arm_rows: int
    pattern_rows: int
    wrote_csv: bool
    wrote_parquet: bool
    manifest: Path


def _snapshot(source: Union[AdaptiveEngine, Mapping[str, Any]]) -> Mapping[str, Any]:
    if isinstance(source, AdaptiveEngine):
        return {'bandit': source.selector.stats(), 'bayesian': source.opponent_model.stats()}
    return source


def arm_rows(bandit: Mapping[str, Any]) -> List[Dict[str, Any]]:
    rows = []
    for arm in bandit.get('strategies', []):
        rows.append({
            'name': arm['name'],
            'wins': arm['wins'],
            'losses': arm['losses'],
            'draws': arm['draws'],
            'total': arm['total'],
            'win_rate': arm['winRate'],
            'alpha': arm['alpha'],
            'beta': arm['beta'],
            'expected_value': arm['expectedValue'],
        })
    return rows


def pattern_rows(bayesian: Mapping[str, Any]) -> List[Dict[str, Any]]:
    rows = []
    for pattern in bayesian.get('patternDetails', []):
        for item in pattern['probabilities']:
            rows.append({
                'board_state': pattern['boardState'],
                'move': item['move'],
                'probability': item['probability'],
                'total_observations': pattern['observations'],
            })
    rows.sort(key=lambda r: (r['board_state'], r['move']))
    return rows


def _write_csv(path: Path, fieldnames: List[str], rows: List[Dict[str, Any]]) -> None:
    with path.open('w', newline='') as f:
        w = csv.DictWriter(f, fieldnames=fieldnames)
        w.writeheader()
        for r in rows:
            w.writerow(r)


def _sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open('rb') as f:
        for chunk in iter(lambda: f.read(8192), b''):
            h.update(chunk)
    return h.hexdigest()


def _have_parquet() -> bool:
    return (importlib.util.find_spec('pandas') is not None
            and importlib.util.find_spec('pyarrow') is not None)


def export_learned_state(
    source: Union[AdaptiveEngine, Mapping[str, Any]],
    out: Path,
    format: str = "csv",
) -> ExportResult:
    fmt = (format or "csv").lower()
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unknown export format: {format}")
    want_parquet = fmt in {"parquet", "both"}
    if fmt == "parquet" and not _have_parquet():
        raise RuntimeError(PARQUET_MISSING)

    snapshot = _snapshot(source)
    arms = arm_rows(snapshot.get('bandit', {}))
    patterns = pattern_rows(snapshot.get('bayesian', {}))

    out = Path(out)
    out.mkdir(parents=True, exist_ok=True)
    files: Dict[str, Path] = {}

    if fmt in {"csv", "both"}:
        files['arms_csv'] = out / 'ttt_ai_arms.csv'
        files['patterns_csv'] = out / 'ttt_ai_patterns.csv'
        _write_csv(files['arms_csv'], ARM_FIELDS, arms)
        _write_csv(files['patterns_csv'], PATTERN_FIELDS, patterns)
        logging.info("Wrote CSVs: %s (%d rows), %s (%d rows)",
                     files['arms_csv'], len(arms), files['patterns_csv'], len(patterns))

    wrote_parquet = False
    if want_parquet:
        if _have_parquet():
            import pandas as pd  # type: ignore

            files['arms_parquet'] = out / 'ttt_ai_arms.parquet'
            files['patterns_parquet'] = out / 'ttt_ai_patterns.parquet'
            pd.DataFrame(arms, columns=ARM_FIELDS).to_parquet(files['arms_parquet'])
            pd.DataFrame(patterns, columns=PATTERN_FIELDS).to_parquet(files['patterns_parquet'])
            wrote_parquet = True
            logging.info("Wrote Parquet files to %s", out)
        else:
            logging.warning("%s Proceeding with CSV only; manifest will record parquet_written=false.",
                            PARQUET_MISSING)

    packages: Dict[str, str] = {}
    for pkg in ("numpy", "pandas", "pyarrow"):
        if importlib.util.find_spec(pkg) is not None:
            ver = getattr(__import__(pkg), "__version__", None)
            if ver:
                packages[pkg] = ver

    manifest = {
        "learning_version": LEARNING_VERSION,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "format": fmt,
        "git_commit": get_git_commit(),
        "git_is_dirty": get_git_is_dirty(),
        "python": {"python_version": sys.version.split(" ")[0], "packages": packages},
        "row_counts": {"arms": len(arms), "patterns": len(patterns)},
        "files": {label: str(path) for label, path in files.items()},
        "checksums": {label: _sha256_file(path) for label, path in files.items()},
        "parquet_written": wrote_parquet,
    }
    manifest_path = out / "manifest.json"
    manifest_path.write_text(json.dumps(manifest, indent=2))
    logging.info("Wrote manifest.json")

    log_params({"format": fmt, "rows_arms": len(arms), "rows_patterns": len(patterns)})
    log_artifact(manifest_path)

    return ExportResult(
        out=out,
        arm_rows=len(arms),
        pattern_rows=len(patterns),
        wrote_csv=fmt in {"csv", "both"},
        wrote_parquet=wrote_parquet,
        manifest=manifest_path,
    )
