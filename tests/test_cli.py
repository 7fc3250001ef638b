import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from tictactoe_ai.cli import main

SRC = Path(__file__).resolve().parents[1] / "src"


def _run_cli(args: list[str], cwd: Path) -> subprocess.CompletedProcess:
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC), env.get("PYTHONPATH")]))
    env["TTT_MCTS_ITERATIONS"] = "100"
    exe = [sys.executable, "-m", "tictactoe_ai.cli"]
    return subprocess.run(exe + args, cwd=cwd, env=env, capture_output=True, text=True)


def test_cli_version_and_help(tmp_path: Path):
    r = _run_cli(["--version"], tmp_path)
    assert r.returncode == 0
    assert r.stdout.strip()
    r = _run_cli([], tmp_path)
    assert r.returncode == 0
    assert "usage" in r.stdout.lower()


def test_cli_move_observe_outcome_cycle(tmp_path: Path):
    store = str(tmp_path / "learn")
    r = _run_cli(["--seed", "1", "--store", store, "move", "--board", "XX-OO----", "--mark", "X",
                  "--difficulty", "hard"], tmp_path)
    assert r.returncode == 0, r.stderr
    assert r.stdout.strip() == "2"

    r = _run_cli(["--store", store, "observe", "--board", "X--------", "--move", "4"], tmp_path)
    assert r.returncode == 0, r.stderr

    r = _run_cli(["--store", store, "outcome", "--winner", "X", "--ai-mark", "X"], tmp_path)
    assert r.returncode == 0, r.stderr
    assert "Recorded win" in r.stderr

    r = _run_cli(["--store", store, "stats", "--json"], tmp_path)
    stats = json.loads(r.stdout)
    assert stats['bayesian']['totalPatterns'] == 1
    assert sum(a['wins'] for a in stats['bandit']['strategies']) == 9

    r = _run_cli(["--store", store, "reset"], tmp_path)
    assert r.returncode == 0
    r = _run_cli(["--store", store, "stats", "--json"], tmp_path)
    assert json.loads(r.stdout)['bayesian']['totalPatterns'] == 0


def test_cli_invalid_board_exit_code(tmp_path: Path):
    r = _run_cli(["--store", str(tmp_path), "move", "--board", "XXX"], tmp_path)
    assert r.returncode == 2
    assert "Invalid board" in r.stderr
    r = _run_cli(["--store", str(tmp_path), "observe", "--board", "X--------", "--move", "0"], tmp_path)
    assert r.returncode == 2


def test_cli_symmetry_and_tactics(tmp_path: Path):
    r = _run_cli(["symmetry", "--board=--X------"], tmp_path)
    assert r.returncode == 0
    assert "orbit_size=4" in r.stderr
    r = _run_cli(["tactics", "--board", "XX--O----", "--move", "2"], tmp_path)
    assert r.returncode == 0
    assert "category=BLOCK_WIN" in r.stderr


def test_cli_settings(tmp_path: Path):
    store = str(tmp_path)
    r = _run_cli(["--store", store, "settings"], tmp_path)
    assert "difficulty=medium" in r.stderr
    _run_cli(["--store", store, "settings", "--difficulty", "easy"], tmp_path)
    r = _run_cli(["--store", store, "settings"], tmp_path)
    assert "difficulty=easy" in r.stderr


def test_cli_selfplay_and_export_in_process(tmp_path: Path, capsys, monkeypatch):
    monkeypatch.setenv("TTT_MCTS_ITERATIONS", "100")
    store = str(tmp_path / "learn")
    assert main(["--seed", "0", "--store", store, "selfplay", "--games", "2", "--opponent", "patterned"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary['games'] == 2
    out = tmp_path / "exp"
    assert main(["--store", store, "export", "--out", str(out)]) == 0
    assert (out / "manifest.json").exists()
    assert (out / "ttt_ai_arms.csv").exists()


@pytest.mark.parametrize("argv", [
    ["selfplay", "--games", "-1"],
    ["move", "--board=---------", "--ai-history", "0,9"],
])
def test_cli_rejects_bad_numbers(argv, tmp_path: Path):
    assert main(["--store", str(tmp_path)] + argv) == 2


def test_cli_recovers_from_undecodable_store(tmp_path: Path):
    (tmp_path / "tictactoe_ai_bandit.json").write_bytes(b"\xff\xfe")
    (tmp_path / "tictactoe_ai_bayesian.json").write_text("{}", encoding="utf-8")
    assert main(["--store", str(tmp_path), "reset"]) == 0
    assert list(tmp_path.iterdir()) == []
