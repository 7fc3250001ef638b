from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List

from .arena import OPPONENTS, run_selfplay
from .bayesian import top_moves
from .config import EngineConfig
from .engine import AdaptiveEngine
from .export import EXPORT_FORMATS, export_learned_state
from .game_basics import MARKS, VARIANTS, current_player, deserialize_board
from .paths import export_dir, learning_dir
from .settings import DIFFICULTIES, SettingsStore
from .store import FileBlobStore
from .symmetry import canonicalize, orbit_size
from .tactics import classify_move, fork_moves, immediate_winning_moves
from .tracking import log_arena_summary, maybe_mlflow_run


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ttt-ai", description="Adaptive tic-tac-toe AI")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--seed", type=int, default=None, help="Seed for the engine's random generator")
    p.add_argument(
        "--store",
        type=Path,
        default=None,
        help="Directory holding learned state (default: $TTT_LEARNING_DIR or ./ai_learning)",
    )

    p_move = sub.add_parser("move", help="Compute the AI's move for a board")
    p_move.add_argument("--board", required=True,
                        help="9 chars of X/O/-, e.g. X-O------ (use --board=... when it starts with -)")
    p_move.add_argument("--mark", choices=MARKS, default=None, help="AI mark (default: side to move)")
    p_move.add_argument("--variant", choices=VARIANTS, default="classic")
    p_move.add_argument("--difficulty", choices=DIFFICULTIES, default=None,
                        help="Difficulty (default: saved setting)")
    p_move.add_argument("--ai-history", default="", help="AI placements oldest first, e.g. 0,4,8")
    p_move.add_argument("--opp-history", default="", help="Opponent placements oldest first")

    p_obs = sub.add_parser("observe", help="Record an opponent move for the opponent model")
    p_obs.add_argument("--board", required=True, help="Board before the move")
    p_obs.add_argument("--move", type=int, required=True, help="Cell index 0-8")

    p_out = sub.add_parser("outcome", help="Record a finished game for the strategy bandit")
    p_out.add_argument("--winner", choices=["X", "O", "draw"], required=True)
    p_out.add_argument("--ai-mark", choices=MARKS, required=True)

    p_stats = sub.add_parser("stats", help="Show learned statistics")
    p_stats.add_argument("--json", action="store_true", help="Print the full statistics as JSON")
    p_stats.add_argument("--top", type=int, default=3, help="Predicted moves to list per pattern")

    sub.add_parser("reset", help="Forget all learned state")

    p_sym = sub.add_parser("symmetry", help="Show the canonical form of a board")
    p_sym.add_argument("--board", required=True)

    p_tac = sub.add_parser("tactics", help="List immediate wins and forks for the side to move")
    p_tac.add_argument("--board", required=True)
    p_tac.add_argument("--move", type=int, default=None, help="Also classify this move")

    p_self = sub.add_parser("selfplay", help="Play the engine against a scripted opponent")
    p_self.add_argument("--games", type=int, default=20)
    p_self.add_argument("--opponent", choices=OPPONENTS, default="random")
    p_self.add_argument("--variant", choices=VARIANTS, default="classic")
    p_self.add_argument("--difficulty", choices=DIFFICULTIES, default="hard")
    p_self.add_argument("--ai-mark", choices=MARKS, default="X")
    p_self.add_argument("--tracking", choices=["none", "mlflow"], default="none",
                        help="Experiment tracking backend")
    p_self.add_argument("--log-dir", type=Path, default=Path("runs"),
                        help="Directory for tracking logs (mlflow local backend)")

    p_export = sub.add_parser(
        "export",
        help="Export learned state (CSV by default; parquet requires pandas+pyarrow)",
    )
    p_export.add_argument("--out", type=Path, default=None,
                          help="Output directory (default: $TTT_EXPORT_DIR or ./exports)")
    p_export.add_argument("--format", choices=EXPORT_FORMATS, default="csv")

    p_set = sub.add_parser("settings", help="Show or save the default difficulty")
    p_set.add_argument("--difficulty", choices=DIFFICULTIES, default=None)

    return p


def _parse_history(raw: str) -> List[int]:
    cells = [int(x) for x in raw.split(',') if x.strip()]
    if any(c < 0 or c > 8 for c in cells):
        raise ValueError(f"History cells must be 0-8, got {raw!r}")
    return cells


def _open_engine(ns: argparse.Namespace) -> AdaptiveEngine:
    store = FileBlobStore(ns.store or learning_dir())
    engine = AdaptiveEngine(EngineConfig.from_env(), blob_store=store, seed=ns.seed)
    engine.load()
    return engine


def _log_stats(engine: AdaptiveEngine, top: int) -> None:
    stats = engine.stats()
    logging.info("current_strategy=%s", stats['bandit']['currentStrategy'])
    for arm in stats['bandit']['strategies']:
        logging.info(
            "%-10s W/L/D=%g/%g/%g expected=%.3f",
            arm['name'], arm['wins'], arm['losses'], arm['draws'], arm['expectedValue'],
        )
    logging.info("patterns=%d", stats['bayesian']['totalPatterns'])
    for detail in stats['bayesian']['patternDetails']:
        entry = engine.opponent_model.entry(detail['boardState'])
        ranked = ", ".join(f"{m}:{p:.2f}" for m, p in top_moves(entry, top))
        logging.info("  %s n=%d top=[%s]", detail['boardState'], detail['observations'], ranked)


def _run(ns: argparse.Namespace) -> int:
    if ns.cmd == "move":
        engine = _open_engine(ns)
        board = deserialize_board(ns.board)
        mark = ns.mark or current_player(board)
        difficulty = ns.difficulty or SettingsStore(engine.store.blob_store).load_difficulty()
        move = engine.compute_move(
            board, mark, ns.variant,
            _parse_history(ns.ai_history), _parse_history(ns.opp_history), difficulty,
        )
        # persist the selected arm so a later `outcome` credits it
        engine.save()
        logging.info("mark=%s difficulty=%s strategy=%s", mark, difficulty, engine.selector.current)
        print(move)
        return 0

    if ns.cmd == "observe":
        engine = _open_engine(ns)
        entry = engine.opponent_model.observe(deserialize_board(ns.board), ns.move)
        engine.save()
        logging.info("pattern=%s observations=%d", entry.board_state, entry.total_observations)
        return 0

    if ns.cmd == "outcome":
        engine = _open_engine(ns)
        winner = None if ns.winner == "draw" else ns.winner
        result = engine.record_game_outcome(winner, ns.ai_mark)
        if result is None:
            logging.warning("No strategy has been selected yet; outcome not recorded")
        else:
            logging.info("Recorded %s", result)
        return 0

    if ns.cmd == "stats":
        engine = _open_engine(ns)
        if ns.json:
            print(json.dumps(engine.stats(), indent=2))
        else:
            _log_stats(engine, ns.top)
        return 0

    if ns.cmd == "reset":
        _open_engine(ns).reset()
        return 0

    if ns.cmd == "symmetry":
        board = deserialize_board(ns.board)
        canonical, op = canonicalize(board)
        logging.info("canonical_form=%s orbit_size=%d op=%s", canonical, orbit_size(board), op)
        return 0

    if ns.cmd == "tactics":
        board = deserialize_board(ns.board)
        mark = current_player(board)
        logging.info(
            "to_move=%s wins=%s forks=%s",
            mark, immediate_winning_moves(board, mark), fork_moves(board, mark),
        )
        if ns.move is not None:
            if not 0 <= ns.move <= 8:
                raise ValueError(f"Move out of range: {ns.move}")
            logging.info("move=%d category=%s", ns.move, classify_move(board, ns.move, mark))
        return 0

    if ns.cmd == "selfplay":
        if ns.games < 0:
            logging.error("--games must be >= 0")
            return 2
        engine = _open_engine(ns)
        with maybe_mlflow_run(ns.tracking == "mlflow", run_name="selfplay", log_dir=ns.log_dir):
            summary = run_selfplay(engine, ns.games, ns.opponent, ns.variant, ns.difficulty, ns.ai_mark)
            log_arena_summary(summary)
        print(json.dumps(summary.to_dict(), indent=2))
        return 0

    if ns.cmd == "export":
        engine = _open_engine(ns)
        result = export_learned_state(engine, ns.out or export_dir(), ns.format)
        logging.info("Exported learned state to: %s", result.out)
        return 0

    if ns.cmd == "settings":
        settings = SettingsStore(FileBlobStore(ns.store or learning_dir()))
        if ns.difficulty is not None:
            if not settings.save_difficulty(ns.difficulty):
                return 1
        logging.info("difficulty=%s", settings.load_difficulty())
        return 0

    return -1


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if getattr(ns, "version", False):
        try:
            from importlib.metadata import version as _ver

            print(_ver("tictactoe-ai"))
        except Exception:
            print("unknown")
        return 0

    try:
        code = _run(ns)
    except ValueError as e:
        logging.error("%s", e)
        return 2
    except RuntimeError as e:
        logging.error("%s", e)
        return 1
    if code == -1:
        parser.print_help()
        return 0
    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
