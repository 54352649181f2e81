"""
train.py - Interactive-style demo of the toy word2vec session.

Usage
-----
    python -m toy_word2vec.train

Trains in short bursts and prints the nearest words to the query after
each one, the way the UI redraws its leaderboard.

Configuration is loaded from a .env file in the current directory.
All keys are optional; built-in defaults are used for any missing key.
Model keys are documented in toy_word2vec.config.  Demo keys:

  TEXT_SOURCE     – path to a tokenized corpus, one sentence per line
  QUERY_IN        – space-separated query terms, '-' prefix subtracts
  WATCH           – space-separated words whose rank is always reported
  BURSTS          – integer  (default 10)
  BURST_INSTANCES – integer  (default 2000, instances per burst)
"""

from pathlib import Path
from typing import List

from .config import Word2vecConfig, env_get, load_env
from .errors import UnknownTermError
from .ranker import QueryStatus
from .session import Session, SessionState, SessionStatus

_ENV_PATH = Path.cwd() / ".env"
_env = load_env(_ENV_PATH)

TEXT_SOURCE: str = env_get(_env, "TEXT_SOURCE", "")
QUERY_IN: str = env_get(_env, "QUERY_IN", "")
WATCH: str = env_get(_env, "WATCH", "")
BURSTS: int = int(env_get(_env, "BURSTS", "10"))
BURST_INSTANCES: int = int(env_get(_env, "BURST_INSTANCES", "2000"))

# ===========================================================================
# Dummy corpus (used when TEXT_SOURCE is not set)
# ===========================================================================

DUMMY_TEXT = "\n".join([
    "the king looked at the queen",
    "the queen looked at the king",
    "a man looked at the woman",
    "the woman looked at a man",
    "the king is a man",
    "the queen is a woman",
    "the king listened to the queen",
    "the woman listened to the man",
    "the prince is the son of the king",
    "the princess is the daughter of the queen",
    "a boy is a young man",
    "a girl is a young woman",
] * 10)


def load_text() -> str:
    """
    Try to load the corpus specified by TEXT_SOURCE.
    Falls back to the built-in dummy corpus in case of an error.
    """
    if not TEXT_SOURCE:
        print("[corpus] TEXT_SOURCE not set – using dummy corpus.")
        return DUMMY_TEXT

    try:
        path = Path(TEXT_SOURCE)
        print(f"[corpus] Trying to load corpus from '{path}' …")
        text = path.read_text(encoding="utf-8")
        print(f"[corpus] Loaded {len(text):,} characters from '{path.name}'.")
        return text
    except FileNotFoundError:
        print(f"[corpus] WARNING: '{TEXT_SOURCE}' not found – falling back to dummy corpus.")
    except OSError as exc:
        print(f"[corpus] WARNING: Could not read '{TEXT_SOURCE}' ({exc}) – falling back to dummy corpus.")

    return DUMMY_TEXT


def format_state(state: SessionState) -> List[str]:
    lines = [
        f"  [{state.status.value}]  "
        f"epoch {state.epochs}  sentence {state.sentences:,}/{state.num_sentences:,}  "
        f"instances {state.instances:,}  lr {state.learning_rate:.6f}"
    ]
    for record in state.query_out_records:
        marker = "" if record.status is QueryStatus.NORMAL else f"  ({record.status.value})"
        lines.append(f"    {record.rank:>5}  {record.query}{marker}")
    return lines


def main() -> None:
    if _ENV_PATH.exists():
        print(f"[config] Loaded .env from '{_ENV_PATH}'")
    else:
        print("[config] No .env file found – using built-in defaults.")
    config = Word2vecConfig.from_env(_ENV_PATH)

    # ------------------------------------------------------------------
    # 1. Corpus & vocabulary
    # ------------------------------------------------------------------
    print("=" * 60)
    print("Step 1 – Loading corpus and building vocabulary …")
    session = Session(config)
    session.set_corpus(load_text())
    session.init_model()

    # ------------------------------------------------------------------
    # 2. Query
    # ------------------------------------------------------------------
    print("\nStep 2 – Setting query …")
    query_in = QUERY_IN.split() or list(config.default_query_in)
    watch = [(w, QueryStatus.WATCHED) for w in WATCH.split()]
    try:
        session.update_query(query_in, watch)
    except UnknownTermError as exc:
        print(f"[query] {exc.message}")
        return
    print(f"  query-in : {' '.join(query_in)}")

    # ------------------------------------------------------------------
    # 3. Training bursts
    # ------------------------------------------------------------------
    print(f"\nStep 3 – Training …  ({BURSTS} bursts of {BURST_INSTANCES:,} instances)")
    print("=" * 60)
    for _ in range(BURSTS):
        state = session.train(BURST_INSTANCES)
        while state.status is SessionStatus.AUTO_BREAK:
            state = session.train_continue()
        print("\n".join(format_state(state)))

    print("\nTraining paused.")


if __name__ == "__main__":
    main()
