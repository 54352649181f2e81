"""
Word2vecConfig: hyper-parameters of the toy model, with defaults scaled
down for interactive use.

Values can be folded in from a mapping (unknown keys are ignored) or
loaded from a .env file in the project root.  Lookup order for every key
is: .env file, then OS environment, then the built-in default.

Supported .env keys
-------------------
  HIDDEN_SIZE        – integer  (default 16)
  ALPHA              – float    (default 0.1)
  MIN_ALPHA          – float    (default 0.01)
  WINDOW             – integer  (default 3)
  MIN_COUNT          – integer  (default 2)
  SEED               – integer  (default 1)
  NEGATIVE           – integer  (default 5)
  ITER               – integer  (default 20)
  SG                 – boolean  (default true, false selects CBOW)
  CBOW_MEAN          – boolean  (default true)
  REPORT_INTERVAL_MS – integer  (default 250)
"""

import os
from dataclasses import dataclass, fields, asdict
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from dotenv import dotenv_values

from .errors import ConfigError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def parse_bool(value: Union[str, bool]) -> bool:
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"Cannot interpret {value!r} as a boolean.")


@dataclass
class Word2vecConfig:
    """
    Training and reporting parameters.

    Parameters
    ----------
    hidden_size : int
        Dimensionality of every word vector.
    alpha, min_alpha : float
        Learning-rate bounds; the rate anneals linearly from alpha to
        min_alpha over ``iter`` passes and then stays at min_alpha.
    window : int
        Maximum context radius.
    min_count : int
        Words seen fewer times are dropped from the vocabulary.
    seed : int
        Seed of the RandomSource.
    negative : int
        Negative draws per update.
    iter : int
        Epoch count used only for learning-rate annealing.
    sg : bool
        Skip-gram when True, CBOW otherwise.
    cbow_mean : bool
        Average (True) or sum (False) the CBOW context vectors.
    report_interval_ms : int
        Wall-clock budget of one training burst.
    """

    hidden_size: int = 16
    alpha: float = 0.1
    min_alpha: float = 0.01
    window: int = 3
    min_count: int = 2
    seed: int = 1
    negative: int = 5
    iter: int = 20
    sg: bool = True
    cbow_mean: bool = True
    report_interval_ms: int = 250
    default_query_in: Tuple[str, ...] = ("looked",)

    def update(self, overrides: Optional[Mapping[str, Any]]) -> "Word2vecConfig":
        """Fold in every known key of *overrides*; unknown keys are ignored."""
        if not overrides:
            return self
        known = {f.name for f in fields(self)}
        for key, value in overrides.items():
            if key not in known:
                continue
            setattr(self, key, _coerce(key, getattr(self, key), value))
        self.validate()
        return self

    def validate(self) -> None:
        if self.hidden_size < 1:
            raise ConfigError("hidden_size must be at least 1.")
        if self.min_count < 1:
            raise ConfigError("min_count must be at least 1.")
        if self.window < 0:
            raise ConfigError("window must not be negative.")
        if self.negative < 0:
            raise ConfigError("negative must not be negative.")
        if self.iter < 1:
            raise ConfigError("iter must be at least 1.")
        if self.min_alpha > self.alpha:
            raise ConfigError("min_alpha must not exceed alpha.")
        if self.report_interval_ms <= 0:
            raise ConfigError("report_interval_ms must be positive.")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["default_query_in"] = list(self.default_query_in)
        return data

    # ------------------------------------------------------------------
    # .env loading
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, env_path: Optional[Union[str, Path]] = None) -> "Word2vecConfig":
        """
        Build a config from a .env file (if present) and the OS environment.

        Parameters
        ----------
        env_path : str or Path, optional
            Location of the .env file; defaults to ``.env`` in the current
            working directory.  A missing file is not an error.
        """
        env = load_env(env_path)
        overrides: Dict[str, Any] = {}
        for f in fields(cls):
            raw = env_get(env, f.name.upper(), None)
            if raw is not None:
                overrides[f.name] = raw
        return cls().update(overrides)


def load_env(env_path: Optional[Union[str, Path]] = None) -> Dict[str, Optional[str]]:
    """Return the key/value pairs of *env_path*; empty dict if it is absent."""
    path = Path(env_path) if env_path is not None else Path.cwd() / ".env"
    return dict(dotenv_values(path))


def env_get(env: Mapping[str, Optional[str]], key: str, default: Optional[str]) -> Optional[str]:
    """Return value from .env, then OS environment, then the default."""
    return env.get(key) or os.environ.get(key) or default


def _coerce(key: str, current: Any, value: Any) -> Any:
    try:
        if isinstance(current, bool):
            return parse_bool(value)
        if isinstance(current, int):
            return int(value)
        if isinstance(current, float):
            return float(value)
        if isinstance(current, tuple):
            if isinstance(value, str):
                return tuple(v for v in value.replace(",", " ").split() if v)
            return tuple(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {key}: {value!r} ({exc})") from exc
    return value
