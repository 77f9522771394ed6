# selection/greedy.py
import enum
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from strart.errors import InvalidConfigurationError, MissingSourceError
from strart.scoring.delta import score_chord
from strart.selection.overlap import chord_allowed
from strart.simulation.residual_canvas import ResidualCanvas
from strart.utils.generate_nails import Nail, nail_ring_for_canvas
from strart.utils.line_cache import LineCache

DEFAULT_PARAMS = dict(
    num_nails=200,
    max_chords=2000,
    darkening=25.0,
    downscale=1,
    overlap_threshold=None,
    invert=True,
    start_nail=0,           # int or 'random'
    seed=None,              # only used when start_nail == 'random'
    min_delta=0.0,          # a chord must score strictly below this
    normalize=False,
    weight_dark=False,
    workers=1,
    nail_margin=10.0,
    radius=None,            # None -> derived from canvas size and nail_margin
    center=None,
)


class BuilderState(enum.Enum):
    READY = "ready"
    SELECTING = "selecting"
    COMMITTED = "committed"
    DONE = "done"


class StopReason(enum.Enum):
    NO_IMPROVEMENT_FOUND = "no_improvement_found"
    MAX_CHORDS = "max_chords"


@dataclass
class RunResult:
    sequence: Tuple[Tuple[int, int], ...]
    stop_reason: StopReason
    start_nail: int
    nails: List[Nail]
    canvas: ResidualCanvas
    log: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        """True when the run ended because no chord improved the picture."""
        return self.stop_reason is StopReason.NO_IMPROVEMENT_FOUND


def _is_int(v) -> bool:
    return isinstance(v, (int, np.integer)) and not isinstance(v, bool)


def validate_params(P: Dict[str, Any]) -> None:
    if not _is_int(P['num_nails']) or P['num_nails'] < 2:
        raise InvalidConfigurationError(f"num_nails must be an integer >= 2, got {P['num_nails']!r}")
    if not _is_int(P['max_chords']) or P['max_chords'] <= 0:
        raise InvalidConfigurationError(f"max_chords must be a positive integer, got {P['max_chords']!r}")
    if not P['darkening'] > 0:
        raise InvalidConfigurationError(f"darkening must be > 0, got {P['darkening']!r}")
    if not _is_int(P['downscale']) or P['downscale'] < 1:
        raise InvalidConfigurationError(f"downscale must be an integer >= 1, got {P['downscale']!r}")
    thr = P['overlap_threshold']
    if thr is not None and not thr >= 0:
        raise InvalidConfigurationError(f"overlap_threshold must be >= 0, got {thr!r}")
    if not P['min_delta'] <= 0:
        raise InvalidConfigurationError(f"min_delta must be <= 0, got {P['min_delta']!r}")
    if not _is_int(P['workers']) or P['workers'] < 1:
        raise InvalidConfigurationError(f"workers must be an integer >= 1, got {P['workers']!r}")
    if P['radius'] is not None and not P['radius'] > 0:
        raise InvalidConfigurationError(f"radius must be > 0, got {P['radius']!r}")
    s = P['start_nail']
    if s != 'random' and not (_is_int(s) and 0 <= s < P['num_nails']):
        raise InvalidConfigurationError(
            f"start_nail must be 'random' or an index in [0, {P['num_nails']}), got {s!r}"
        )


def merge_params(params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    P = dict(DEFAULT_PARAMS)
    if params:
        unknown = sorted(set(params) - set(DEFAULT_PARAMS))
        if unknown:
            raise InvalidConfigurationError(f"unknown parameter(s): {', '.join(unknown)}")
        P.update(params)
    validate_params(P)
    return P


class GreedyPathBuilder:
    """
    Greedy chord sequencer.

    From the current nail every other nail is scored with the delta evaluator;
    the most negative delta (strictly below `min_delta`, lowest nail index on
    ties) is committed, its pixels are darkened on the residual canvas and its
    far nail becomes the next start. Stops when nothing improves or after
    `max_chords` chords.

    The target field is read-only; canvas and sequence belong to the builder and
    are rebuilt at the start of every run.
    """
    def __init__(self, target_field, params=None, rng=None, line_cache: Optional[LineCache] = None):
        if target_field is None:
            raise MissingSourceError("No target field supplied")
        self.P = merge_params(params)

        target = np.array(target_field, dtype=np.float64)
        if target.ndim != 2 or target.size == 0:
            raise InvalidConfigurationError(f"target field must be a non-empty 2D grid, got shape {target.shape}")
        if not np.all(np.isfinite(target)) or target.min() < 0.0 or target.max() > 255.0:
            raise InvalidConfigurationError("target field values must lie in [0, 255]")
        self.target = target
        self.target.setflags(write=False)
        self.H, self.W = target.shape

        S = self.P['downscale']
        self.full_hw = (self.H * S, self.W * S)
        self.nails = nail_ring_for_canvas(
            self.full_hw, self.P['num_nails'], margin=self.P['nail_margin'],
            radius=self.P['radius'], center=self.P['center'],
        )
        if line_cache is None:
            line_cache = LineCache(self.nails, (self.H, self.W), S)
        elif not line_cache.matches(self.nails, (self.H, self.W), S):
            raise InvalidConfigurationError("line cache was built for a different nail ring or grid")
        self.lines = line_cache

        self.rng = rng
        self._pool = None
        self.reset()

    def reset(self):
        self.canvas = ResidualCanvas(self.H, self.W, invert=self.P['invert'])
        self.sequence: List[Tuple[int, int]] = []
        self.log: List[Dict[str, Any]] = []
        self.current = None
        self.state = BuilderState.READY

    def _pick_start(self) -> int:
        s = self.P['start_nail']
        if s == 'random':
            rng = self.rng if self.rng is not None else np.random.default_rng(self.P['seed'])
            return int(rng.integers(0, self.P['num_nails']))
        return int(s)

    def _candidates(self) -> List[int]:
        c = self.current
        thr = self.P['overlap_threshold']
        out = []
        for j in range(len(self.nails)):
            if j == c:
                continue
            # anchors on the same cell give a single-pixel chord with no direction
            if len(self.lines.get(c, j)[1]) <= 1:
                continue
            if thr is not None and not chord_allowed((c, j), self.sequence, self.nails, thr):
                continue
            out.append(j)
        return out

    def _score(self, j: int) -> float:
        return score_chord(
            self.target, self.canvas, self.lines, self.current, j,
            self.P['darkening'], normalize=self.P['normalize'], weight_dark=self.P['weight_dark'],
        )

    def select_next(self) -> Tuple[int, float]:
        """Best (nail, delta) from the current nail, or (-1, min_delta) if none improves."""
        self.state = BuilderState.SELECTING
        cand = self._candidates()

        # fill the cache up front so workers only read shared state
        for j in cand:
            self.lines.get(self.current, j)

        if self._pool is not None and len(cand) > 1:
            deltas = list(self._pool.map(self._score, cand))
        else:
            deltas = [self._score(j) for j in cand]

        best_j = -1
        best = float(self.P['min_delta'])
        for j, d in zip(cand, deltas):
            if d < best:
                best = d
                best_j = j
        return best_j, best

    def commit(self, j: int, delta: float) -> Dict[str, Any]:
        c = self.current
        ys, xs = self.lines.get(c, j)
        self.canvas.apply(ys, xs, self.P['darkening'])
        self.sequence.append((c, j))
        info = {
            "t": len(self.sequence),
            "from": int(c), "to": int(j),
            "delta": float(delta),
            "length": int(len(xs)),
        }
        self.log.append(info)
        self.current = j
        self.state = BuilderState.COMMITTED
        return info

    def run(self, on_step=None) -> RunResult:
        """
        One full generation. `on_step(t, info)` is called after every commit.
        """
        self.reset()
        self.current = self._pick_start()
        start = self.current
        stop = StopReason.MAX_CHORDS

        workers = self.P['workers']
        self._pool = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
        try:
            for _ in range(self.P['max_chords']):
                best_j, best = self.select_next()
                if best_j < 0:
                    stop = StopReason.NO_IMPROVEMENT_FOUND
                    break
                info = self.commit(best_j, best)
                if on_step:
                    on_step(info["t"], info)
        finally:
            if self._pool is not None:
                self._pool.shutdown(wait=True)
            self._pool = None

        self.state = BuilderState.DONE
        return RunResult(
            sequence=tuple(self.sequence),
            stop_reason=stop,
            start_nail=start,
            nails=self.nails,
            canvas=self.canvas,
            log=list(self.log),
        )


def generate_sequence(target_field, params=None, rng=None, on_step=None,
                      line_cache: Optional[LineCache] = None) -> RunResult:
    """Build a fresh builder for `target_field` and run it once."""
    return GreedyPathBuilder(target_field, params, rng=rng, line_cache=line_cache).run(on_step=on_step)
