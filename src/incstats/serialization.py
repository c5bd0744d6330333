"""
Serialization of statistics state.

Payloads are tagged variants::

    {"type": "moments",  "state": {"count", "count_zero", "sum", "sse"}}
    {"type": "advanced", "state": {... , "integer_multiplier", "gcd",
                                   "frequencies": [[value, count], ...],
                                   "scale_counts": [[scale, count], ...]}}

Trackers and sample wrappers add a ``"wrapper"`` tag naming their class, so
:func:`from_payload` rebuilds the same kind of object. Restoring never replays
history: the engine state is installed directly and validated.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Tuple

from incstats._errors import ArgumentError, StatisticsError
from incstats.advanced import AdvancedAccumulator
from incstats.moments import MomentAccumulator
from incstats.sample import AdvancedSampleStatistics, SampleStatistics
from incstats.trackers import AdvancedStatisticsTracker, SimpleStatisticsTracker, StatisticsTracker

__all__ = ["to_payload", "from_payload", "dumps", "loads"]


_ENGINE_TYPES = {
    "moments": MomentAccumulator,
    "advanced": AdvancedAccumulator,
}

_ENGINE_TAGS = {engine_type: tag for tag, engine_type in _ENGINE_TYPES.items()}

_WRAPPERS = {
    cls.__name__: cls
    for cls in (
        SimpleStatisticsTracker,
        AdvancedStatisticsTracker,
        SampleStatistics,
        AdvancedSampleStatistics,
    )
}

_MOMENT_KEYS = ("count", "count_zero", "sum", "sse")
_ADVANCED_KEYS = _MOMENT_KEYS + ("integer_multiplier", "gcd", "frequencies", "scale_counts")


# =============================================================================
# Encoding
# =============================================================================

def _pairs(mapping: Dict[Any, int]) -> List[List[Any]]:
    return [[key, count] for key, count in mapping.items()]


def _engine_of(obj):
    if isinstance(obj, (MomentAccumulator, AdvancedAccumulator)):
        return obj, None
    if isinstance(obj, (StatisticsTracker, SampleStatistics)):
        return obj._engine, type(obj).__name__
    raise TypeError(f"Cannot serialize object of type {type(obj).__name__}")


def to_payload(obj) -> Dict[str, Any]:
    """
    Encode an engine, tracker or sample as a JSON-compatible dict.

    Raises:
        TypeError: If ``obj`` is not a supported statistics object
    """
    engine, wrapper = _engine_of(obj)
    state = engine.to_state()
    if isinstance(engine, AdvancedAccumulator):
        state["frequencies"] = _pairs(state["frequencies"])
        state["scale_counts"] = _pairs(state["scale_counts"])

    payload = {"type": _ENGINE_TAGS[type(engine)], "state": state}
    if wrapper is not None:
        payload["wrapper"] = wrapper
    return payload


def dumps(obj, **kwargs) -> str:
    """JSON text of :func:`to_payload`; keyword arguments go to ``json.dumps``."""
    return json.dumps(to_payload(obj), **kwargs)


# =============================================================================
# Decoding
# =============================================================================

def _as_pair_list(raw: Any, name: str) -> List[Tuple[Any, Any]]:
    if not isinstance(raw, list):
        raise ArgumentError(f"'{name}' must be a list of [key, count] pairs")
    pairs = []
    for item in raw:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            raise ArgumentError(f"'{name}' entry {item!r} is not a [key, count] pair")
        key, count = item
        if isinstance(count, bool) or not isinstance(count, int):
            raise ArgumentError(f"'{name}' count {count!r} is not an integer")
        pairs.append((key, count))
    return pairs


def _decode_state(tag: str, state: Any) -> Dict[str, Any]:
    if not isinstance(state, dict):
        raise ArgumentError("Payload 'state' must be an object")

    keys = _ADVANCED_KEYS if tag == "advanced" else _MOMENT_KEYS
    missing = [key for key in keys if key not in state]
    if missing:
        raise ArgumentError(f"Payload state is missing {', '.join(missing)}")
    unknown = sorted(set(state) - set(keys))
    if unknown:
        raise ArgumentError(f"Payload state has unknown field(s) {', '.join(unknown)}")

    decoded = {key: state[key] for key in keys}
    if tag == "advanced":
        decoded["frequencies"] = _as_pair_list(state["frequencies"], "frequencies")
        decoded["scale_counts"] = _as_pair_list(state["scale_counts"], "scale_counts")
    return decoded


def from_payload(payload: Any):
    """
    Rebuild the object encoded by :func:`to_payload`.

    Raises:
        ArgumentError: If the payload is malformed or its state inconsistent
    """
    if not isinstance(payload, dict):
        raise ArgumentError(f"Payload must be an object, got {type(payload).__name__}")

    tag = payload.get("type")
    if tag not in _ENGINE_TYPES:
        raise ArgumentError(f"Unknown payload type {tag!r}")
    state = _decode_state(tag, payload.get("state"))

    try:
        engine = _ENGINE_TYPES[tag].from_state(**state)
    except StatisticsError:
        raise
    except (TypeError, ValueError) as e:
        raise ArgumentError(f"Invalid {tag} state: {e}") from e

    wrapper = payload.get("wrapper")
    if wrapper is None:
        return engine
    if wrapper not in _WRAPPERS:
        raise ArgumentError(f"Unknown wrapper {wrapper!r}")

    cls = _WRAPPERS[wrapper]
    if cls._engine_type is not type(engine):
        raise ArgumentError(f"Wrapper {wrapper} cannot hold a {tag} state")
    if hasattr(cls, "from_engine"):
        return cls.from_engine(engine)
    return cls(engine)


def loads(text: str):
    """
    Inverse of :func:`dumps`.

    Raises:
        ArgumentError: If ``text`` is not valid JSON or not a valid payload
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ArgumentError(f"Invalid JSON payload: {e}") from e
    return from_payload(payload)
