from __future__ import annotations

from typing import Any, Iterable, Mapping

from .models import AnyCondition, Condition, ConditionGroup, LocatedField


def _to_float(v: Any) -> float | None:
    try:
        return float(v)
    except (TypeError, ValueError):
        return None


def _as_text(v: Any) -> str:
    return "" if v is None else str(v)


def evaluate(condition: AnyCondition, answers: Mapping[str, Any]) -> bool:
    if isinstance(condition, ConditionGroup):
        results = (evaluate(c, answers) for c in condition.conditions)
        return any(results) if condition.operator == "or" else all(results)

    actual = answers.get(condition.field)
    op = condition.operator

    if op in ("equals", "not_equals"):
        if isinstance(actual, (list, tuple)):
            hit = _as_text(condition.value) in {_as_text(v) for v in actual}
        else:
            hit = _as_text(actual) == _as_text(condition.value)
        return hit if op == "equals" else not hit

    if op in ("greater_than", "less_than"):
        left, right = _to_float(actual), _to_float(condition.value)
        if left is None or right is None:
            return False
        return left > right if op == "greater_than" else left < right

    raise ValueError(f"Unknown condition operator: {op}")


def all_hold(conditions: Iterable[AnyCondition], answers: Mapping[str, Any]) -> bool:
    return all(evaluate(c, answers) for c in conditions)


def is_active(located: LocatedField, answers: Mapping[str, Any]) -> bool:
    """True when the section, every enclosing wrapper and the field's own condition hold."""
    return all_hold(located.gates, answers)


def iter_conditions(condition: AnyCondition):
    if isinstance(condition, ConditionGroup):
        for c in condition.conditions:
            yield from iter_conditions(c)
    else:
        yield condition


__all__ = ["Condition", "ConditionGroup", "evaluate", "all_hold", "is_active", "iter_conditions"]
