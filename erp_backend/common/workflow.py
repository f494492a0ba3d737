# common/workflow.py

"""
======================================================
PATH: common/workflow.py
======================================================
DOCUMENT WORKFLOW (GENERIC STATUS MACHINE)

Every posted document (invoice, sales order, GRN, stock adjustment,
delivery note) follows the same shape: a linear status progression with
guarded transitions. This module is the single place that shape lives;
each document type instantiates one Workflow with its own table.

Rules:
- A transition is attempted only from one of its source statuses.
- Anything else raises InvalidTransitionError naming the required status.
- Transitions are one-shot (no retry inside the machine).
- No database locking here: callers lock the row (select_for_update)
  before validating, and apply() inside the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from django.utils import timezone

from common.exceptions import InvalidTransitionError


@dataclass(frozen=True)
class Transition:
    name: str
    sources: frozenset
    target: str
    stamp_field: str | None = None

    @classmethod
    def build(cls, name: str, sources: Iterable[str], target: str, *, stamp_field=None):
        return cls(name=name, sources=frozenset(sources), target=target, stamp_field=stamp_field)


@dataclass
class Workflow:
    document: str
    states: tuple
    transitions: list[Transition]
    status_field: str = "status"
    _by_name: dict = field(init=False, repr=False)

    def __post_init__(self):
        self._by_name = {}
        known = set(self.states)
        for t in self.transitions:
            unknown = (set(t.sources) | {t.target}) - known
            if unknown:
                raise ValueError(
                    f"{self.document} workflow: transition '{t.name}' uses unknown states {sorted(unknown)}"
                )
            self._by_name[t.name] = t

    # --------------------------------------------------
    # Introspection
    # --------------------------------------------------
    def transition(self, name: str) -> Transition:
        try:
            return self._by_name[name]
        except KeyError as exc:
            raise ValueError(f"{self.document} workflow has no transition '{name}'") from exc

    def can(self, from_status: str, name: str) -> bool:
        return from_status in self.transition(name).sources

    def allowed_actions(self, from_status: str) -> list[str]:
        return [t.name for t in self.transitions if from_status in t.sources]

    # --------------------------------------------------
    # Guards
    # --------------------------------------------------
    def validate(self, obj, name: str) -> Transition:
        t = self.transition(name)
        current = getattr(obj, self.status_field)
        if current not in t.sources:
            required = " or ".join(sorted(t.sources))
            raise InvalidTransitionError(
                f"{self.document} {_label(obj)} cannot {name.replace('_', ' ')} "
                f"from status '{current}'. Required status: {required}",
                document=self.document,
                from_status=current,
                to_status=t.target,
            )
        return t

    def require_status(self, obj, allowed: Iterable[str], *, action: str) -> None:
        """Guard for non-transition operations (edit/delete only while draft, etc.)."""
        allowed = set(allowed)
        current = getattr(obj, self.status_field)
        if current not in allowed:
            raise InvalidTransitionError(
                f"{self.document} {_label(obj)} cannot be {action} in status '{current}'. "
                f"Required status: {' or '.join(sorted(allowed))}",
                document=self.document,
                from_status=current,
                to_status=current,
            )

    # --------------------------------------------------
    # Apply
    # --------------------------------------------------
    def apply(self, obj, name: str, *, update_fields: Iterable[str] = (), **changes):
        """
        Validate, set status (+ optional timestamp + extra field changes), save.
        Returns the saved object.
        """
        t = self.validate(obj, name)

        fields = {self.status_field, *update_fields}
        setattr(obj, self.status_field, t.target)

        if t.stamp_field:
            setattr(obj, t.stamp_field, timezone.now())
            fields.add(t.stamp_field)

        for attr, value in changes.items():
            setattr(obj, attr, value)
            fields.add(attr)

        if hasattr(obj, "updated_at"):
            fields.add("updated_at")

        obj.save(update_fields=sorted(fields))

        return obj


def _label(obj) -> str:
    code = getattr(obj, "code", None)
    return str(code or getattr(obj, "pk", "") or "")
