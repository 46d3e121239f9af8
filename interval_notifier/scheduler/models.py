"""Data models for notification groups and rules."""
from dataclasses import dataclass, field
from typing import Any
import uuid

from .schedule import now_ms


def clamp_interval(minutes: Any) -> int:
    """Coerce an interval to whole minutes, never below 1."""
    return max(1, int(minutes))


class GroupNotFoundError(LookupError):
    """No group with the given id."""


class RuleNotFoundError(LookupError):
    """No rule with the given id."""


class InvalidNameError(ValueError):
    """Group name is empty after trimming."""


@dataclass
class Group:
    """A named set of rules that are started and stopped together."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    is_running: bool = False
    created_at_ms: int = field(default_factory=now_ms)
    updated_at_ms: int = field(default_factory=now_ms)

    def touch(self) -> None:
        self.updated_at_ms = now_ms()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "is_running": self.is_running,
            "created_at_ms": self.created_at_ms,
            "updated_at_ms": self.updated_at_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Group":
        return cls(
            id=data.get("id", str(uuid.uuid4())),
            name=data.get("name", ""),
            is_running=data.get("is_running", False),
            created_at_ms=data.get("created_at_ms", now_ms()),
            updated_at_ms=data.get("updated_at_ms", now_ms()),
        )


@dataclass
class Rule:
    """A single recurring reminder inside a group.

    ``interval_minutes`` is clamped to at least 1 whenever it is assigned,
    including by the generated ``__init__``. ``group_id`` is fixed once set;
    moving a rule means upserting a new Rule with the same id.
    """
    group_id: str
    interval_minutes: int = 1
    title: str = ""
    body: str = ""
    is_enabled: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at_ms: int = field(default_factory=now_ms)
    updated_at_ms: int = field(default_factory=now_ms)

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "interval_minutes":
            value = clamp_interval(value)
        elif name == "group_id" and "group_id" in self.__dict__ and value != self.group_id:
            raise AttributeError("Rule.group_id cannot be reassigned")
        super().__setattr__(name, value)

    def touch(self) -> None:
        self.updated_at_ms = now_ms()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "group_id": self.group_id,
            "interval_minutes": self.interval_minutes,
            "title": self.title,
            "body": self.body,
            "is_enabled": self.is_enabled,
            "created_at_ms": self.created_at_ms,
            "updated_at_ms": self.updated_at_ms,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Rule":
        """Create from dictionary."""
        return cls(
            id=data.get("id", str(uuid.uuid4())),
            group_id=data["group_id"],
            interval_minutes=data.get("interval_minutes", 1),
            title=data.get("title", ""),
            body=data.get("body", ""),
            is_enabled=data.get("is_enabled", True),
            created_at_ms=data.get("created_at_ms", now_ms()),
            updated_at_ms=data.get("updated_at_ms", now_ms()),
        )


class NotifierState:
    """In-memory groups and rules, indexed by group.

    Holds no scheduling logic. Callers mutate it and persist it explicitly.
    """

    def __init__(
        self,
        groups: list[Group] | None = None,
        rules: list[Rule] | None = None,
        sound_enabled: bool = False,
    ):
        self.groups: list[Group] = list(groups or [])
        self.rules: list[Rule] = []
        self.sound_enabled = sound_enabled
        self._by_group: dict[str, list[Rule]] = {}

        for rule in rules or []:
            self.upsert_rule(rule)

    # ============== Groups ==============

    def get_group(self, group_id: str) -> Group:
        for group in self.groups:
            if group.id == group_id:
                return group
        raise GroupNotFoundError(f"Group not found: {group_id}")

    def add_group(self, group: Group) -> Group:
        self.groups.append(group)
        return group

    def remove_group(self, group_id: str) -> tuple[Group, list[Rule]]:
        """Remove a group and cascade to its rules.

        Returns:
            The removed group and the rules removed with it
        """
        group = self.get_group(group_id)
        removed = self._by_group.pop(group_id, [])
        self.groups = [g for g in self.groups if g.id != group_id]
        self.rules = [r for r in self.rules if r.group_id != group_id]
        return group, removed

    # ============== Rules ==============

    def get_rule(self, rule_id: str) -> Rule:
        for rule in self.rules:
            if rule.id == rule_id:
                return rule
        raise RuleNotFoundError(f"Rule not found: {rule_id}")

    def rules_for(self, group_id: str) -> list[Rule]:
        return list(self._by_group.get(group_id, []))

    def upsert_rule(self, rule: Rule) -> Rule | None:
        """Insert a rule or replace the one with the same id.

        Returns:
            The replaced rule, or None if the rule is new
        """
        previous = None
        for index, existing in enumerate(self.rules):
            if existing.id == rule.id:
                previous = existing
                self.rules[index] = rule
                break
        else:
            self.rules.append(rule)

        if previous is not None:
            siblings = self._by_group.get(previous.group_id, [])
            self._by_group[previous.group_id] = [r for r in siblings if r.id != rule.id]
        self._by_group.setdefault(rule.group_id, []).append(rule)
        return previous

    def remove_rule(self, rule_id: str) -> Rule:
        rule = self.get_rule(rule_id)
        self.rules = [r for r in self.rules if r.id != rule_id]
        self._by_group[rule.group_id] = [
            r for r in self._by_group.get(rule.group_id, []) if r.id != rule_id
        ]
        return rule

    # ============== Derived State ==============

    def is_schedulable(self, rule: Rule) -> bool:
        """A rule should have a live entry iff it is enabled and its group runs."""
        try:
            group = self.get_group(rule.group_id)
        except GroupNotFoundError:
            return False
        return group.is_running and rule.is_enabled
