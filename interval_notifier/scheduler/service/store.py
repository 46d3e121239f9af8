"""Persistence for groups, rules and the sound setting.

Architecture:
- ``YamlBlobStore``: a generic key-value store kept in a single YAML file
  (notifier.yaml). Each key holds one value that is read and written whole.
- ``AppStore``: maps the model onto three independently stored keys
  (groups, rules, sound setting) and seeds sample groups on first run.

The store performs no validation; it stores what it is given.
"""
from pathlib import Path
from typing import Any, Protocol

import yaml
from loguru import logger

from ..models import Group, NotifierState, Rule

logger = logger.bind(module="scheduler.store")

GROUPS_KEY = "groups_v1"
RULES_KEY = "rules_v1"
SOUND_ENABLED_KEY = "sound_enabled_v1"

SAMPLE_GROUP_NAMES = ("Group 1", "Group 2")


class BlobStore(Protocol):
    """Generic key-value store of whole values."""

    def get(self, key: str) -> Any | None:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class YamlBlobStore:
    """Key-value blobs in one YAML file.

    Writes go to a temp file that is renamed over the existing one, so a crash
    mid-write leaves the previous contents intact.
    """

    def __init__(self, path: str | Path):
        """Initialize store.

        Args:
            path: YAML file to read and write
        """
        self.path = Path(path).expanduser()
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data

        self._data = {}
        if not self.path.exists():
            return self._data

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                self._data = data
            else:
                logger.error(f"Ignoring {self.path}: top level is not a mapping")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load YAML: {e}")
        return self._data

    def get(self, key: str) -> Any | None:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._write(data)

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write("# Interval Notifier data\n")
            f.write("# Written by the app on every change.\n\n")
            yaml.dump(
                data,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        temp_path.replace(self.path)


class AppStore:
    """Loads and saves the notifier model through a blob store."""

    def __init__(self, blobs: BlobStore):
        self.blobs = blobs

    def load(self) -> NotifierState:
        """Load the model, seeding sample groups on first run."""
        groups = self._decode_list(GROUPS_KEY, Group.from_dict)
        rules = self._decode_list(RULES_KEY, Rule.from_dict)
        sound_enabled = bool(self.blobs.get(SOUND_ENABLED_KEY) or False)

        # Clean up orphaned rules (group removed outside the app)
        group_ids = {g.id for g in groups}
        orphans = [r for r in rules if r.group_id not in group_ids]
        if orphans:
            rules = [r for r in rules if r.group_id in group_ids]
            logger.info(f"Dropped {len(orphans)} orphaned rules")

        state = NotifierState(groups=groups, rules=rules, sound_enabled=sound_enabled)
        if not state.groups:
            for name in SAMPLE_GROUP_NAMES:
                state.add_group(Group(name=name))
            self.save(state)
            logger.info(f"Seeded {len(SAMPLE_GROUP_NAMES)} sample groups")

        logger.info(f"Loaded {len(state.groups)} groups and {len(state.rules)} rules")
        return state

    def save(self, state: NotifierState) -> None:
        self.blobs.set(GROUPS_KEY, [g.to_dict() for g in state.groups])
        self.blobs.set(RULES_KEY, [r.to_dict() for r in state.rules])
        self.blobs.set(SOUND_ENABLED_KEY, state.sound_enabled)

    def _decode_list(self, key: str, decode) -> list:
        raw = self.blobs.get(key)
        if raw is None:
            return []
        try:
            return [decode(item) for item in raw]
        except (TypeError, KeyError, ValueError) as e:
            logger.error(f"Failed to decode {key}: {e}")
            return []
