"""
File-backed rule store for projscan.

Keeps rule definitions in a YAML or JSON file. Reads fall back to the
packaged default rules when no file exists yet; writes are validated,
serialized by a lock and replace the file atomically.
"""

import json
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from projscan.core.config import atomic_write_text
from projscan.core.errors import ConfigurationMissingError, RuleValidationError
from projscan.core.rules import DEFAULT_RULES_PATH, RuleSet, parse_rules, read_rule_file


def _unwrap(data: Any) -> dict[str, Any]:
    """Return the rule mapping, accepting an optional top-level ``rules`` key."""
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Rule configuration must be a mapping, got {type(data).__name__}")
    if isinstance(data.get("rules"), Mapping):
        data = data["rules"]
    return {str(key): value for key, value in data.items()}


class RuleStore:
    """
    Key-value store of rule definitions behind load/save.

    Example:
        >>> store = RuleStore("rules.yaml")
        >>> rule_set = store.load()
        >>> store.save({"no_todo": {"pattern": "TODO", "message": "Open TODO"}})
    """

    def __init__(
        self,
        path: Path | str | None = None,
        use_defaults: bool = True,
        logger: logging.Logger | None = None,
    ):
        """
        Initialize the store.

        Args:
            path: Rule file (.yaml, .yml or .json). None makes the store read-only.
            use_defaults: Serve the packaged default rules while ``path`` does not exist
            logger: Logger for store events
        """
        self._path = Path(path) if path else None
        self._use_defaults = use_defaults
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger(__name__)

    @property
    def path(self) -> Path | None:
        return self._path

    def load_raw(self) -> dict[str, Any]:
        """
        Return the stored rule definitions without validating them.

        Raises:
            ValueError: If the rule file cannot be parsed
        """
        if self._path is not None and self._path.is_file():
            return _unwrap(read_rule_file(self._path))
        if self._use_defaults:
            return _unwrap(read_rule_file(DEFAULT_RULES_PATH))
        return {}

    def load(self) -> RuleSet:
        """Load the stored rules; invalid entries are reported on ``RuleSet.errors``."""
        rule_set = parse_rules(self.load_raw(), logger=self._logger)
        self._logger.debug(
            "Rules loaded",
            extra={
                "rules_file": str(self._path) if self._path else None,
                "rules": len(rule_set),
                "rejected": len(rule_set.errors),
            },
        )
        return rule_set

    def save(self, definitions: Mapping[str, Any]) -> RuleSet:
        """
        Validate and persist rule definitions.

        Args:
            definitions: Mapping of rule id to definition, optionally under ``rules``

        Returns:
            The RuleSet built from the saved definitions

        Raises:
            ConfigurationMissingError: If the store has no file path
            RuleValidationError: If any definition is invalid; nothing is written
            ValueError: If the file format is unsupported
        """
        if self._path is None:
            raise ConfigurationMissingError("No rule file configured; cannot save rules")

        rules = _unwrap(definitions)
        rule_set = parse_rules(rules, logger=self._logger)
        if rule_set.errors:
            details = "; ".join(f"{e.rule_id}: {e.reason}" for e in rule_set.errors)
            raise RuleValidationError(f"Invalid rule definitions: {details}", rule_set.errors)

        payload = {"rules": rules}
        if self._path.suffix in (".yaml", ".yml"):
            content = yaml.safe_dump(
                payload, default_flow_style=False, sort_keys=False, allow_unicode=True
            )
        elif self._path.suffix == ".json":
            content = json.dumps(payload, indent=2, ensure_ascii=False)
        else:
            raise ValueError(f"Unsupported rule file format: {self._path.suffix}")

        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write_text(self._path, content)

        self._logger.info(
            f"Saved {len(rule_set)} rules to {self._path}",
            extra={"rules_file": str(self._path), "rules": len(rule_set)},
        )
        return rule_set

    def export_json(self) -> str:
        """Export the stored definitions as a JSON document."""
        return json.dumps({"rules": self.load_raw()}, indent=2, ensure_ascii=False)

    def import_json(self, text: str) -> RuleSet:
        """
        Replace the stored rules with definitions from a JSON document.

        Raises:
            ValueError: If the text is not a JSON object
            RuleValidationError: If any definition is invalid
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {e}") from e
        return self.save(_unwrap(data))
