"""
Loading of rule definitions from YAML/JSON configuration.

A rule file maps rule ids to definitions, optionally nested under a
top-level ``rules`` key::

    no_echo_without_escape:
      pattern: 'echo\\s+\\$[a-zA-Z_]'
      message: Variable echoed without escaping
      severity: warning
      extensions: [php]
      suggestion: Wrap the value in htmlspecialchars()

Patterns are Python regular expressions. The delimited ``/body/flags`` form
used by PCRE-style rule files is accepted too.
"""

import json
import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from projscan.core.errors import ConfigurationMissingError, InvalidRulePatternError

from .models import Rule, RuleConfigError, RuleSet, Severity

DEFAULT_RULES_PATH = Path(__file__).parent / "default_rules.yaml"

_DELIMITED_PATTERN = re.compile(r"^/(?P<body>.+)/(?P<flags>[imsxu]*)$", re.DOTALL)

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": 0,  # str patterns are Unicode-aware already
}


def split_delimited(pattern: str) -> tuple[str, str]:
    """
    Split a ``/body/flags`` pattern into body and flag letters.

    Patterns without delimiters are returned unchanged with no flags.
    """
    match = _DELIMITED_PATTERN.match(pattern)
    if match is None:
        return pattern, ""
    return match.group("body"), match.group("flags")


def compile_pattern(pattern: str, flags: str = "", rule_id: str | None = None) -> re.Pattern:
    """
    Compile a rule pattern.

    Args:
        pattern: Python regex or delimited ``/body/flags`` form
        flags: Additional flag letters
        rule_id: Rule id used in error messages

    Returns:
        Compiled regular expression

    Raises:
        InvalidRulePatternError: If the pattern or a flag letter is invalid
    """
    body, inline_flags = split_delimited(pattern)
    re_flags = 0
    for letter in inline_flags + (flags or ""):
        if letter not in _FLAG_MAP:
            raise InvalidRulePatternError(f"Unknown pattern flag '{letter}'", rule_id=rule_id)
        re_flags |= _FLAG_MAP[letter]

    try:
        return re.compile(body, re_flags)
    except re.error as e:
        raise InvalidRulePatternError(f"Invalid pattern: {e}", rule_id=rule_id) from e


def _normalize_extensions(value: Any) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    elif isinstance(value, Iterable):
        items = value
    else:
        raise ValueError(f"extensions must be a list of strings, got {type(value).__name__}")
    return frozenset(
        str(item).strip().lower().lstrip(".") for item in items if str(item).strip()
    )


def parse_rule(rule_id: str, definition: Any) -> Rule:
    """
    Build a Rule from one configuration entry.

    Raises:
        InvalidRulePatternError: If the pattern does not compile
        ValueError: If the entry is malformed
    """
    if not isinstance(definition, Mapping):
        raise ValueError(f"definition must be a mapping, got {type(definition).__name__}")

    pattern = definition.get("pattern")
    if not isinstance(pattern, str) or not pattern:
        raise ValueError("missing or empty 'pattern'")

    message = definition.get("message") or rule_id
    severity = Severity.parse(definition.get("severity", Severity.WARNING.value))
    extensions = _normalize_extensions(definition.get("extensions"))
    flags = str(definition.get("flags") or "")
    suggestion = definition.get("suggestion") or None

    regex = compile_pattern(pattern, flags, rule_id=rule_id)

    return Rule(
        id=rule_id,
        pattern=pattern,
        message=str(message),
        severity=severity,
        extensions=extensions,
        regex=regex,
        suggestion=str(suggestion) if suggestion is not None else None,
        flags=flags,
    )


def parse_rules(data: Any, logger: logging.Logger | None = None) -> RuleSet:
    """
    Build a RuleSet from a decoded rule configuration.

    Invalid entries are left out and reported on ``RuleSet.errors``; the
    remaining rules are kept in configuration order.

    Args:
        data: Mapping of rule id to definition, optionally under ``rules``
        logger: Logger for rejected entries

    Returns:
        RuleSet with the valid rules and the load errors

    Raises:
        ValueError: If ``data`` is not a mapping
    """
    log = logger or logging.getLogger(__name__)

    if data is None:
        return RuleSet()
    if not isinstance(data, Mapping):
        raise ValueError(f"Rule configuration must be a mapping, got {type(data).__name__}")
    if isinstance(data.get("rules"), Mapping):
        data = data["rules"]

    rules: list[Rule] = []
    errors: list[RuleConfigError] = []

    for raw_id, definition in data.items():
        rule_id = str(raw_id)
        try:
            rules.append(parse_rule(rule_id, definition))
        except InvalidRulePatternError as e:
            log.warning(f"Skipping rule with invalid pattern: {rule_id} - {e}", extra={"rule_id": rule_id})
            errors.append(RuleConfigError(rule_id=rule_id, reason=str(e)))
        except ValueError as e:
            log.warning(f"Skipping malformed rule: {rule_id} - {e}", extra={"rule_id": rule_id})
            errors.append(RuleConfigError(rule_id=rule_id, reason=str(e)))

    return RuleSet(rules=tuple(rules), errors=tuple(errors))


def read_rule_file(path: Path | str) -> Any:
    """
    Decode a YAML or JSON rule file without validating it.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the format is unsupported or the content cannot be decoded
    """
    path = Path(path)
    content = path.read_text(encoding="utf-8")

    try:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(content)
        if path.suffix == ".json":
            return json.loads(content) if content.strip() else None
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot parse rule file {path}: {e}") from e

    raise ValueError(f"Unsupported rule file format: {path.suffix}")


def load_rules(
    path: Path | str,
    strict: bool = False,
    logger: logging.Logger | None = None,
) -> RuleSet:
    """
    Load a RuleSet from a YAML or JSON file.

    Args:
        path: Rule file path
        strict: Raise instead of returning an empty RuleSet when the file is missing
        logger: Logger for load events

    Returns:
        Loaded RuleSet

    Raises:
        ConfigurationMissingError: If strict and the file does not exist
        ValueError: If the file cannot be parsed
    """
    log = logger or logging.getLogger(__name__)
    path = Path(path)

    if not path.is_file():
        if strict:
            raise ConfigurationMissingError(f"Rule file not found: {path}")
        log.warning(f"Rule file not found, continuing without rules: {path}")
        return RuleSet()

    rule_set = parse_rules(read_rule_file(path), logger=log)
    log.info(
        f"Loaded {len(rule_set)} rules from {path}",
        extra={"rules_file": str(path), "rejected": len(rule_set.errors)},
    )
    return rule_set


def load_default_rules(logger: logging.Logger | None = None) -> RuleSet:
    """Load the rules bundled with the package."""
    return load_rules(DEFAULT_RULES_PATH, strict=True, logger=logger)
