"""Load and validate policy snapshots."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping

from pydantic import TypeAdapter, ValidationError

from knowledge_core_lib.errors import InvalidInputError
from knowledge_core_lib.policies.models import Policy

logger = logging.getLogger(__name__)

_POLICY_LIST_ADAPTER = TypeAdapter(list[Policy])


def load_policies(raw_policies: Iterable[Mapping[str, Any]]) -> list[Policy]:
    """Validate raw policy mappings; malformed entries fail the whole snapshot."""
    try:
        return _POLICY_LIST_ADAPTER.validate_python(list(raw_policies))
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid policy snapshot: {exc.error_count()} error(s)\n{exc}") from exc


def load_policy_file(path: str | Path) -> list[Policy]:
    """
    Load a policy snapshot from a JSON file.

    The file holds either a list of policies or an object with a ``policies`` list.
    """
    file_path = Path(path)
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise InvalidInputError(f"Policy file not found: {file_path}") from exc
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Policy file {file_path} is not valid JSON: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("policies", [])
    if not isinstance(data, list):
        raise InvalidInputError(f"Policy file {file_path} must contain a list of policies")

    policies = load_policies(data)
    logger.info("Loaded %d policies from %s", len(policies), file_path)
    return policies
