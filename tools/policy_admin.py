#!/usr/bin/env python3
"""Operational helpers for inspecting policy snapshots."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any, Optional

from knowledge_core_lib.auth_context_factory import authorization_context_from_claims
from knowledge_core_lib.errors import InvalidInputError
from knowledge_core_lib.policies import PolicyEngine, load_policy_file


def summarize_policy(policy: Any) -> dict[str, Any]:
    return {
        "id": policy.id,
        "tenant_id": policy.tenant_id,
        "type": policy.type,
        "name": policy.name,
        "priority": policy.priority,
        "enabled": policy.enabled,
    }


def check_access(
    policy_file: Path,
    claims: dict[str, Any],
    policy_type: str,
    action: str,
    resource: Optional[dict[str, Any]] = None,
    default_allow: bool = True,
) -> dict[str, Any]:
    """Evaluate one action for the identity described by ``claims``."""
    engine = PolicyEngine(load_policy_file(policy_file), default_allow=default_allow)
    ctx = authorization_context_from_claims(claims)
    matched = engine.policies_for_context(ctx, policy_type)
    return {
        "allowed": engine.is_allowed(ctx, policy_type, action, resource),
        "matched_policies": [policy.id for policy in matched],
        "default_applied": not matched,
    }


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Policy snapshot operational helper.")
    parser.add_argument("--policy-file", required=True)
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("validate")
    listing = sub.add_parser("list-policies")
    listing.add_argument("--tenant-id", default=None)
    listing.add_argument("--include-disabled", action="store_true")

    check = sub.add_parser("check-access")
    check.add_argument("--claims-json", required=True, help="Raw JSON string with JWT claims.")
    check.add_argument("--type", dest="policy_type", required=True, choices=["chat", "model", "tool", "rag", "plugin"])
    check.add_argument("--action", required=True)
    check.add_argument("--resource-json", default=None, help='e.g. {"model_id": "m1"}')
    check.add_argument("--default-deny", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    policy_path = Path(args.policy_file)

    try:
        if args.command == "validate":
            policies = load_policy_file(policy_path)
            print(json.dumps({"valid": True, "policies": len(policies)}, indent=2))
            return 0

        if args.command == "list-policies":
            policies = load_policy_file(policy_path)
            if not args.include_disabled:
                policies = PolicyEngine(policies).policies
            if args.tenant_id:
                policies = [policy for policy in policies if policy.tenant_id == args.tenant_id]
            print(json.dumps({"policies": [summarize_policy(policy) for policy in policies]}, indent=2))
            return 0

        if args.command == "check-access":
            resource = json.loads(args.resource_json) if args.resource_json else None
            result = check_access(
                policy_path,
                json.loads(args.claims_json),
                args.policy_type,
                args.action,
                resource,
                default_allow=not args.default_deny,
            )
            print(json.dumps(result, indent=2))
            return 0
    except InvalidInputError as exc:
        print(json.dumps({"valid": False, "error": str(exc)}, indent=2))
        return 1

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
