from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class DefaultRule(BaseModel):
    auth_required: bool = True
    scope_tickets: bool = False


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    auth_required: bool | None = None
    scope_tickets: bool | None = None

    def normalized_methods(self) -> set[str]:
        return {m.upper() for m in self.methods}


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default: DefaultRule = Field(default_factory=DefaultRule)
    routes: list[RouteRule] = Field(default_factory=list)


@dataclass(frozen=True)
class EffectiveRule:
    """Route rule with defaults applied, for one (path, method)."""

    auth_required: bool
    scope_tickets: bool


def _path_template_to_regex(path_template: str) -> re.Pattern[str]:
    # "/api/tickets/{id}" -> r"^/api/tickets/[^/]+$"
    regex = re.sub(r"\{[^/]+\}", r"[^/]+", path_template)
    return re.compile(rf"^{regex}$")


class SecurityConfig:
    """
    Validated route security config plus route matching.

    Only authentication and read scoping are decided here. What a principal
    may do to an entity is decided per operation by helpdesk.rules.
    """

    def __init__(self, model: SecurityConfigModel):
        self.model = model

        self._exact_rules: dict[str, list[RouteRule]] = {}
        for rule in model.routes:
            self._exact_rules.setdefault(rule.path, []).append(rule)

        self._compiled_rules: list[tuple[re.Pattern[str], RouteRule]] = [
            (_path_template_to_regex(rule.path), rule) for rule in model.routes if "{" in rule.path
        ]

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    def match(self, path: str, method: str) -> EffectiveRule:
        """Exact path first, then templates in file order, then the default rule."""

        method = method.upper()
        default = self.model.default

        for candidate in self._exact_rules.get(path, []):
            if method in candidate.normalized_methods():
                return _effective(candidate, default)

        for regex, candidate in self._compiled_rules:
            if method in candidate.normalized_methods() and regex.match(path):
                return _effective(candidate, default)

        return EffectiveRule(auth_required=default.auth_required, scope_tickets=default.scope_tickets)


def _effective(rule: RouteRule, default: DefaultRule) -> EffectiveRule:
    scope_tickets = default.scope_tickets if rule.scope_tickets is None else rule.scope_tickets
    # Scoping needs a principal, so it implies authentication unless the rule says otherwise.
    inferred_auth_required = default.auth_required or scope_tickets

    return EffectiveRule(
        auth_required=inferred_auth_required if rule.auth_required is None else rule.auth_required,
        scope_tickets=scope_tickets,
    )


def load_security_config(path: Path) -> SecurityConfig:
    raw: dict[str, Any] = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}

    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")

    return SecurityConfig(SecurityConfigModel.model_validate(raw["security"]))
