"""
Variable resolution engine.

Turns ``${...}`` expressions inside descriptor strings into concrete values.
Helpers are dispatched through a table keyed by tag name; any body that is
not a helper is looked up as a variable, and anything left over stays in the
string as literal ``${...}`` text and is reported as unresolved.

Variable maps are resolved in two pure passes:

1. ``materialize_independent`` generates entries whose value is exactly
   ``${domain}``, ``${base64[:n]}``, ``${password[:n]}`` or ``${hash[:n]}``.
2. ``substitute_dependent`` resolves every entry against the Pass-1 map, so
   references to those values work regardless of declaration order.

Chains through two or more dependent helpers (``a = "${uuid}"``,
``b = "${a}"``) are not guaranteed to resolve: there is a single dependent
pass and no fixed-point iteration.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Callable, Mapping, NamedTuple

from pydantic import ValidationError

from blueprintcheck.core.constants import (
    EXPRESSION_RE,
    INDEPENDENT_HELPER_RE,
    JWT_LEGACY_LENGTH_RE,
    LENGTH_ARG_RE,
    LENGTH_HELPER_DEFAULTS,
)
from blueprintcheck.domain.models import (
    BlueprintPreview,
    DomainDeclaration,
    DomainSchema,
    EnvEntry,
    MountDeclaration,
    Resolution,
)
from blueprintcheck.engine import helpers
from blueprintcheck.engine.entropy import SecretsRandom

if TYPE_CHECKING:
    from blueprintcheck.engine.entropy import RandomSource

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class HelperContext(NamedTuple):
    """Everything a helper handler may consult."""

    resolver: VariableResolver
    variables: Mapping[str, str]


HelperHandler = Callable[[list[str], HelperContext], str]


class HelperSpec(NamedTuple):
    """One entry of the helper dispatch table."""

    name: str
    syntax: str
    description: str
    handler: HelperHandler
    accepts_args: bool = False


def parse_length(args: list[str], default: int) -> int:
    """Leading digits of the first argument, or ``default``."""
    if not args:
        return default
    match = LENGTH_ARG_RE.match(args[0])
    return int(match.group(1)) if match else default


def _domain(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_domain(ctx.resolver.rng, ctx.resolver.schema)


def _base64(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_base64(ctx.resolver.rng, parse_length(args, LENGTH_HELPER_DEFAULTS["base64"]))


def _password(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_password(ctx.resolver.rng, parse_length(args, LENGTH_HELPER_DEFAULTS["password"]))


def _hash(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_hash(ctx.resolver.rng, parse_length(args, LENGTH_HELPER_DEFAULTS["hash"]))


def _uuid(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_uuid(ctx.resolver.rng)


def _timestamp_ms(args: list[str], ctx: HelperContext) -> str:
    if args:
        return helpers.timestamp_from_literal(":".join(args), "ms")
    return str(helpers.epoch_millis(ctx.resolver.clock()))


def _timestamp_s(args: list[str], ctx: HelperContext) -> str:
    if args:
        return helpers.timestamp_from_literal(":".join(args), "s")
    return str(helpers.epoch_seconds(ctx.resolver.clock()))


def _random_port(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_random_port(ctx.resolver.rng)


def _username(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_username(ctx.resolver.rng)


def _email(args: list[str], ctx: HelperContext) -> str:
    return helpers.generate_email(ctx.resolver.rng)


def _jwt(args: list[str], ctx: HelperContext) -> str:
    rng = ctx.resolver.rng
    if not args:
        return helpers.generate_jwt(rng)

    if len(args) == 1 and JWT_LEGACY_LENGTH_RE.fullmatch(args[0]):
        return helpers.generate_jwt(rng, length=int(args[0]))

    secret_name = args[0]
    secret = ctx.variables.get(secret_name, secret_name) if secret_name else None

    payload: dict[str, Any] | None = None
    if len(args) > 1 and args[1]:
        raw_payload = ctx.variables.get(args[1], args[1])
        payload = _parse_payload(raw_payload)

    return helpers.generate_jwt(rng, secret=secret, payload=payload)


def _parse_payload(raw: str) -> dict[str, Any] | None:
    text = raw.strip()
    if not (text.startswith("{") and text.endswith("}")):
        return None
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


HELPERS: dict[str, HelperSpec] = {
    spec.name: spec
    for spec in (
        HelperSpec("domain", "${domain}", "Schema domain or a random placeholder host", _domain),
        HelperSpec("base64", "${base64[:bytes]}", "Base64 of random bytes (default 32)", _base64, True),
        HelperSpec("password", "${password[:length]}", "Random password (default 16 chars)", _password, True),
        HelperSpec("hash", "${hash[:bytes]}", "Hex of random bytes (default 8)", _hash, True),
        HelperSpec("uuid", "${uuid}", "Random version-4 UUID", _uuid),
        HelperSpec("timestamp", "${timestamp}", "Current time in epoch milliseconds", _timestamp_ms),
        HelperSpec(
            "timestampms",
            "${timestampms[:datetime]}",
            "Epoch milliseconds of now or of an ISO-8601 literal",
            _timestamp_ms,
            True,
        ),
        HelperSpec(
            "timestamps",
            "${timestamps[:datetime]}",
            "Epoch seconds of now or of an ISO-8601 literal",
            _timestamp_s,
            True,
        ),
        HelperSpec("randomPort", "${randomPort}", "Random port number", _random_port, True),
        HelperSpec(
            "jwt",
            "${jwt[:secret[:payload]]}",
            "JWT-shaped placeholder token; ${jwt:<n>} gives n random hex bytes",
            _jwt,
            True,
        ),
        HelperSpec("username", "${username}", "Random username", _username),
        HelperSpec("email", "${email}", "Random email address", _email),
    )
}


def split_expression(expression: str) -> tuple[str, list[str]]:
    """Split an expression body into its tag and arguments."""
    body = expression
    if body.startswith("${") and body.endswith("}"):
        body = body[2:-1]
    tag, *args = body.split(":")
    return tag, args


def check_helper(expression: str) -> str | None:
    """
    Check one expression body for malformed helper parameters.

    Returns an advisory message, or None when the expression is fine.
    Names that are not helpers are treated as variable references and are
    never flagged here.
    """
    tag, args = split_expression(expression)
    if tag not in HELPERS or not args:
        return None

    if tag in LENGTH_HELPER_DEFAULTS:
        if args[0] and not LENGTH_ARG_RE.match(args[0]):
            return f"helper '{expression}' has invalid parameter (should be a number)"
    elif tag in ("timestampms", "timestamps"):
        literal = ":".join(args)
        if literal and helpers.parse_datetime(literal) is None:
            return f"helper '{expression}' has invalid datetime format"
    return None


def normalize_env(env: Any) -> list[EnvEntry]:
    """
    Flatten either env declaration form into ordered key/value pairs.

    Shapes the validator rejects are skipped.
    """
    entries: list[EnvEntry] = []

    def add_mapping(mapping: Mapping[Any, Any]) -> None:
        for key, value in mapping.items():
            entries.append(EnvEntry(key=str(key), value=_scalar(value)))

    if isinstance(env, list):
        for item in env:
            if isinstance(item, str):
                key, _, value = item.partition("=")
                entries.append(EnvEntry(key=key, value=value))
            elif isinstance(item, dict):
                add_mapping(item)
    elif isinstance(env, dict):
        add_mapping(env)
    return entries


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class VariableResolver:
    """
    Resolves helper and variable expressions.

    Randomness and time are injected so previews can be reproduced; the
    defaults are a ``secrets``-backed source and the UTC wall clock. A
    resolver holds no per-call state and can be shared across validations
    when its random source is thread-safe.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        clock: Clock | None = None,
        schema: DomainSchema | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            rng: Random source for generated values.
            clock: Callable returning the current instant.
            schema: Schema consulted by the ``domain`` helper.
        """
        self.rng = rng or SecretsRandom()
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.schema = schema or DomainSchema()

    def resolve_helper(self, expression: str, variables: Mapping[str, str]) -> str | None:
        """
        Evaluate one expression body.

        Returns the generated or looked-up value, or None when the body is
        neither a helper nor a known variable.
        """
        tag, args = split_expression(expression)
        spec = HELPERS.get(tag)
        if spec is not None and (spec.accepts_args or not args):
            return spec.handler(args, HelperContext(self, variables))

        name = expression[2:-1] if expression.startswith("${") and expression.endswith("}") else expression
        return variables.get(name)

    def resolve_expressions(self, template: str, variables: Mapping[str, str]) -> Resolution:
        """
        Replace every ``${...}`` occurrence in ``template``.

        Substituted text gets one more variable-only pass, so a value that is
        itself ``${other}`` picks up ``other`` when it is a key. Whatever is
        left afterwards is reported in ``unresolved``.
        """
        if "${" not in template:
            return Resolution(value=template)

        def substitute(match: Any) -> str:
            value = self.resolve_helper(match.group(1), variables)
            return match.group(0) if value is None else value

        unresolved: set[str] = set()

        def lookup(match: Any) -> str:
            body = match.group(1)
            if body in variables:
                value = variables[body]
                unresolved.update(EXPRESSION_RE.findall(value))
                return value
            unresolved.add(body)
            return match.group(0)

        first = EXPRESSION_RE.sub(substitute, template)
        final = EXPRESSION_RE.sub(lookup, first)
        return Resolution(value=final, unresolved=frozenset(unresolved))

    def materialize_independent(self, variables: Mapping[str, Any]) -> dict[str, str]:
        """
        Pass 1: generate values that depend on nothing else.

        Non-string values are dropped; every other entry is copied through.
        """
        materialized: dict[str, str] = {}
        for key, value in variables.items():
            if not isinstance(value, str):
                continue
            match = INDEPENDENT_HELPER_RE.match(value)
            if match:
                generated = self.resolve_helper(match.group(1), {})
                materialized[key] = value if generated is None else generated
            else:
                materialized[key] = value
        return materialized

    def substitute_dependent(
        self,
        materialized: Mapping[str, str],
        lookup: Mapping[str, str],
    ) -> dict[str, Resolution]:
        """Pass 2: resolve every entry of ``materialized`` against ``lookup``."""
        return {key: self.resolve_expressions(value, lookup) for key, value in materialized.items()}

    def resolve_variable_map_detailed(
        self, variables: Mapping[str, Any]
    ) -> tuple[dict[str, str], dict[str, frozenset[str]]]:
        """
        Resolve a variable map and report what stayed unresolved.

        Returns:
            Tuple of (resolved map, variable name -> unresolved bodies) where
            the second mapping only lists variables with leftovers.
        """
        materialized = self.materialize_independent(variables)
        substituted = self.substitute_dependent(materialized, materialized)

        resolved = {key: r.value for key, r in substituted.items()}
        unresolved = {key: r.unresolved for key, r in substituted.items() if r.unresolved}

        logger.debug(
            "Resolved %d variable(s), %d with unresolved expressions",
            len(resolved),
            len(unresolved),
        )
        return resolved, unresolved

    def resolve_variable_map(self, variables: Mapping[str, Any]) -> dict[str, str]:
        """Resolve a variable map with the two-pass algorithm."""
        resolved, _ = self.resolve_variable_map_detailed(variables)
        return resolved

    def preview(self, descriptor: Mapping[str, Any]) -> BlueprintPreview:
        """
        Resolve a whole descriptor for display.

        Malformed domain and mount entries are skipped; the validator is
        responsible for reporting them.
        """
        raw_variables = descriptor.get("variables")
        variables: dict[str, str] = {}
        unresolved: dict[str, frozenset[str]] = {}
        if isinstance(raw_variables, dict):
            variables, leftovers = self.resolve_variable_map_detailed(raw_variables)
            unresolved.update({f"variables.{k}": v for k, v in leftovers.items()})

        config = descriptor.get("config")
        if not isinstance(config, dict):
            config = {}

        def resolve(path: str, text: str) -> str:
            result = self.resolve_expressions(text, variables)
            if result.unresolved:
                unresolved[path] = result.unresolved
            return result.value

        domains: list[DomainDeclaration] = []
        raw_domains = config.get("domains")
        for index, entry in enumerate(raw_domains if isinstance(raw_domains, list) else []):
            try:
                domain = DomainDeclaration.model_validate(entry)
            except ValidationError:
                continue
            if domain.host is not None:
                domain = domain.model_copy(update={"host": resolve(f"domain[{index}].host", domain.host)})
            domains.append(domain)

        env = [
            EnvEntry(key=entry.key, value=resolve(f"config.env.{entry.key}", entry.value))
            for entry in normalize_env(config.get("env"))
        ]

        mounts: list[MountDeclaration] = []
        raw_mounts = config.get("mounts")
        for index, entry in enumerate(raw_mounts if isinstance(raw_mounts, list) else []):
            try:
                mount = MountDeclaration.model_validate(entry)
            except ValidationError:
                continue
            mounts.append(
                MountDeclaration(
                    filePath=resolve(f"config.mounts[{index}].filePath", mount.file_path),
                    content=resolve(f"config.mounts[{index}].content", mount.content),
                )
            )

        return BlueprintPreview(
            variables=variables,
            domains=domains,
            env=env,
            mounts=mounts,
            unresolved=unresolved,
        )


_default_resolver: VariableResolver | None = None


def _resolver_for(schema: DomainSchema | None) -> VariableResolver:
    global _default_resolver
    if schema is not None:
        return VariableResolver(schema=schema)
    if _default_resolver is None:
        _default_resolver = VariableResolver()
    return _default_resolver


def resolve_helper(
    expression: str,
    variables: Mapping[str, str],
    schema: DomainSchema | None = None,
) -> str:
    """
    Evaluate one ``${...}`` body; unknown names come back as literal text.

    Example:
        >>> len(resolve_helper("password:8", {}))
        8
        >>> resolve_helper("missing", {})
        '${missing}'
    """
    value = _resolver_for(schema).resolve_helper(expression, variables)
    if value is not None:
        return value
    return expression if expression.startswith("${") else "${" + expression + "}"


def resolve_all_expressions(
    template: str,
    variables: Mapping[str, str],
    schema: DomainSchema | None = None,
) -> str:
    """Replace every ``${...}`` expression in ``template``."""
    return _resolver_for(schema).resolve_expressions(template, variables).value


def resolve_variable_map(
    variables: Mapping[str, Any],
    schema: DomainSchema | None = None,
) -> dict[str, str]:
    """
    Resolve a raw variable map into concrete values.

    Example:
        >>> resolved = resolve_variable_map({"a": "${password:8}", "b": "${a}-suffix"})
        >>> resolved["b"].endswith("-suffix")
        True
    """
    return _resolver_for(schema).resolve_variable_map(variables)
