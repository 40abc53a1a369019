"""Constants, regexes, and word lists used by the resolver and the rules."""

from __future__ import annotations

import re

# ${name} or ${name:arg1[:arg2]}; non-overlapping, left to right
EXPRESSION_RE = re.compile(r"\$\{([^}]+)\}")

# Values materialized before any cross-reference pass
INDEPENDENT_HELPER_RE = re.compile(r"^\$\{(domain|(?:base64|password|hash)(?::[^}]*)?)\}$")

# Leading digits of a length argument ("12abc" -> 12)
LENGTH_ARG_RE = re.compile(r"^\s*([0-9]+)")

# Legacy jwt:<n> byte count; anything else names a secret
JWT_LEGACY_LENGTH_RE = re.compile(r"[0-9]{1,3}")

# Helpers that take an optional byte/char length
LENGTH_HELPER_DEFAULTS = {
    "base64": 32,
    "password": 16,
    "hash": 8,
}

PASSWORD_CHARSET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789!@#$%^&*"

PLACEHOLDER_DOMAIN_PREFIX = "app-"
PLACEHOLDER_DOMAIN_SUFFIX = ".example.com"
PLACEHOLDER_DOMAIN_BYTES = 8

JWT_SECRET_LENGTH = 32
JWT_SIGNATURE_LENGTH = 32
JWT_HEADER = {"alg": "HS256", "typ": "JWT"}

USERNAME_ADJECTIVES = ("cool", "smart", "fast", "quick", "super", "mega")
USERNAME_NOUNS = ("user", "admin", "dev", "test", "demo", "guest")
USERNAME_SUFFIX_LIMIT = 1000
EMAIL_DOMAINS = ("example.com", "test.com", "demo.org")

MIN_PORT = 1
MAX_PORT = 65535

# Isolation network the deployment platform attaches on its own
RESERVED_NETWORK = "dokploy-network"

# Host:container mapping written as a string ("8080:80")
PORT_MAPPING_RE = re.compile(r"^\d+:\d+")

COMPOSE_FILENAMES = ("docker-compose.yml", "docker-compose.yaml")
DESCRIPTOR_FILENAME = "template.toml"
CONFIG_FILENAME = ".blueprintcheck.toml"
CONFIG_ENV_VAR = "BLUEPRINTCHECK_CONFIG"
