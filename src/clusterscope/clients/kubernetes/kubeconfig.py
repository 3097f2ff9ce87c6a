"""Resolve a cluster credential blob into an API server URL and bearer token."""

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union

import structlog
import yaml

from clusterscope.core.exceptions import UnresolvableAccessError
from clusterscope.core.models import CredentialTier
from clusterscope.core.utils import first_non_empty, safe_get

logger = structlog.get_logger(__name__)

CredentialBlob = Union[bytes, bytearray, str]

SERVER_LINE = re.compile(r"server: (.*)")
TOKEN_LINE = re.compile(r"token: (.*)")
BASE64_TEXT = re.compile(r"^[A-Za-z0-9+/=\s]+$")

# Tried in order against users[0].user; first non-empty wins.
TOKEN_EXTRACTORS = (
    lambda user: safe_get(user, "token"),
    lambda user: safe_get(user, "access-token"),
    lambda user: safe_get(user, "auth-provider.config.access-token"),
)


@dataclass(frozen=True)
class ClusterAccess:
    server: str
    token: str = field(repr=False)
    tier: CredentialTier = CredentialTier.USER
    
    def with_tier(self, tier: CredentialTier) -> "ClusterAccess":
        return ClusterAccess(server=self.server, token=self.token, tier=tier)


def decode_blob(blob: CredentialBlob) -> str:
    """Return the kubeconfig text of a blob that may or may not be base64 encoded."""
    if isinstance(blob, (bytes, bytearray)):
        text = bytes(blob).decode("utf-8", errors="replace")
    else:
        text = blob or ""
    
    stripped = text.strip()
    if stripped and BASE64_TEXT.match(stripped):
        try:
            return base64.b64decode(stripped, validate=False).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            pass
    return text


def _structured(text: str) -> Tuple[Optional[str], Optional[str]]:
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError:
        return None, None
    if not isinstance(parsed, dict):
        return None, None
    
    server = safe_get(parsed, "clusters.0.cluster.server")
    user = safe_get(parsed, "users.0.user", {})
    token = first_non_empty(TOKEN_EXTRACTORS, user) if isinstance(user, dict) else None
    return (server if isinstance(server, str) else None,
            token if isinstance(token, str) else None)


def _first_match(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    if not match:
        return None
    return match.group(1).strip().strip('"\'') or None


def resolve_kubeconfig(blob: CredentialBlob,
                       tier: CredentialTier = CredentialTier.USER) -> ClusterAccess:
    """Extract the first cluster server and the first user's token from a kubeconfig.
    
    Structured YAML parsing is tried first. Whatever it cannot supply is then
    taken from the first ``server:`` / ``token:`` line in the raw text.
    
    Raises:
        UnresolvableAccessError: neither path yields both a server and a token.
    """
    text = decode_blob(blob)
    server, token = _structured(text)
    
    if not server or not token:
        logger.debug("Structured kubeconfig incomplete, scanning raw text",
                     has_server=bool(server), has_token=bool(token))
        server = server or _first_match(SERVER_LINE, text)
        token = token or _first_match(TOKEN_LINE, text)
    
    if not server or not token:
        raise UnresolvableAccessError(
            "Could not parse kubeconfig",
            {"has_server": bool(server), "has_token": bool(token)}
        )
    return ClusterAccess(server=server.rstrip("/"), token=token, tier=tier)
