"""Tests for kubeconfig resolution."""

import base64

import pytest

from clusterscope.clients.kubernetes.kubeconfig import decode_blob, resolve_kubeconfig
from clusterscope.core.exceptions import UnresolvableAccessError
from clusterscope.core.models import CredentialTier
from helpers import kubeconfig


def test_structured_direct_token():
    access = resolve_kubeconfig(kubeconfig("https://aks.example:443", "direct"))
    
    assert access.server == "https://aks.example:443"
    assert access.token == "direct"
    assert access.tier == CredentialTier.USER


def test_alternate_access_token_field():
    blob = kubeconfig(user={"access-token": "alt-token"})
    
    assert resolve_kubeconfig(blob).token == "alt-token"


def test_auth_provider_access_token():
    blob = kubeconfig(user={"auth-provider": {"name": "azure", "config": {"access-token": "nested"}}})
    
    assert resolve_kubeconfig(blob).token == "nested"


def test_direct_token_wins_over_alternates():
    blob = kubeconfig(user={
        "token": "first",
        "access-token": "second",
        "auth-provider": {"config": {"access-token": "third"}},
    })
    
    assert resolve_kubeconfig(blob).token == "first"


def test_empty_direct_token_falls_through_to_alternate():
    blob = kubeconfig(user={"token": "", "access-token": "second"})
    
    assert resolve_kubeconfig(blob).token == "second"


def test_undecodable_blob_uses_line_patterns():
    blob = b"server: https://x.example:443\ntoken: abc123\n  : [unbalanced\n"
    
    access = resolve_kubeconfig(blob)
    
    assert access.server == "https://x.example:443"
    assert access.token == "abc123"


def test_pattern_fallback_takes_first_match():
    blob = "{{ not yaml\nserver: https://first.example\nserver: https://second.example\ntoken: t1\ntoken: t2\n"
    
    access = resolve_kubeconfig(blob)
    
    assert (access.server, access.token) == ("https://first.example", "t1")


def test_base64_encoded_blob_is_decoded():
    blob = base64.b64encode(kubeconfig("https://b64.example", "b64-token")).decode("ascii")
    
    access = resolve_kubeconfig(blob, CredentialTier.ADMIN)
    
    assert access.server == "https://b64.example"
    assert access.token == "b64-token"
    assert access.tier == CredentialTier.ADMIN


def test_structured_server_combined_with_pattern_token():
    # exec-based users carry no token in the structured user entry
    blob = kubeconfig(user={"exec": {"command": "kubelogin"}}) + b"# token: from-comment\n"
    
    access = resolve_kubeconfig(blob)
    
    assert access.server == "https://aks-user.example:443"
    assert access.token == "from-comment"


@pytest.mark.parametrize("blob", [
    b"",
    b"server: https://only-server.example\n",
    b"token: only-token\n",
    kubeconfig(user={"exec": {"command": "kubelogin"}}),
])
def test_unresolvable_blobs(blob):
    with pytest.raises(UnresolvableAccessError):
        resolve_kubeconfig(blob)


def test_decode_blob_leaves_plain_text_alone():
    assert decode_blob("server: https://x\n") == "server: https://x\n"


def test_token_not_in_repr():
    access = resolve_kubeconfig(kubeconfig(token="very-secret"))
    
    assert "very-secret" not in repr(access)
