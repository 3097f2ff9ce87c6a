"""Tests for the AKS control-plane client and Azure error translation."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import (
    ClientAuthenticationError, HttpResponseError, ResourceNotFoundError
)

from clusterscope.clients.azure.aks_client import ControlPlaneClient
from clusterscope.clients.azure.credentials import service_principal_credential
from clusterscope.clients.azure.errors import is_authorization_denial, translate_azure_error
from clusterscope.core.exceptions import (
    AuthenticationError, AuthorizationError, ClusterScopeException, NotFoundError,
    UnresolvableAccessError
)
from clusterscope.core.models import CredentialTier


@pytest.fixture
def aks(session):
    client = ControlPlaneClient(session, credential=object())
    client._client = MagicMock()
    client._connected = True
    return client


def _cluster(name, resource_group):
    return SimpleNamespace(
        id=f"/subscriptions/sub/resourceGroups/{resource_group}/providers/"
           f"Microsoft.ContainerService/managedClusters/{name}",
        name=name,
        location="westeurope",
        provisioning_state="Succeeded",
        kubernetes_version="1.30.3",
        node_resource_group=f"MC_{resource_group}_{name}_westeurope",
        fqdn=f"{name}-dns.hcp.westeurope.azmk8s.io",
    )


@pytest.mark.asyncio
async def test_list_clusters_drains_pages(aks):
    aks._client.managed_clusters.list.return_value = iter([_cluster("a", "rg-a"), _cluster("b", "rg-b")])
    
    clusters = await aks.list_clusters()
    
    assert [(c.name, c.resource_group) for c in clusters] == [("a", "rg-a"), ("b", "rg-b")]
    assert clusters[0].to_response()["kubernetesVersion"] == "1.30.3"


@pytest.mark.asyncio
async def test_list_agent_pools(aks):
    aks._client.agent_pools.list.return_value = iter([
        SimpleNamespace(name="nodepool1", count=3, os_type="Linux", provisioning_state="Succeeded"),
    ])
    
    pools = await aks.list_agent_pools("rg", "aks")
    
    aks._client.agent_pools.list.assert_called_once_with("rg", "aks")
    assert pools[0].to_response() == {
        "name": "nodepool1", "count": 3, "osType": "Linux", "provisioningState": "Succeeded"
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("tier,method", [
    (CredentialTier.USER, "list_cluster_user_credentials"),
    (CredentialTier.ADMIN, "list_cluster_admin_credentials"),
])
async def test_mint_uses_tier_specific_call(aks, tier, method):
    getattr(aks._client.managed_clusters, method).return_value = SimpleNamespace(
        kubeconfigs=[SimpleNamespace(name="clusterUser", value=b"kubeconfig")]
    )
    
    blob = await aks.mint_cluster_access("rg", "aks", tier)
    
    assert blob == b"kubeconfig"
    getattr(aks._client.managed_clusters, method).assert_called_once_with("rg", "aks")


@pytest.mark.asyncio
async def test_mint_without_kubeconfig(aks):
    aks._client.managed_clusters.list_cluster_user_credentials.return_value = SimpleNamespace(kubeconfigs=[])
    
    with pytest.raises(UnresolvableAccessError):
        await aks.mint_cluster_access("rg", "aks", CredentialTier.USER)


@pytest.mark.asyncio
async def test_sdk_errors_are_translated(aks):
    aks._client.managed_clusters.list_cluster_admin_credentials.side_effect = ResourceNotFoundError("missing")
    
    with pytest.raises(NotFoundError):
        await aks.mint_cluster_access("rg", "ghost", CredentialTier.ADMIN)


def _http_error(message, status=None):
    error = HttpResponseError(message=message)
    error.status_code = status
    return error


@pytest.mark.parametrize("error,expected", [
    (ClientAuthenticationError("AADSTS7000215: Invalid client secret provided."), AuthenticationError),
    (_http_error("The client 'x' with object id 'y' does not have authorization to perform action"),
     AuthorizationError),
    (_http_error("(AuthorizationFailed) denied"), AuthorizationError),
    (_http_error("forbidden", status=403), AuthorizationError),
    (ResourceNotFoundError("The Resource was not found"), NotFoundError),
    (_http_error("gone", status=404), NotFoundError),
    (_http_error("boom", status=500), ClusterScopeException),
])
def test_translate_azure_error(error, expected):
    translated = translate_azure_error(error, "list_clusters")
    
    assert type(translated) is expected
    assert "list_clusters" in translated.message


def test_authorization_denial_detection():
    assert is_authorization_denial(RuntimeError("AuthorizationFailed"))
    assert not is_authorization_denial(RuntimeError("connection reset"))


@pytest.mark.asyncio
async def test_malformed_tenant_is_an_authentication_error(session):
    bad = session.model_copy(update={"tenant_id": "bad tenant!"})
    
    with pytest.raises(AuthenticationError, match="tenant"):
        service_principal_credential(bad)
    with pytest.raises(AuthenticationError):
        async with ControlPlaneClient(bad):
            pass


@pytest.mark.asyncio
async def test_ensure_connected_connects_once(session):
    client = ControlPlaneClient(session, credential=object())
    
    await client.ensure_connected()
    first = client._client
    await client.ensure_connected()
    
    assert client.is_connected
    assert client._client is first
    await client.disconnect()
    assert not client.is_connected
