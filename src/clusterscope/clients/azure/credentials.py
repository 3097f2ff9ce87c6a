"""Service principal credential construction."""

from azure.identity import ClientSecretCredential

from clusterscope.auth.session import Session
from clusterscope.core.exceptions import AuthenticationError


def service_principal_credential(session: Session) -> ClientSecretCredential:
    """Build the credential for a session.
    
    azure-identity validates the tenant id locally and raises ``ValueError``
    before any token request; that is an authentication failure too.
    """
    try:
        return ClientSecretCredential(
            tenant_id=session.tenant_id,
            client_id=session.client_id,
            client_secret=session.client_secret
        )
    except ValueError as e:
        raise AuthenticationError(
            f"Invalid service principal credentials: {e}",
            details={"principal_id": session.principal_id}
        ) from e
