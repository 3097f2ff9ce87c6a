from .session import CredentialStore, Session, build_session

__all__ = ["CredentialStore", "Session", "build_session"]
