"""Credential verification against the organisation's LDAP directory."""
from __future__ import annotations

import logging
from typing import Protocol

from ldap3 import SIMPLE, Connection, Server
from ldap3.core.exceptions import LDAPCommunicationError, LDAPException

logger = logging.getLogger(__name__)


class DirectoryUnavailableError(RuntimeError):
    """Raised when the directory server cannot be reached."""


class DirectoryAuthenticator(Protocol):
    def authenticate(self, username: str, password: str) -> bool:
        ...


class LdapDirectoryAuthenticator:
    """Simple-bind authenticator using ``<username>@<domain>`` as the bind name."""

    def __init__(self, *, server_url: str, user_domain: str, timeout: int = 5) -> None:
        self._server_url = server_url
        self._user_domain = user_domain
        self._timeout = timeout

    def authenticate(self, username: str, password: str) -> bool:
        if not username or not password:
            return False

        server = Server(self._server_url, connect_timeout=self._timeout)
        connection = Connection(
            server,
            user=f"{username}@{self._user_domain}",
            password=password,
            authentication=SIMPLE,
            receive_timeout=self._timeout,
        )
        try:
            bound = connection.bind()
        except LDAPCommunicationError as exc:
            logger.error("directory unreachable", extra={"server": self._server_url, "error": str(exc)})
            raise DirectoryUnavailableError("Directory server is unavailable, try again later") from exc
        except LDAPException as exc:
            logger.warning("directory bind error", extra={"username": username, "error": str(exc)})
            return False
        finally:
            connection.unbind()

        if not bound:
            logger.info("directory bind rejected", extra={"username": username})
        return bool(bound)


__all__ = ["DirectoryAuthenticator", "DirectoryUnavailableError", "LdapDirectoryAuthenticator"]
