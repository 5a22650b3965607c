from __future__ import annotations

import logging
import ssl
import threading
from contextlib import contextmanager
from typing import Callable, Iterator

from ldap3 import Server, Connection, ALL, Tls
from ldap3.core.exceptions import LDAPException, LDAPBindError

from .errors import AuthError, TransportError
from .models import ADConfig

log = logging.getLogger(__name__)

ConnectionFactory = Callable[[], Connection]


class DirectorySession:
    """Owner of the single authenticated directory connection.

    The connection handle is only touched with the lock held: either by
    bind() while it checks or replaces the handle, or by a caller inside
    connection() for the whole of one directory operation.
    """

    def __init__(self, cfg: ADConfig, connection_factory: ConnectionFactory | None = None) -> None:
        self.cfg = cfg
        self._factory = connection_factory or self._ldap3_connection
        self._connection: Connection | None = None
        self._lock = threading.RLock()
        self._server: Server | None = None

    def _build_server(self) -> Server:
        tls = Tls(validate=ssl.CERT_REQUIRED if self.cfg.tls_validate else ssl.CERT_NONE)
        return Server(
            self.cfg.server,
            use_ssl=self.cfg.use_ssl,
            get_info=ALL,
            tls=tls,
            connect_timeout=self.cfg.connect_timeout,
        )

    def _ldap3_connection(self) -> Connection:
        if self._server is None:
            self._server = self._build_server()
        return Connection(
            self._server,
            user=self.cfg.bind_principal,
            password=self.cfg.bind_password,
            auto_bind=False,
        )

    def _open(self) -> Connection:
        """New transport connection, upgraded with StartTLS when configured."""
        try:
            conn = self._factory()
            conn.open()
            tls_ok = conn.start_tls() if self.cfg.starttls and not self.cfg.use_ssl else True
        except (LDAPException, OSError) as e:
            raise TransportError(f"Cannot connect to {self.cfg.server}: {e}") from e
        if not tls_ok:
            res = dict(conn.result or {})
            self._discard(conn)
            raise TransportError(f"StartTLS refused by {self.cfg.server}: {res.get('description', '')}")
        return conn

    @staticmethod
    def _discard(conn: Connection) -> None:
        try:
            conn.unbind()
        except (LDAPException, OSError) as e:
            log.debug("Ignoring error while dropping connection: %s", e)

    def _try_bind(self, conn: Connection) -> bool:
        # ldap3 reopens a closed handle inside bind() without StartTLS
        if conn.closed:
            log.warning("Connection to %s was closed", self.cfg.server)
            return False
        try:
            return bool(conn.bind())
        except (LDAPException, OSError) as e:
            log.warning("Bind on existing connection raised: %s", e)
            return False

    def bind(self) -> None:
        """Authenticate the session, replacing the connection if the bind fails.

        The current handle is re-bound first if its socket is still open. Otherwise,
        or if that bind fails, the handle is dropped and a new transport
        connection is opened (with StartTLS when configured) and bound once.

        Raises TransportError when the server cannot be reached and AuthError
        when it refuses the credentials.
        """
        with self._lock:
            conn = self._connection
            if conn is not None:
                if self._try_bind(conn):
                    return
                log.warning("Rebind failed (%s), reconnecting to %s", conn.result, self.cfg.server)
                self._connection = None
                self._discard(conn)

            conn = self._open()
            try:
                ok = bool(conn.bind())
            except LDAPBindError as e:
                self._discard(conn)
                raise AuthError(f"Bind as {self.cfg.bind_principal} rejected: {e}") from e
            except (LDAPException, OSError) as e:
                self._discard(conn)
                raise TransportError(f"Bind to {self.cfg.server} failed: {e}") from e
            if not ok:
                res = dict(conn.result or {})
                self._discard(conn)
                raise AuthError(
                    f"Bind as {self.cfg.bind_principal} rejected: {res.get('description', 'unknown error')}"
                )

            self._connection = conn
            log.info("Bound to %s as %s", self.cfg.server, self.cfg.bind_principal)

    def connect(self) -> None:
        """Initial bind at process start. Errors here are not retried."""
        self.bind()

    @property
    def is_bound(self) -> bool:
        conn = self._connection
        return bool(conn is not None and conn.bound)

    @contextmanager
    def connection(self) -> Iterator[Connection]:
        """Hold the session lock and yield the live connection."""
        with self._lock:
            if self._connection is None:
                raise TransportError(f"No connection to {self.cfg.server}")
            yield self._connection

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._discard(self._connection)
                self._connection = None
                log.info("Disconnected from %s", self.cfg.server)
