"""Shared fixtures: an in-memory directory and ldap3-like fake connections."""

import re
import threading
import time
from contextlib import contextmanager

import pytest
from fastapi.testclient import TestClient
from ldap3.core.exceptions import LDAPSocketOpenError

from ad_users_api.ad import ADConfig, ConnectionGuard, DirectorySession, RetryPolicy
from ad_users_api.bootstrap import DirectoryContext
from ad_users_api.main import create_app

BASE_DN = "OU=HQ,DC=example,DC=com"

_SUCCESS = {"result": 0, "description": "success"}


class FakeDirectory:
    """Entries keyed by DN plus knobs to make individual operations fail."""

    def __init__(self):
        self.entries = {}
        self.passwords = {}
        self.calls = []
        self.connections = []
        self.binds = []

        self.unreachable = False
        self.reject_bind = False
        self.fail_add = False
        self.fail_modify = set()
        self.fail_delete = False
        self.hide_entries = False

        self.op_delay = 0.0
        self._guard = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0

    def add_user(self, dn, **attrs):
        entry = {k: list(v) for k, v in attrs.items()}
        entry.setdefault("distinguishedName", [dn])
        entry.setdefault("objectClass", ["top", "person", "organizationalPerson", "user"])
        self.entries[dn] = entry
        return entry

    def ops(self):
        return [op for op, _ in self.calls]

    @contextmanager
    def track(self, op, dn=""):
        with self._guard:
            self.calls.append((op, dn))
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.op_delay:
                time.sleep(self.op_delay)
            yield
        finally:
            with self._guard:
                self.in_flight -= 1


class FakeConnection:
    """The subset of ldap3.Connection the application uses."""

    def __init__(self, directory):
        self.directory = directory
        self.bound = False
        self.closed = True
        self.tls_started = False
        self.result = None
        self.response = []
        directory.connections.append(self)

    def open(self):
        if self.directory.unreachable:
            raise LDAPSocketOpenError("socket connection error while opening: [Errno 111] Connection refused")
        self.closed = False
        self.tls_started = False
        self.directory.calls.append(("open", ""))

    def start_tls(self):
        self.directory.calls.append(("start_tls", ""))
        self.tls_started = True
        return True

    def bind(self):
        # like ldap3: a closed handle is silently reopened, without StartTLS
        if self.closed:
            self.open()
        self.directory.calls.append(("bind", ""))
        self.directory.binds.append(self.tls_started)
        if self.directory.reject_bind:
            self.bound = False
            self.result = {"result": 49, "description": "invalidCredentials"}
            return False
        self.bound = True
        self.result = dict(_SUCCESS)
        return True

    def unbind(self):
        self.bound = False
        self.closed = True
        return True

    def add(self, dn, object_class=None, attributes=None):
        with self.directory.track("add", dn):
            if self.directory.fail_add or dn in self.directory.entries:
                self.result = {"result": 68, "description": "entryAlreadyExists"}
                return False
            entry = {k: list(v) for k, v in (attributes or {}).items()}
            entry["distinguishedName"] = [dn]
            entry["name"] = list(entry.get("cn", []))
            self.directory.entries[dn] = entry
            self.result = dict(_SUCCESS)
            return True

    def modify(self, dn, changes):
        with self.directory.track("modify", dn):
            attr = next(iter(changes))
            if attr in self.directory.fail_modify or dn not in self.directory.entries:
                self.result = {"result": 53, "description": "unwillingToPerform"}
                return False
            _, values = changes[attr][0]
            if attr == "unicodePwd":
                self.directory.passwords[dn] = values[0]
            else:
                self.directory.entries[dn][attr] = [str(v) for v in values]
            self.result = dict(_SUCCESS)
            return True

    def delete(self, dn):
        with self.directory.track("delete", dn):
            if self.directory.fail_delete or dn not in self.directory.entries:
                self.result = {"result": 50, "description": "insufficientAccessRights"}
                return False
            del self.directory.entries[dn]
            self.result = dict(_SUCCESS)
            return True

    def search(self, search_base, search_filter, search_scope="SUBTREE", attributes=None):
        with self.directory.track("search", search_base):
            entries = {} if self.directory.hide_entries else self.directory.entries
            if search_scope == "BASE":
                if search_base not in entries:
                    self.result = {"result": 32, "description": "noSuchObject"}
                    self.response = []
                    return False
                matched = [search_base]
            else:
                suffix = search_base.lower()
                matched = [dn for dn in entries if dn.lower().endswith(suffix)]
                m = re.search(r"\(sAMAccountName=([^)]*)\)", search_filter)
                if m:
                    matched = [dn for dn in matched if entries[dn].get("sAMAccountName") == [m.group(1)]]

            self.response = [
                {
                    "type": "searchResEntry",
                    "dn": dn,
                    "raw_attributes": {k: [v.encode("utf-8") for v in vals] for k, vals in entries[dn].items()},
                }
                for dn in matched
            ]
            self.result = dict(_SUCCESS)
            return bool(self.response)


@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def ad_config():
    return ADConfig(
        server="ldap://dc01.example.com",
        bind_principal="svc-api@example.com",
        bind_password="secret",
        base_dn=BASE_DN,
    )


@pytest.fixture
def unbound_session(ad_config, fake_directory):
    return DirectorySession(ad_config, connection_factory=lambda: FakeConnection(fake_directory))


@pytest.fixture
def session(unbound_session):
    unbound_session.connect()
    return unbound_session


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def directory_context(session, sleeps):
    guard = ConnectionGuard(RetryPolicy(max_attempts=3, initial_delay=0.5), sleep=sleeps.append)
    return DirectoryContext(session=session, guard=guard, base_dn=BASE_DN)


@pytest.fixture
def client(directory_context):
    return TestClient(create_app(directory_context))
