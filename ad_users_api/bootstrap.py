"""Application bootstrap.

Builds the directory session and guard from the environment and performs
the initial bind. Any failure here stops the process.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import ValidationError

from .ad import ADConfig, ConnectionGuard, DirectorySession, RetryPolicy
from .env_settings import EnvSettings, get_env
from .log_config import setup_logging

log = logging.getLogger(__name__)


@dataclass
class DirectoryContext:
    """What the request handlers need, stored on `app.state.directory`."""

    session: DirectorySession
    guard: ConnectionGuard
    base_dn: str
    provision_strict: bool = True


def ad_cfg_from_env(env: EnvSettings) -> ADConfig:
    return ADConfig(
        server=env.ldap_server,
        bind_principal=env.bind_username,
        bind_password=env.bind_password,
        base_dn=env.base_dn,
        starttls=env.starttls,
        tls_validate=env.tls_validate,
        connect_timeout=env.connect_timeout,
    )


def retry_policy_from_env(env: EnvSettings) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=env.retry_max_attempts,
        initial_delay=env.retry_delay,
        backoff=env.retry_backoff,
        max_delay=env.retry_max_delay,
    )


def initialize_application() -> DirectoryContext:
    try:
        env = get_env()
    except ValidationError as e:
        setup_logging()
        log.critical("Missing or invalid configuration: %s", e)
        raise

    setup_logging(level=env.log_level, log_dir=env.log_dir)

    cfg = ad_cfg_from_env(env)
    session = DirectorySession(cfg)
    # TransportError/AuthError at startup are fatal
    session.connect()

    return DirectoryContext(
        session=session,
        guard=ConnectionGuard(retry_policy_from_env(env)),
        base_dn=cfg.base_dn,
        provision_strict=env.provision_strict,
    )
