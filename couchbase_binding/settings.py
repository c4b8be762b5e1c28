from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from dotenv import load_dotenv

DEFAULT_HOSTNAME = "localhost"
DEFAULT_BUCKET = "default"
DEFAULT_PASSWORD = ""
DEFAULT_PERSIST_TO = "master"
DEFAULT_REPLICATE_TO = "0"
DEFAULT_DRIVER = "couchbase"


def _lookup(properties: Mapping[str, str], name: str, env_name: str, default: str) -> str:
    raw = properties.get(name)
    if raw is None:
        raw = os.getenv(env_name)
    if raw is None:
        return default
    return str(raw)


@dataclass(frozen=True)
class BindingSettings:
    # Deployment
    hostname: str
    bucket: str
    password: str
    username: str

    # Durability (raw text, resolved by durability.resolve)
    persist_to: str
    replicate_to: str

    # Which store capability to load (see drivers.load_driver)
    driver: str


def get_settings(properties: Mapping[str, str] | None = None) -> BindingSettings:
    """
    Build settings from harness properties, then COUCHBASE_* env vars, then defaults.
    """
    props = properties or {}

    hostname = _lookup(props, "couchbase.hostname", "COUCHBASE_HOSTNAME", DEFAULT_HOSTNAME).strip()
    bucket = _lookup(props, "couchbase.bucket", "COUCHBASE_BUCKET", DEFAULT_BUCKET).strip()
    password = _lookup(props, "couchbase.password", "COUCHBASE_PASSWORD", DEFAULT_PASSWORD)
    username = _lookup(props, "couchbase.username", "COUCHBASE_USERNAME", "").strip()

    persist_to = _lookup(props, "couchbase.persistTo", "COUCHBASE_PERSIST_TO", DEFAULT_PERSIST_TO)
    replicate_to = _lookup(props, "couchbase.replicateTo", "COUCHBASE_REPLICATE_TO", DEFAULT_REPLICATE_TO)

    driver = _lookup(props, "couchbase.driver", "COUCHBASE_DRIVER", DEFAULT_DRIVER).strip().lower()

    return BindingSettings(
        hostname=hostname or DEFAULT_HOSTNAME,
        bucket=bucket or DEFAULT_BUCKET,
        password=password,
        username=username,
        persist_to=persist_to,
        replicate_to=replicate_to,
        driver=driver or DEFAULT_DRIVER,
    )


def load_settings(properties: Mapping[str, str] | None = None, *, env_file: str | None = "local.env") -> BindingSettings:
    if env_file:
        load_dotenv(env_file)
    return get_settings(properties)
