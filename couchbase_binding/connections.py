from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable, Mapping

from .drivers import load_driver
from .errors import ConnectionFault, DoubleReleaseError
from .interfaces import BucketHandle, ClusterSession, StoreDriver, StoreEnvironment
from .settings import BindingSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectionTarget:
    driver: str
    hostname: str
    bucket: str

    @classmethod
    def from_settings(cls, settings: BindingSettings) -> "ConnectionTarget":
        return cls(driver=settings.driver, hostname=settings.hostname, bucket=settings.bucket)


class ConnectionHandle:
    """
    One adapter instance's lease on a shared environment: its own cluster session
    and opened bucket. Only the ConnectionManager that issued it may release it.
    """

    def __init__(self, target: ConnectionTarget, session: ClusterSession, bucket: BucketHandle, lease_id: int):
        self._target = target
        self._session = session
        self._bucket = bucket
        self._lease_id = lease_id
        self._released = False

    @property
    def target(self) -> ConnectionTarget:
        return self._target

    @property
    def session(self) -> ClusterSession:
        return self._session

    @property
    def bucket(self) -> BucketHandle:
        return self._bucket

    @property
    def lease_id(self) -> int:
        return self._lease_id

    @property
    def released(self) -> bool:
        return self._released


class _SharedEnvironment:
    def __init__(self, environment: StoreEnvironment):
        self.environment = environment
        self.refs = 0


class ConnectionManager:
    """
    Reference-counted owner of store environments, one per ConnectionTarget.

    - acquire() creates the environment on first use, then opens a per-instance
      cluster session and bucket through it.
    - release() always disconnects that session; the environment is shut down
      when its last lease is released.
    - Only the create/destroy transitions are serialized; handles are used
      without locking.
    """

    def __init__(
        self,
        drivers: Mapping[str, StoreDriver] | None = None,
        *,
        driver_loader: Callable[[str], StoreDriver] = load_driver,
    ) -> None:
        self._guard = threading.Lock()
        self._drivers: dict[str, StoreDriver] = dict(drivers or {})
        self._driver_loader = driver_loader
        self._shared: dict[ConnectionTarget, _SharedEnvironment] = {}
        self._leases: dict[int, ConnectionHandle] = {}
        self._lease_ids = itertools.count(1)

    def _driver_for(self, name: str) -> StoreDriver:
        driver = self._drivers.get(name)
        if driver is None:
            driver = self._driver_loader(name)
            self._drivers[name] = driver
        return driver

    def _unref_locked(self, target: ConnectionTarget) -> None:
        shared = self._shared[target]
        shared.refs -= 1
        logger.debug("Released %s (refs=%d)", target, shared.refs)
        if shared.refs == 0:
            del self._shared[target]
            logger.info("Shutting down environment for %s", target)
            shared.environment.shutdown()

    def acquire(self, settings: BindingSettings) -> ConnectionHandle:
        target = ConnectionTarget.from_settings(settings)

        with self._guard:
            shared = self._shared.get(target)
            if shared is None:
                try:
                    environment = self._driver_for(target.driver).create_environment(settings)
                except ConnectionFault:
                    raise
                except Exception as exc:
                    raise ConnectionFault(
                        f"could not create environment for {target}: {exc}",
                        details={"hostname": target.hostname, "bucket": target.bucket},
                    ) from exc
                shared = _SharedEnvironment(environment)
                self._shared[target] = shared
                logger.info("Created environment for %s", target)
            shared.refs += 1
            logger.debug("Acquired %s (refs=%d)", target, shared.refs)

        try:
            session = shared.environment.connect(settings.hostname)
            try:
                bucket = session.open_bucket(settings.bucket, settings.password)
            except Exception:
                session.disconnect()
                raise
        except Exception as exc:
            with self._guard:
                self._unref_locked(target)
            if isinstance(exc, ConnectionFault):
                raise
            raise ConnectionFault(
                f"could not connect to {target}: {exc}",
                details={"hostname": target.hostname, "bucket": target.bucket},
            ) from exc

        with self._guard:
            handle = ConnectionHandle(target, session, bucket, next(self._lease_ids))
            self._leases[handle.lease_id] = handle
        return handle

    def release(self, handle: ConnectionHandle) -> None:
        with self._guard:
            if self._leases.get(handle.lease_id) is not handle:
                raise DoubleReleaseError(
                    f"connection lease {handle.lease_id} for {handle.target} is not held by this manager",
                    details={"lease_id": handle.lease_id},
                )
            del self._leases[handle.lease_id]
            handle._released = True
            try:
                handle.session.disconnect()
            finally:
                self._unref_locked(handle.target)

    def ref_count(self, target: ConnectionTarget) -> int:
        with self._guard:
            shared = self._shared.get(target)
            return shared.refs if shared is not None else 0

    def active_targets(self) -> list[ConnectionTarget]:
        with self._guard:
            return list(self._shared)


GLOBAL_CONNECTIONS = ConnectionManager()
