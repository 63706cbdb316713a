"""
Depository Health Check — Storage availability monitoring.

Provides:
    - HealthCheckService: registered sync/async checks, run individually or together
    - storage_root_check(): the storage root exists, is a directory, is writable
    - Overall health summary for a transport's /health endpoint or the CLI
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger("depository.engine.health")


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"
    UNKNOWN = "unknown"


@dataclass
class HealthCheckResult:
    """Outcome of one check run."""
    name: str
    status: HealthStatus
    latency_ms: float = 0.0
    message: str = ""
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "latency_ms": round(self.latency_ms, 2),
            "message": self.message,
            "checked_at": self.checked_at.isoformat(),
        }


class HealthCheckService:
    """
    Named checks run on demand; the last outcome of each is kept for reporting.

    A check is a sync or async callable. Returning a truthy value means
    healthy; returning falsy, raising, or exceeding ``timeout`` seconds
    means unhealthy. Sync checks run in a worker thread.
    """

    def __init__(self, timeout: float = 10.0):
        self._timeout = timeout
        self._checks: Dict[str, Callable[[], Any]] = {}
        self._last: Dict[str, HealthCheckResult] = {}

    def register_check(self, name: str, check_fn: Callable[[], Any]) -> None:
        self._checks[name] = check_fn
        self._last[name] = HealthCheckResult(name=name, status=HealthStatus.UNKNOWN)
        logger.debug("Health check registered: %s", name)

    @property
    def registered_checks(self) -> List[str]:
        return list(self._checks)

    def get_last_result(self, name: str) -> Optional[HealthCheckResult]:
        return self._last.get(name)

    async def check(self, name: str) -> HealthCheckResult:
        check = self._checks.get(name)
        if check is None:
            return HealthCheckResult(
                name=name,
                status=HealthStatus.UNKNOWN,
                message=f"No health check registered for '{name}'",
            )

        started = time.monotonic()
        healthy, message = await self._run_check(check)
        outcome = HealthCheckResult(
            name=name,
            status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
            latency_ms=(time.monotonic() - started) * 1000,
            message=message,
        )
        self._last[name] = outcome
        return outcome

    async def _run_check(self, check: Callable[[], Any]) -> Tuple[bool, str]:
        pending = check() if asyncio.iscoroutinefunction(check) else asyncio.to_thread(check)
        try:
            healthy = bool(await asyncio.wait_for(pending, timeout=self._timeout))
        except asyncio.TimeoutError:
            return False, f"Timeout after {self._timeout}s"
        except Exception as e:
            logger.debug("Health check raised: %r", e)
            return False, str(e) or type(e).__name__
        return healthy, "OK" if healthy else "Check returned unhealthy"

    async def check_all(self) -> Dict[str, HealthCheckResult]:
        """Run every check concurrently and return the fresh results by name."""
        outcomes = await asyncio.gather(*(self.check(name) for name in self._checks))
        return {outcome.name: outcome for outcome in outcomes}

    def get_overall_health(self) -> Dict[str, Any]:
        """
        Summary of the last run: healthy only if every check is healthy,
        unhealthy if any check is, degraded otherwise (some never ran).
        """
        statuses = {r.status for r in self._last.values()}
        if statuses <= {HealthStatus.HEALTHY}:
            overall = HealthStatus.HEALTHY
        elif HealthStatus.UNHEALTHY in statuses:
            overall = HealthStatus.UNHEALTHY
        else:
            overall = HealthStatus.DEGRADED

        return {
            "status": overall.value,
            "checks": {name: r.to_dict() for name, r in self._last.items()},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


def storage_root_check(root: Path) -> Callable[[], bool]:
    """Build a check that the storage root exists, is a directory and is writable."""
    root = Path(root)

    def _check() -> bool:
        if not root.is_dir():
            raise RuntimeError(f"Storage root is not a directory: {root}")
        fd, check = tempfile.mkstemp(prefix=".depository-health-", dir=str(root))
        os.close(fd)
        os.unlink(check)
        return True

    return _check
