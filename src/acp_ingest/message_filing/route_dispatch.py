"""Route table dispatching bus messages to the filers subscribed to their address."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from acp_ingest.configuration.runtime_settings import RouteConfig

from .filing_outcomes import FileWriteResult
from .route_filer import DEFAULT_PARALLELISM, RouteFiler

logger = logging.getLogger(__name__)


class RouteDispatcher:
    """Owns one RouteFiler per configured route, sharing a worker pool between them."""

    def __init__(
        self,
        routes: Sequence[RouteConfig],
        *,
        parallelism: int = DEFAULT_PARALLELISM,
    ) -> None:
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, parallelism), thread_name_prefix="filer-write"
        )
        self._append_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="filer-append")
        self._filers_by_address: dict[str, list[RouteFiler]] = defaultdict(list)
        for route in routes:
            filer = RouteFiler(
                route,
                executor=self._executor,
                append_executor=self._append_executor,
            )
            self._filers_by_address[route.source_address].append(filer)
            logger.info(
                "Route %s listening on %s, %s to %s/%s",
                route.route_id,
                route.source_address,
                route.store_mode.value,
                route.store_path_template,
                route.store_name_template,
            )

    @property
    def addresses(self) -> tuple[str, ...]:
        return tuple(self._filers_by_address)

    def filers_for(self, address: str) -> tuple[RouteFiler, ...]:
        return tuple(self._filers_by_address.get(address, ()))

    def dispatch(self, address: str, message: Mapping[str, Any]) -> list[Future[FileWriteResult]]:
        """Hand `message` to every filer on `address` without waiting for the writes."""
        futures: list[Future[FileWriteResult]] = []
        for filer in self.filers_for(address):
            try:
                futures.extend(filer.store_message(message))
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.error("Route %s: message not filed: %s", filer.route.route_id, exc)
        return futures

    def dispatch_blocking(self, address: str, message: Mapping[str, Any]) -> list[FileWriteResult]:
        """Hand `message` to every filer on `address` and return once all writes finished."""
        results: list[FileWriteResult] = []
        for filer in self.filers_for(address):
            try:
                results.extend(filer.store_message_blocking(message))
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.error("Route %s: message not filed: %s", filer.route.route_id, exc)
        return results

    def close(self) -> None:
        """Wait for scheduled writes and release the worker threads."""
        for filers in self._filers_by_address.values():
            for filer in filers:
                filer.close()
        self._executor.shutdown(wait=True)
        self._append_executor.shutdown(wait=True)

    def __enter__(self) -> RouteDispatcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
