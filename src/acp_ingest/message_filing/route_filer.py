"""Route filer service: filter, reshape, template and persist incoming messages."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any

from acp_ingest.configuration.runtime_settings import RouteConfig, StoreMode
from acp_ingest.message_reshaping.path_expressions import PathExpression, resolve_path
from acp_ingest.message_reshaping.template_expansion import expand_template
from acp_ingest.record_filtering.predicate_evaluator import evaluate

from .file_rotation import persist_filing_request
from .filing_outcomes import FileWriteResult, FilingRequest, WriteStatus

logger = logging.getLogger(__name__)

DEFAULT_PARALLELISM = 4


class RouteFiler:
    """Stores the messages of one route, either fire-and-forget or blocking.

    Overwrite requests from `store_message` run on the worker pool; append
    requests run on a single-worker executor so appends to a file never
    interleave and land in submission order.
    """

    def __init__(
        self,
        route: RouteConfig,
        *,
        executor: Executor | None = None,
        append_executor: Executor | None = None,
        parallelism: int = DEFAULT_PARALLELISM,
    ) -> None:
        self._route = route
        self._executor = executor
        self._append_executor = append_executor
        self._parallelism = max(1, parallelism)
        self._owned_executors: list[ThreadPoolExecutor] = []

    @property
    def route(self) -> RouteConfig:
        return self._route

    def build_filing_requests(self, message: Mapping[str, Any]) -> list[FilingRequest]:
        """Return the writes this route wants for `message`; no side effects."""
        predicate = self._route.predicate
        if predicate is not None and not evaluate(predicate, message):
            return []
        return [self._to_filing_request(record) for record in self._reshape(message)]

    def store_message(self, message: Mapping[str, Any]) -> list[Future[FileWriteResult]]:
        """Schedule the writes for `message` and return without waiting."""
        futures: list[Future[FileWriteResult]] = []
        for request in self.build_filing_requests(message):
            executor = (
                self._get_append_executor()
                if request.store_mode is StoreMode.APPEND
                else self._get_executor()
            )
            future = executor.submit(persist_filing_request, request)
            future.add_done_callback(self._log_failed_write)
            futures.append(future)
        return futures

    def store_message_blocking(self, message: Mapping[str, Any]) -> list[FileWriteResult]:
        """Perform the writes for `message` on the calling thread."""
        return [persist_filing_request(request) for request in self.build_filing_requests(message)]

    def close(self) -> None:
        """Shut down executors this filer created, waiting for queued writes."""
        for executor in self._owned_executors:
            executor.shutdown(wait=True)
            if executor is self._executor:
                self._executor = None
            if executor is self._append_executor:
                self._append_executor = None
        self._owned_executors.clear()

    def _reshape(self, message: Mapping[str, Any]) -> list[Mapping[str, Any]]:
        route = self._route
        if route.flatten_field is not None:
            return self._flatten(message, route.flatten_field)
        if route.records_path is not None:
            return self._extract_records(message, route.records_path)
        return [message]

    def _flatten(self, message: Mapping[str, Any], field: str) -> list[Mapping[str, Any]]:
        elements = message.get(field)
        if not isinstance(elements, list):
            logger.warning(
                "Route %s: flatten field '%s' is not a list, message skipped",
                self._route.route_id,
                field,
            )
            return []
        base = {key: value for key, value in message.items() if key != field}
        return [{**base, **element} for element in self._mapping_elements(elements)]

    def _extract_records(
        self, message: Mapping[str, Any], records_path: PathExpression
    ) -> list[Mapping[str, Any]]:
        records = resolve_path(records_path, message)
        merge_base = {key: message[key] for key in self._route.merge_fields if key in message}
        return [{**merge_base, **element} for element in self._mapping_elements(records)]

    def _mapping_elements(self, elements: list[Any]) -> list[Mapping[str, Any]]:
        mappings = [element for element in elements if isinstance(element, Mapping)]
        skipped = len(elements) - len(mappings)
        if skipped:
            logger.warning(
                "Route %s: skipped %d list elements that are not objects",
                self._route.route_id,
                skipped,
            )
        return mappings

    def _to_filing_request(self, record: Mapping[str, Any]) -> FilingRequest:
        return FilingRequest(
            route_id=self._route.route_id,
            directory=Path(expand_template(self._route.store_path_template, record)),
            file_name=expand_template(self._route.store_name_template, record),
            content=json.dumps(record, separators=(",", ":"), ensure_ascii=False, default=str),
            store_mode=self._route.store_mode,
        )

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = self._own_executor(self._parallelism, "write")
        return self._executor

    def _get_append_executor(self) -> Executor:
        if self._append_executor is None:
            self._append_executor = self._own_executor(1, "append")
        return self._append_executor

    def _own_executor(self, max_workers: int, purpose: str) -> ThreadPoolExecutor:
        executor = ThreadPoolExecutor(
            max_workers=max_workers,
            thread_name_prefix=f"filer-{self._route.route_id}-{purpose}",
        )
        self._owned_executors.append(executor)
        return executor

    def _log_failed_write(self, future: Future[FileWriteResult]) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("Route %s: filing task crashed: %s", self._route.route_id, exc)
            return
        result = future.result()
        if result.status is WriteStatus.FAILED:
            logger.warning(
                "Route %s: write to %s abandoned: %s",
                self._route.route_id,
                result.path,
                result.error_message,
            )
