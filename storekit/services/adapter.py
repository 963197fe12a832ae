"""Uniform storage adapter.

This module provides the single operation set callers use against any
object storage backend. It is written against the ``BackendClient``
protocol only, and is the sole translation boundary between backend
failures and the canonical errors in ``storekit.common.errors``.
"""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, BinaryIO, Callable, Iterator, Mapping, TypeVar, Union

from storekit.common.config import AdapterOptions
from storekit.common.errors import (
    AdapterError,
    AlreadyExistsError,
    NotFoundError,
    StorageFailureError,
)
from storekit.domain.key_paths import KeyPathMapper, unique_in_order
from storekit.domain.metadata_cache import MetadataCache
from storekit.infra.observability.metrics import observe_operation
from storekit.infra.storage.client import (
    AmbiguousResponseError,
    BackendClient,
    Container,
    ObjectMissingError,
    ObjectRecord,
    ObjectStat,
    ObjectSummary,
)
from storekit.services.container import ContainerLifecycle
from storekit.services.content_type import detect_content_type

logger = logging.getLogger(__name__)

T = TypeVar("T")

Content = Union[bytes, bytearray, memoryview, str, BinaryIO]


def _as_bytes(content: Content) -> bytes:
    if isinstance(content, bytes):
        return content
    if isinstance(content, (bytearray, memoryview)):
        return bytes(content)
    if isinstance(content, str):
        return content.encode("utf-8")
    if hasattr(content, "read"):
        data = content.read()
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)
    raise TypeError(f"Unsupported content type: {type(content).__name__}")


def _to_timestamp(value: datetime | str | int | float) -> int:
    """Convert a backend last-modified value to Unix seconds (UTC).

    Naive values are interpreted as UTC. Strings may be RFC 1123
    (``Tue, 13 Jun 2017 22:02:34 GMT``) or ISO 8601.
    """
    if isinstance(value, bool):
        raise TypeError("Boolean is not a valid last-modified value")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            moment = parsedate_to_datetime(text)
        except (TypeError, ValueError):
            moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported last-modified value: {value!r}")

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp())


class StorageAdapter:
    """Key-based object operations over an arbitrary backend.

    Every operation resolves the container first (see
    ``ContainerLifecycle``) and raises only ``AdapterError`` subclasses.

    Metadata policy is cache-then-push: ``set_metadata`` always updates the
    local cache, pushes immediately when the object already exists and the
    backend can replace metadata, and is otherwise merged into the next
    ``write`` of the key.
    """

    def __init__(
        self,
        backend: BackendClient,
        container: str,
        *,
        options: AdapterOptions | None = None,
        metrics_enabled: bool = True,
    ) -> None:
        self._backend = backend
        self._options = options or AdapterOptions()
        self._paths = KeyPathMapper(self._options.path_prefix)
        self._lifecycle = ContainerLifecycle(
            backend,
            container,
            create_if_missing=self._options.create_container_if_missing,
            access_policy=self._options.default_access_policy,
        )
        self._metadata = MetadataCache()
        self._metrics_enabled = metrics_enabled

    @property
    def options(self) -> AdapterOptions:
        return self._options

    @property
    def lifecycle(self) -> ContainerLifecycle:
        return self._lifecycle

    @property
    def container_name(self) -> str:
        return self._lifecycle.name

    # ---- plumbing ----

    @contextmanager
    def _operation(self, operation: str) -> Iterator[None]:
        try:
            if self._metrics_enabled:
                with observe_operation(self._backend.name, operation):
                    yield
            else:
                yield
        except AdapterError as exc:
            logger.log(
                logging.DEBUG if isinstance(exc, NotFoundError) else logging.WARNING,
                "storage_operation_failed operation=%s kind=%s container=%s",
                operation,
                exc.kind,
                self.container_name,
                extra={"extra": exc.to_dict()},
            )
            raise

    def _call(
        self,
        operation: str,
        context: Mapping[str, Any],
        func: Callable[..., T],
        *args: Any,
        missing_key: str | None = None,
        **kwargs: Any,
    ) -> T:
        """Invoke a backend primitive, translating its failures.

        ``ObjectMissingError`` becomes ``NotFoundError`` when ``missing_key``
        is given, and ``StorageFailureError`` otherwise.
        """
        try:
            return func(*args, **kwargs)
        except ObjectMissingError as exc:
            if missing_key is None:
                raise StorageFailureError.unexpected(operation, context, exc) from exc
            raise NotFoundError(missing_key, operation=operation, cause=exc) from exc
        except AdapterError:
            raise
        except Exception as exc:
            raise StorageFailureError.unexpected(operation, context, exc) from exc

    def _resolve(self, operation: str, context: Mapping[str, Any]) -> Container:
        return self._lifecycle.resolve(operation, context)

    def _probe(self, container: Container, key: str, operation: str) -> bool:
        try:
            return bool(self._backend.object_exists(container, self._paths.to_path(key)))
        except (ObjectMissingError, AmbiguousResponseError):
            return False
        except Exception as exc:
            raise StorageFailureError.unexpected(operation, {"key": key}, exc) from exc

    def _fetch(self, key: str, operation: str) -> ObjectRecord:
        container = self._resolve(operation, {"key": key})
        return self._call(
            operation,
            {"key": key},
            self._backend.get_object,
            container,
            self._paths.to_path(key),
            missing_key=key,
        )

    def _stat(self, key: str, operation: str) -> ObjectStat:
        container = self._resolve(operation, {"key": key})
        return self._call(
            operation,
            {"key": key},
            self._backend.stat_object,
            container,
            self._paths.to_path(key),
            missing_key=key,
        )

    def _list(
        self, operation: str, prefix: str, *, limit: int | None = None
    ) -> list[ObjectSummary]:
        container = self._resolve(operation, {"prefix": prefix})
        summaries = self._call(
            operation,
            {"prefix": prefix},
            self._backend.list_objects,
            container,
            self._paths.to_path(prefix),
            limit=limit,
        )
        return list(summaries)

    # ---- operations ----

    def read(self, key: str) -> bytes:
        with self._operation("read"):
            return self._fetch(key, "read").content

    def open_stream(self, key: str) -> BinaryIO:
        """Return the object content as a binary stream."""
        with self._operation("open_stream"):
            return io.BytesIO(self._fetch(key, "open_stream").content)

    def write(
        self,
        key: str,
        content: Content,
        *,
        content_type: str | None = None,
        metadata: Mapping[str, str] | None = None,
    ) -> int:
        """Upload ``content`` under ``key`` and return the number of bytes written.

        Cached metadata for ``key`` is merged into the upload; explicitly
        passed ``metadata`` wins over cached values.
        """
        with self._operation("write"):
            try:
                data = _as_bytes(content)
            except TypeError:
                raise
            except Exception as exc:
                raise StorageFailureError.unexpected("write", {"key": key}, exc) from exc
            container = self._resolve("write", {"key": key})
            merged = self._metadata.merged(key)
            merged.update(metadata or {})
            if content_type is None and self._options.detect_content_type:
                content_type = detect_content_type(data)

            self._call(
                "write",
                {"key": key, "content_length": len(data)},
                self._backend.put_object,
                container,
                self._paths.to_path(key),
                data,
                content_type=content_type,
                metadata=merged or None,
            )
            return len(data)

    def exists(self, key: str) -> bool:
        with self._operation("exists"):
            container = self._resolve("exists", {"key": key})
            return self._probe(container, key, "exists")

    def delete(self, key: str) -> None:
        with self._operation("delete"):
            container = self._resolve("delete", {"key": key})
            self._call(
                "delete",
                {"key": key},
                self._backend.delete_object,
                container,
                self._paths.to_path(key),
                missing_key=key,
            )
            self._metadata.pop(key)

    def rename(self, source_key: str, target_key: str) -> None:
        """Move ``source_key`` to ``target_key`` by copy and delete.

        Never clobbers: an existing target raises ``AlreadyExistsError``
        before either object is touched. Not atomic: if the final delete
        fails, the target has been written and the source is left behind;
        the failure surfaces as ``StorageFailureError`` with
        ``context["partial"]`` set and no rollback is attempted.
        """
        context = {"source": source_key, "target": target_key}
        with self._operation("rename"):
            container = self._resolve("rename", context)
            if self._probe(container, target_key, "rename"):
                raise AlreadyExistsError(
                    target_key, operation="rename", context={"source": source_key}
                )

            record = self._call(
                "rename",
                context,
                self._backend.get_object,
                container,
                self._paths.to_path(source_key),
            )
            metadata = self._metadata.merged(source_key, record.stat.metadata)
            metadata = self._metadata.merged(target_key, metadata)
            self._call(
                "rename",
                context,
                self._backend.put_object,
                container,
                self._paths.to_path(target_key),
                record.content,
                content_type=record.stat.content_type,
                metadata=metadata or None,
            )

            try:
                self._backend.delete_object(container, self._paths.to_path(source_key))
            except Exception as exc:
                logger.error(
                    "rename_partial_failure source=%s target=%s container=%s error=%s",
                    source_key,
                    target_key,
                    self.container_name,
                    exc,
                )
                raise StorageFailureError.unexpected(
                    "rename", {**context, "partial": True}, exc
                ) from exc

            cached = self._metadata.pop(source_key)
            if cached is not None and target_key not in self._metadata:
                self._metadata.set(target_key, cached)

    def keys(self) -> list[str]:
        """Return every key in ascending lexicographic order."""
        with self._operation("keys"):
            summaries = self._list("keys", "")
            return sorted({self._paths.to_key(item.key) for item in summaries})

    def list_keys(self, prefix: str = "") -> list[str]:
        """Return keys starting with ``prefix``, without duplicates."""
        with self._operation("list_keys"):
            summaries = self._list("list_keys", prefix)
            keys = (self._paths.to_key(item.key) for item in summaries)
            return unique_in_order(key for key in keys if key.startswith(prefix))

    def mtime(self, key: str) -> int:
        """Return the last-modified time of ``key`` as Unix seconds (UTC)."""
        with self._operation("mtime"):
            stat = self._stat(key, "mtime")
            try:
                if stat.last_modified is None:
                    raise ValueError("backend reported no last-modified value")
                return _to_timestamp(stat.last_modified)
            except (TypeError, ValueError) as exc:
                raise StorageFailureError.unexpected("mtime", {"key": key}, exc) from exc

    def size(self, key: str) -> int:
        with self._operation("size"):
            stat = self._stat(key, "size")
            if stat.size_bytes is None:
                raise StorageFailureError.unexpected(
                    "size", {"key": key}, ValueError("backend reported no content length")
                )
            return int(stat.size_bytes)

    def checksum(self, key: str) -> str | None:
        """Return the backend entity tag verbatim."""
        with self._operation("checksum"):
            return self._stat(key, "checksum").etag

    def mime_type(self, key: str) -> str | None:
        """Return the backend content type, or a sniffed one if detection is on."""
        with self._operation("mime_type"):
            stat = self._stat(key, "mime_type")
            if stat.content_type:
                return stat.content_type
            if not self._options.detect_content_type:
                return None
            return detect_content_type(self._fetch(key, "mime_type").content)

    def get_metadata(self, key: str) -> dict[str, str]:
        with self._operation("get_metadata"):
            container = self._resolve("get_metadata", {"key": key})
            cached = self._metadata.get(key)
            if cached is not None:
                return cached
            try:
                stat = self._backend.stat_object(container, self._paths.to_path(key))
            except ObjectMissingError:
                return {}
            except Exception as exc:
                raise StorageFailureError.unexpected(
                    "get_metadata", {"key": key}, exc
                ) from exc
            return dict(stat.metadata or {})

    def set_metadata(self, key: str, metadata: Mapping[str, str]) -> None:
        with self._operation("set_metadata"):
            container = self._resolve("set_metadata", {"key": key})
            entry = self._metadata.set(key, metadata)
            if not getattr(self._backend, "supports_metadata_update", False):
                return
            if not self._probe(container, key, "set_metadata"):
                return
            try:
                self._backend.replace_metadata(
                    container, self._paths.to_path(key), entry
                )
            except ObjectMissingError:
                # Removed since the probe; the next write carries the entry.
                return
            except Exception as exc:
                raise StorageFailureError.unexpected(
                    "set_metadata", {"key": key}, exc
                ) from exc

    def is_directory(self, key: str) -> bool:
        """Return true iff at least one object lives under ``key + "/"``."""
        with self._operation("is_directory"):
            container = self._resolve("is_directory", {"key": key})
            summaries = self._call(
                "is_directory",
                {"key": key},
                self._backend.list_objects,
                container,
                self._paths.directory_prefix(key),
                limit=1,
            )
            return len(list(summaries)) > 0
