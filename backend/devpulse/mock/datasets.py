"""datasets.py — Named synthetic dataset store.

Owns every ``Dataset`` record, keyed by name. Datasets are created lazily on
first access, replaced wholesale by ``reset``/``import_``, and never edited
in place.

Concurrency:
    First access to an unseen name is single-flighted. Callers take a
    per-name asyncio lock and re-read the backend once inside it, so only
    the first caller generates; the rest find the stored result. Backends
    store with insert-if-absent, which makes separate processes converge on
    one dataset as well.

Called by: core/interception.py, api/routes/admin.py
Depends on: generator.py, protocols.py (DatasetBackend)
"""

from __future__ import annotations

import asyncio

import structlog
from pydantic import ValidationError as PydanticValidationError

from devpulse.core.errors import DatasetNotFoundError, ValidationError
from devpulse.core.protocols import DatasetBackend
from devpulse.mock.generator import SyntheticDataGenerator, validate_dataset
from devpulse.models.schemas import Dataset, GenerationParameters, validate_dataset_name

logger = structlog.get_logger()


class DatasetStore:
    """Persist, generate, reset, import and export named datasets.

    Args:
        backend: Where datasets live (Postgres or in-memory).
        generator: Builds new datasets.
        default_parameters: Used by ``get_or_create`` and by ``reset`` without params.
    """

    def __init__(
        self,
        backend: DatasetBackend,
        generator: SyntheticDataGenerator,
        default_parameters: GenerationParameters,
    ) -> None:
        self._backend = backend
        self._generator = generator
        self._default_parameters = default_parameters
        self._locks: dict[str, asyncio.Lock] = {}

    @property
    def default_parameters(self) -> GenerationParameters:
        return self._default_parameters

    def _lock_for(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = self._locks[name] = asyncio.Lock()
        return lock

    async def _generate(self, name: str, params: GenerationParameters) -> Dataset:
        # CPU-bound; keep the event loop responsive while it runs.
        dataset = await asyncio.to_thread(self._generator.generate, params, name)
        logger.info(
            "dataset_generated",
            name=name,
            generation_id=dataset.generation_id,
            repositories=len(dataset.repositories),
            identities=len(dataset.identities),
        )
        return dataset

    # ─── Reads ────────────────────────────────────────────────────────────────

    async def get(self, name: str) -> Dataset | None:
        return await self._backend.get(name)

    async def get_or_create(self, name: str) -> Dataset:
        """Return the named dataset, generating it with default parameters on a miss.

        Concurrent first-access callers share one generation.
        """
        dataset = await self._backend.get(name)
        if dataset is not None:
            return dataset

        validate_dataset_name(name)
        async with self._lock_for(name):
            dataset = await self._backend.get(name)
            if dataset is not None:
                return dataset
            generated = await self._generate(name, self._default_parameters)
            return await self._backend.insert_if_absent(generated)

    async def list_names(self) -> list[str]:
        """Dataset names in creation order."""
        return await self._backend.list_names()

    # ─── Writes ───────────────────────────────────────────────────────────────

    async def reset(self, name: str, params: GenerationParameters | None = None) -> Dataset:
        """Regenerate ``name`` from scratch, creating it if absent.

        The new dataset is generated before anything is replaced, so a
        generation or validation failure leaves the previous one in place.
        """
        validate_dataset_name(name)
        async with self._lock_for(name):
            dataset = await self._generate(name, params or self._default_parameters)
            await self._backend.replace(dataset)
        logger.info("dataset_reset", name=name, generation_id=dataset.generation_id)
        return dataset

    async def delete(self, name: str) -> bool:
        validate_dataset_name(name)
        async with self._lock_for(name):
            removed = await self._backend.delete(name)
        if removed:
            # Nothing is stored under the name any more; a later get_or_create
            # builds a fresh lock.
            self._locks.pop(name, None)
            logger.info("dataset_deleted", name=name)
        return removed

    # ─── Import / Export ──────────────────────────────────────────────────────

    async def export(self, name: str) -> bytes:
        """Serialize the named dataset to a JSON document."""
        dataset = await self._backend.get(name)
        if dataset is None:
            raise DatasetNotFoundError(f"Dataset '{name}' does not exist.")
        return dataset.model_dump_json(indent=2).encode("utf-8")

    async def import_(self, name: str, blob: bytes | str) -> Dataset:
        """Validate an exported document and store it under ``name``.

        The document's own ``name`` field is ignored. Any dataset already
        stored under ``name`` is replaced only after validation passes.

        Raises:
            ValidationError: Malformed JSON, wrong shape, or broken references.
        """
        validate_dataset_name(name)
        try:
            parsed = Dataset.model_validate_json(blob)
        except PydanticValidationError as exc:
            problems = [
                f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ValidationError("Import document is not a valid dataset.", problems) from exc

        dataset = parsed.model_copy(update={"name": name})
        validate_dataset(dataset)

        async with self._lock_for(name):
            await self._backend.replace(dataset)
        logger.info("dataset_imported", name=name, generation_id=dataset.generation_id)
        return dataset

    # reset() creates when absent, so it is also exposed as an upsert.
    upsert_dataset = reset
    list = list_names
