"""
Analysis store.

Keyed persistence of finished ManifestAnalysis objects. Two backends share
one contract: an in-memory store (per instance, no module-level state) and
a Supabase table holding the serialized analysis as JSON.
"""

from abc import ABC, abstractmethod
from typing import Optional
import structlog

from config.database import get_supabase_client
from config.settings import settings
from exceptions import StoreError
from models.manifest import ManifestAnalysis

logger = structlog.get_logger(__name__)


class AnalysisStore(ABC):
    """put/get/delete/list_all contract. Last write wins on put."""

    @abstractmethod
    def put(self, manifest_id: str, analysis: ManifestAnalysis) -> None:
        ...

    @abstractmethod
    def get(self, manifest_id: str) -> Optional[ManifestAnalysis]:
        ...

    @abstractmethod
    def delete(self, manifest_id: str) -> bool:
        ...

    @abstractmethod
    def list_all(self) -> list[ManifestAnalysis]:
        ...


class InMemoryAnalysisStore(AnalysisStore):
    """Dictionary-backed store. Hands out copies so callers cannot mutate stored data."""

    def __init__(self):
        self._analyses: dict[str, ManifestAnalysis] = {}

    def put(self, manifest_id: str, analysis: ManifestAnalysis) -> None:
        self._analyses[manifest_id] = analysis.model_copy(deep=True)

    def get(self, manifest_id: str) -> Optional[ManifestAnalysis]:
        analysis = self._analyses.get(manifest_id)
        return analysis.model_copy(deep=True) if analysis else None

    def delete(self, manifest_id: str) -> bool:
        return self._analyses.pop(manifest_id, None) is not None

    def list_all(self) -> list[ManifestAnalysis]:
        return [a.model_copy(deep=True) for a in self._analyses.values()]

    def __len__(self) -> int:
        return len(self._analyses)


class SupabaseAnalysisStore(AnalysisStore):
    """
    Supabase-backed store.

    One row per analysis: id, file_name, upload_timestamp and the full
    analysis as a JSON payload. Any client failure or unreadable payload
    becomes StoreError.
    """

    def __init__(self, client=None, table: Optional[str] = None):
        self._client = client
        self.table = table or settings.manifests_table

    @property
    def db(self):
        if self._client is None:
            self._client = get_supabase_client()
        return self._client

    def put(self, manifest_id: str, analysis: ManifestAnalysis) -> None:
        row = {
            "id": manifest_id,
            "file_name": analysis.file_name,
            "upload_timestamp": analysis.upload_timestamp.isoformat(),
            "payload": analysis.model_dump(mode="json"),
        }
        try:
            self.db.table(self.table).upsert(row).execute()
        except Exception as e:
            logger.error("analysis_store_put_failed", manifest_id=manifest_id, error=str(e))
            raise StoreError("put", str(e), details={"manifest_id": manifest_id}) from e

    def get(self, manifest_id: str) -> Optional[ManifestAnalysis]:
        try:
            result = self.db.table(self.table).select("*").eq("id", manifest_id).execute()
            if not result.data:
                return None
            return ManifestAnalysis.model_validate(result.data[0]["payload"])
        except Exception as e:
            logger.error("analysis_store_get_failed", manifest_id=manifest_id, error=str(e))
            raise StoreError("get", str(e), details={"manifest_id": manifest_id}) from e

    def delete(self, manifest_id: str) -> bool:
        try:
            result = self.db.table(self.table).delete().eq("id", manifest_id).execute()
        except Exception as e:
            logger.error("analysis_store_delete_failed", manifest_id=manifest_id, error=str(e))
            raise StoreError("delete", str(e), details={"manifest_id": manifest_id}) from e
        return bool(result.data)

    def list_all(self) -> list[ManifestAnalysis]:
        try:
            result = (
                self.db.table(self.table)
                .select("*")
                .order("upload_timestamp", desc=True)
                .execute()
            )
            return [ManifestAnalysis.model_validate(row["payload"]) for row in result.data]
        except Exception as e:
            logger.error("analysis_store_list_failed", error=str(e))
            raise StoreError("list", str(e)) from e


def build_analysis_store() -> AnalysisStore:
    """Store backend selected by settings.store_backend."""
    if settings.store_backend == "supabase":
        logger.info("analysis_store_selected", backend="supabase", table=settings.manifests_table)
        return SupabaseAnalysisStore()
    logger.info("analysis_store_selected", backend="memory")
    return InMemoryAnalysisStore()
