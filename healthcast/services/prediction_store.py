"""
Persistence for the active prediction set and the user's prediction settings.

Both live in a single JSON document that is always fully replaced on write
(temporary file + atomic rename), so concurrent runs resolve as last write
wins. Expired predictions are filtered on read and physically removed only
by ``purge_expired()``.
"""

import os
import tempfile
from collections.abc import Callable, Sequence
from datetime import date
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from healthcast.config import StorageConfig
from healthcast.domain.models import Prediction, PredictionSettings, RiskLevel
from healthcast.services.sources import logger


class PredictionStoreError(Exception):
    """The prediction document could not be read from or written to storage."""


class PredictionDocument(BaseModel):
    """Serialized shape of the store: predictions array + settings object."""

    predictions: list[Prediction] = Field(default_factory=list)
    settings: PredictionSettings = Field(default_factory=PredictionSettings)


class PredictionStore:
    """
    One store instance per user session.

    With ``path=None`` the document is kept in memory only, which is what the
    tests and short-lived scripts use.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.path = Path(path) if path is not None else None
        self._today = today
        self._memory = PredictionDocument()
        self.logger = logger.bind(
            component="prediction_store", path=str(self.path) if self.path else ":memory:"
        )

    @classmethod
    def from_config(
        cls, config: StorageConfig, today: Callable[[], date] = date.today
    ) -> "PredictionStore":
        """File-backed store at the configured ``PREDICTION_STORE_PATH``."""
        return cls(config.path, today=today)

    # Predictions

    def save(self, predictions: Sequence[Prediction]) -> None:
        """Replace the persisted prediction set."""
        document = self._load()
        self._write(PredictionDocument(predictions=list(predictions), settings=document.settings))
        self.logger.info("predictions_saved", count=len(predictions))

    def get_all(self) -> list[Prediction]:
        today = self._today()
        return [p for p in self._load().predictions if p.predicted_date >= today]

    def get_for_today(self) -> list[Prediction]:
        today = self._today()
        return [p for p in self.get_all() if p.predicted_date == today]

    def get_high_risk(self) -> list[Prediction]:
        return [p for p in self.get_all() if p.risk_level == RiskLevel.HIGH]

    def purge_expired(self) -> int:
        """Rewrite the stored set without expired predictions; returns how many were dropped."""
        document = self._load()
        active = self.get_all()
        removed = len(document.predictions) - len(active)
        if removed:
            self._write(PredictionDocument(predictions=active, settings=document.settings))
        self.logger.info("expired_predictions_purged", removed=removed, remaining=len(active))
        return removed

    def clear(self) -> None:
        document = self._load()
        self._write(PredictionDocument(predictions=[], settings=document.settings))
        self.logger.info("predictions_cleared")

    # Settings

    def get_settings(self) -> PredictionSettings:
        return self._load().settings

    def save_settings(self, settings: PredictionSettings) -> None:
        document = self._load()
        self._write(PredictionDocument(predictions=document.predictions, settings=settings))
        self.logger.info(
            "prediction_settings_saved",
            enabled=settings.enabled,
            weather_integration=settings.weather_integration,
            min_confidence=settings.min_confidence,
            days_to_predict=settings.days_to_predict,
        )

    # Document I/O

    def _load(self) -> PredictionDocument:
        if self.path is None:
            return self._memory.model_copy(deep=True)

        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return PredictionDocument()
        except UnicodeDecodeError as e:
            self.logger.warning("prediction_document_corrupt", error=str(e))
            return PredictionDocument()
        except OSError as e:
            raise PredictionStoreError(f"Failed to read {self.path}: {e}") from e

        try:
            return PredictionDocument.model_validate_json(raw)
        except ValidationError as e:
            # Unreadable documents fall back to defaults instead of blocking the user
            self.logger.warning("prediction_document_corrupt", error=str(e))
            return PredictionDocument()

    def _write(self, document: PredictionDocument) -> None:
        if self.path is None:
            self._memory = document.model_copy(deep=True)
            return

        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(document.model_dump_json(indent=2))
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            self.logger.error("prediction_document_write_failed", error=str(e))
            raise PredictionStoreError(f"Failed to write {self.path}: {e}") from e
