"""
ExtractionJob model and its status machine.

Jobs are immutable snapshots. Every status or message change produces a new
ExtractionJob through :meth:`ExtractionJob.advance`, so an observer holding
an older snapshot never sees it change underneath it.
"""
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from storeassets.errors import InvalidTransition
from storeassets.models.asset import AssetGroup, AssetType

DEFAULT_JOB_APP_NAME = "Pending..."


class JobStatus(str, Enum):
    """Lifecycle of an extraction job, in order."""
    PENDING = "PENDING"
    FETCHING_PAGE = "FETCHING_PAGE"
    PROCESSING_ASSETS = "PROCESSING_ASSETS"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


_STATUS_RANK = {
    JobStatus.PENDING: 0,
    JobStatus.FETCHING_PAGE: 1,
    JobStatus.PROCESSING_ASSETS: 2,
    JobStatus.SUCCEEDED: 3,
    JobStatus.FAILED: 3,
}


class ExtractionJob(BaseModel):
    """
    One listing URL moving through the extraction pipeline.

    Invariants checked on every snapshot:
    - ``asset_groups`` is non-empty exactly when the job SUCCEEDED
    - ``error_message`` is set exactly when the job FAILED
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    source_url: str
    status: JobStatus = JobStatus.PENDING
    status_message: Optional[str] = None
    error_message: Optional[str] = None
    app_name: str = DEFAULT_JOB_APP_NAME
    asset_groups: List[AssetGroup] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_invariants(self) -> "ExtractionJob":
        succeeded = self.status == JobStatus.SUCCEEDED
        if succeeded != bool(self.asset_groups):
            raise ValueError("asset_groups must be non-empty exactly when the job succeeded")
        failed = self.status == JobStatus.FAILED
        if failed != bool(self.error_message):
            raise ValueError("error_message must be set exactly when the job failed")
        return self

    def advance(self, status: Optional[JobStatus] = None, **changes: Any) -> "ExtractionJob":
        """
        Return a new snapshot with ``status`` and ``changes`` applied.

        Raises:
            InvalidTransition: If the status would move backwards or the job
                is already in a terminal state
        """
        target = status or self.status
        if self.status.is_terminal:
            raise InvalidTransition(f"Job {self.id} is already {self.status.value}")
        if target.rank < self.status.rank:
            raise InvalidTransition(
                f"Job {self.id} cannot move from {self.status.value} to {target.value}"
            )

        values: Dict[str, Any] = dict(self)
        values.update(changes)
        values["status"] = target
        return type(self)(**values)

    @property
    def icon_groups(self) -> List[AssetGroup]:
        return [g for g in self.asset_groups if g.asset_type == AssetType.ICON]

    @property
    def screenshot_groups(self) -> List[AssetGroup]:
        return [g for g in self.asset_groups if g.asset_type == AssetType.SCREENSHOT]
