"""Job documents: validated workpiece and cut lists."""

from shoptools.jobs.schema import (
    JobCut,
    JobError,
    JobV1,
    WorkpieceSpec,
    build_workpiece,
    load_job,
    validate_job,
)

__all__ = [
    "JobCut",
    "JobError",
    "JobV1",
    "WorkpieceSpec",
    "build_workpiece",
    "load_job",
    "validate_job",
]
