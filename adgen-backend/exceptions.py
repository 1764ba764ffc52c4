"""
Error taxonomy for the ad image generator.

ValidationError and NotFoundError are client errors. PipelineError subclasses
are recorded onto the job as a failed status by the lifecycle controller and
never reach a caller. InfrastructureError means a backing service (record
store, queue, object store) is unavailable.
"""


class AdGenError(Exception):
    """Base class for all service errors."""


class ValidationError(AdGenError):
    """Bad or missing input."""


class NotFoundError(AdGenError):
    """No job record exists for the requested id."""


class PipelineError(AdGenError):
    """A processing step failed."""


class ScrapeError(PipelineError):
    """The product page could not be fetched or parsed."""


class SynthesisError(PipelineError):
    """The AI model did not produce an image."""


class DeadlineExceeded(PipelineError):
    """Processing ran past the configured deadline."""


class InfrastructureError(AdGenError):
    """The record store, queue or object store is unavailable."""


class StorageError(InfrastructureError):
    """Object store upload or link generation failed."""
