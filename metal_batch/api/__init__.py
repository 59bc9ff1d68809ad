"""
Metal merchant API access: typed models and the async gateway.
"""

from metal_batch.api.gateway import MetalGateway
from metal_batch.api.models import (
    Credential,
    JobFailed,
    JobPending,
    JobStatus,
    JobSucceeded,
    JobUnknown,
    TokenRecord,
    decode_job_status,
)

__all__ = [
    "MetalGateway",
    "Credential",
    "JobFailed",
    "JobPending",
    "JobStatus",
    "JobSucceeded",
    "JobUnknown",
    "TokenRecord",
    "decode_job_status",
]
