"""
Router for ad image generation endpoints.
Handles job submission and status polling.
"""

import logging
from fastapi import APIRouter, Depends, HTTPException
from deps import get_controller
from exceptions import InfrastructureError, NotFoundError, ValidationError
from lifecycle import JobLifecycleController
from models import JobStatus
from schemas import GenerateRequest, JobResponse, StatusResponse


# Create the router
router = APIRouter(prefix="/api", tags=["jobs"])


@router.post("/generate", response_model=JobResponse, status_code=202)
def generate_ad(request: GenerateRequest, controller: JobLifecycleController = Depends(get_controller)):
    """
    Creates a pending job record, queues it for a worker,
    and immediately returns the job ID.
    """
    try:
        job_id = controller.create(request.product_url)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except InfrastructureError as e:
        logging.error(f"Failed to submit job: {e}")
        raise HTTPException(status_code=500, detail="Failed to start the image generation job.")

    return JobResponse(
        job_id=job_id,
        status=JobStatus.PENDING,
        message="Image generation started",
        status_url=f"/api/status/{job_id}",
    )


@router.get(
    "/status/{job_id}",
    response_model=StatusResponse,
    response_model_exclude_none=True,
)
def get_job_status(job_id: str, controller: JobLifecycleController = Depends(get_controller)):
    """
    Returns the job's current state. Completed jobs always carry a
    download link that is valid for at least a few more minutes.
    """
    try:
        return controller.get_status(job_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Job not found")
    except InfrastructureError as e:
        logging.error(f"Failed to read status of job {job_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to read the job status.")
