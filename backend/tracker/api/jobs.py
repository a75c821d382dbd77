from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import ValidationError

from tracker.core.errors import MalformedRequestError, NotFoundError
from tracker.models.job import Job
from tracker.services.job_service import JobService
from tracker.services.job_store import get_job_service

router = APIRouter(prefix="/api", tags=["jobs"])


async def job_body(request: Request) -> Job:
    # El cliente puede mandar JSON como text/plain o sin Content-Type,
    # así que leemos el cuerpo crudo en vez de dejar que FastAPI lo filtre
    body = await request.body()
    try:
        return Job.model_validate_json(body)
    except ValidationError as exc:
        raise MalformedRequestError() from exc


@router.get("/jobs", summary="List all jobs keyed by id, newest first")
def list_jobs(service: JobService = Depends(get_job_service)) -> dict:
    # Si el almacén falla devolvemos {} igualmente (lectura "best effort")
    jobs = service.get_all_jobs()
    return {job_id: job.to_api() for job_id, job in jobs.items()}


@router.get("/jobs/{job_id}", summary="Get a single job")
def get_job(job_id: str, service: JobService = Depends(get_job_service)) -> dict:
    job = service.get_job(job_id)
    if not job:
        raise NotFoundError("Job not found")
    return job.to_api()


@router.post("/jobs", summary="Create a job", status_code=status.HTTP_201_CREATED)
def create_job(
    job: Job = Depends(job_body), service: JobService = Depends(get_job_service)
) -> dict:
    if not job.id:
        raise MalformedRequestError("Job id is required")

    created = service.create_job(job)
    if created is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create job",
        )
    return created.to_api()


@router.put("/jobs/{job_id}", summary="Replace a job's data")
def update_job(
    job_id: str,
    job: Job = Depends(job_body),
    service: JobService = Depends(get_job_service),
) -> dict:
    updated = service.update_job(job_id, job)
    if updated is None:
        raise NotFoundError("Job not found")
    return updated.to_api()


@router.delete("/jobs/{job_id}", summary="Delete a job")
def delete_job(job_id: str, service: JobService = Depends(get_job_service)) -> dict:
    # Respondemos igual exista o no el job, y aunque el borrado falle
    service.delete_job(job_id)
    return {"success": True}


@router.post("/cleanup", summary="Purge expired jobs now")
def cleanup(service: JobService = Depends(get_job_service)) -> dict:
    service.purge_expired_jobs()
    return {"success": True}
