"""
Shared clients and the lifecycle controller.

Connection setup (database engine, S3 and OpenAI clients) is paid once per
process and reused by every request or task that process handles.
"""

from functools import lru_cache

from database import SessionLocal
from lifecycle import JobLifecycleController
from scraper import ProductScraper
from services import ImageSynthesizer, PromptBuilder, build_openai_client
from storage import S3ObjectStore, build_s3_client
from store import JobStore


@lru_cache(maxsize=None)
def get_job_store() -> JobStore:
    return JobStore(SessionLocal)


@lru_cache(maxsize=None)
def get_object_store() -> S3ObjectStore:
    return S3ObjectStore(build_s3_client())


@lru_cache(maxsize=None)
def get_work_queue():
    from tasks import CeleryWorkQueue

    return CeleryWorkQueue()


def get_controller() -> JobLifecycleController:
    """Controller for the HTTP side: submission and status reads."""
    return JobLifecycleController(
        store=get_job_store(),
        queue=get_work_queue(),
        object_store=get_object_store(),
    )


@lru_cache(maxsize=None)
def get_worker_controller() -> JobLifecycleController:
    """Controller for Celery workers: runs the full pipeline."""
    return JobLifecycleController(
        store=get_job_store(),
        object_store=get_object_store(),
        scraper=ProductScraper(),
        synthesizer=ImageSynthesizer(build_openai_client()),
        prompt_builder=PromptBuilder(),
    )
