import os

from celery import Celery
from loguru import logger

from clip_core.config_manager import ConfigManager
from clip_core.errors import ClipCoreError
from clip_core.pipeline import ClipPipeline

# Config
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

app = Celery("clip_core", broker=REDIS_URL, backend=REDIS_URL)


@app.task(bind=True)
def process_audio_task(self, audio_url: str, content_type: str = "audio", language: str = None):
    """
    Background task: transcribe, wait for the job, analyze.
    Returns a JSON-serialisable dict for the result backend.
    """
    try:
        # Re-init config per task to get fresh env/settings
        config = ConfigManager()
        with ClipPipeline(config) as pipeline:
            result = pipeline.run(audio_url, content_type=content_type, language=language)
        return {"status": "success", "audio_url": audio_url, **result.model_dump(mode="json", by_alias=True)}
    except ClipCoreError as e:
        logger.error(f"Task {self.request.id} failed [{e.code}]: {e.message}")
        return {"status": "failed", "audio_url": audio_url, "error": e.message, "error_code": e.code}
    except Exception as e:
        logger.exception(f"Task {self.request.id} crashed: {e}")
        return {"status": "failed", "audio_url": audio_url, "error": str(e), "error_code": "INTERNAL_ERROR"}
