import asyncio
import sys
from datetime import date
from pathlib import Path

from medvault.config.settings import Settings
from medvault.database.connection import close_pool, init_pool
from medvault.exceptions import ValidationError
from medvault.logging.logger import Log
from medvault.portal import build_portal
from medvault.records.models import MetadataDraft
from medvault.uploads.models import ActiveUpload, UploadFile, UploadStatus


async def run(settings: Settings, paths: list[Path]) -> int:
    """Upload *paths* for the configured owner and log each outcome.

    Returns the number of failed uploads.
    """
    await init_pool(settings)
    portal = build_portal(settings, settings.owner_id)
    failures = 0
    try:
        await portal.init()
        Log.info(f"{len(portal.records)} records on file for {settings.owner_id}")

        job_ids: dict[str, Path] = {}
        for path in paths:
            draft = MetadataDraft(
                title="",
                facility_name=settings.default_facility_name,
                visit_date=date.today(),
            )
            try:
                job_ids[portal.submit_upload(UploadFile.from_path(path), draft)] = path
            except (ValidationError, OSError) as exc:
                Log.error(f"Skipping {path}: {exc}")
                failures += 1

        finished: dict[str, ActiveUpload] = {}
        unsubscribe = portal.uploads.subscribe(
            lambda uploads: finished.update(
                {upload.id: upload for upload in uploads if upload.is_terminal}
            )
        )
        await portal.uploads.join()
        unsubscribe()

        for job_id, path in job_ids.items():
            upload = finished.get(job_id)
            if upload is None or upload.status is not UploadStatus.SUCCESS:
                message = upload.error_message if upload else "no result"
                Log.error(f"{path.name}: failed: {message}")
                failures += 1
                continue
            interpretation = upload.interpretation
            Log.info(f"{path.name}: stored as record {upload.result_record.id}")
            if interpretation is not None:
                Log.info(f"Explanation: {interpretation.explanation}")
                for action in interpretation.recommended_actions:
                    Log.info(f"Action: {action}")
                for warning in interpretation.attention_indicators:
                    Log.info(f"Warning: {warning}")
    finally:
        await portal.dispose()
        await close_pool()
    return failures


def main() -> None:
    """Entry point: configure -> open pool -> upload the files given as arguments."""
    settings = Settings()
    Log.configure(settings.log_level)
    if not settings.owner_id:
        Log.error("OWNER_ID is not set")
        sys.exit(2)
    paths = [Path(arg) for arg in sys.argv[1:]]
    if not paths:
        Log.error("Usage: medvault FILE [FILE ...]")
        sys.exit(2)
    failures = asyncio.run(run(settings, paths))
    sys.exit(1 if failures else 0)


if __name__ == "__main__":
    main()
