"""
Logs API
Recent log records from the in-memory ring buffer, plus a zip of the log files
"""
import io
import json
import zipfile
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Query, Response

from services.logging_service import LOG_FILE, get_ring_handler

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("")
def get_logs(
    limit: int = Query(500, ge=1, le=5000),
    level: Optional[str] = Query(None, description="Minimum level, e.g. WARNING"),
    logger: Optional[str] = Query(None, description="Logger name prefix, e.g. pipelines.mapping.dls"),
):
    records = get_ring_handler().get_recent(limit, level, name_prefix=logger)
    return {"logs": records, "count": len(records)}


@router.get("/download")
def download_logs():
    log_file = Path(LOG_FILE)
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        # dls.log plus rotated dls.log.1, dls.log.2, ...
        for path in sorted(log_file.parent.glob(f"{log_file.name}*")):
            if path.is_file():
                zf.write(path, arcname=path.name)

        recent = get_ring_handler().get_recent(2000)
        zf.writestr("recent_ring_buffer.json", json.dumps({"logs": recent}, indent=2))

    headers = {"Content-Disposition": 'attachment; filename="dls-logs.zip"'}
    return Response(content=buf.getvalue(), media_type="application/zip", headers=headers)
