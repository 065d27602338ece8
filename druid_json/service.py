#!/usr/bin/env python3
from fastapi import FastAPI, UploadFile, File, HTTPException, Query
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import logging, tempfile
from pathlib import Path

from druid_json.config import Settings
from druid_json.errors import DruidIOError, DruidJsonError
from druid_json.schema import parse_metric_names
from druid_json.table import DruidJsonTable

app = FastAPI(title="Druid JSON reader")
logger = logging.getLogger(__name__)

request_counter = Counter("druid_json_requests_total", "Total result files inspected")
error_counter = Counter("druid_json_errors_total", "Result files rejected", ["kind"])
process_duration = Histogram("druid_json_process_seconds", "Time spent scanning a result file")


@app.get("/health", tags=["ops"])
def health():
    return {"status": "healthy"}


@app.get("/metrics", tags=["ops"])
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def _inspect(path: str, metric_names, preview: int):
    table = DruidJsonTable(path, metric_names)
    names = table.schema.names
    rows = []
    count = 0
    with table.open_cursor() as cursor:
        while cursor.next():
            if count < preview:
                rows.append(dict(zip(names, cursor.row())))
            count += 1
    columns = [{"name": c.name, "type": c.declared_type} for c in table.schema]
    return columns, count, rows


@app.post("/inspect", tags=["process"])
async def inspect_file(file: UploadFile = File(...),
                       metrics: str = Query("", description="comma separated metric columns"),
                       preview: int = Query(10, ge=0, le=1000)):
    request_counter.inc()
    chunk_size = 8*1024*1024  # 8 MB
    with tempfile.NamedTemporaryFile(delete=False, suffix=".json") as tmp:
        total = 0
        while True:
            chunk = await file.read(chunk_size)
            if not chunk:
                break
            tmp.write(chunk)
            total += len(chunk)
        tmp_path = tmp.name
    try:
        with process_duration.time():
            columns, count, rows = _inspect(tmp_path, parse_metric_names(metrics), preview)
        return JSONResponse({"filename": file.filename, "bytes": total, "columns": columns,
                             "rows": count, "preview": rows})
    except DruidIOError as e:
        error_counter.labels(kind=type(e).__name__).inc()
        logger.error("inspect %s failed: %s", file.filename, e)
        raise HTTPException(status_code=500, detail=str(e))
    except DruidJsonError as e:
        error_counter.labels(kind=type(e).__name__).inc()
        logger.warning("rejected %s: %s", file.filename, e)
        raise HTTPException(status_code=422, detail=str(e))
    finally:
        Path(tmp_path).unlink()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=Settings.from_env().port)
