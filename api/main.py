"""FastAPI execution service for certweb."""

import asyncio
import json
import logging
import os
import tempfile
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Form, HTTPException, UploadFile, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from api.schemas import (
    ClassificationEntryResponse,
    ClassificationResponse,
    LogsResponse,
    RunRequest,
    RunResponse,
)
from certweb.backend import CertsuiteRunner, LogBuffer, LogBufferHandler, write_certsuite_config
from certweb.errors import RunError, RunInProgressError
from certweb.forms import deserialize
from certweb.models import DeploymentScenario
from certweb.registry import get_classification_table
from certweb.tracing import get_tracer, log_session_event, setup_tracing
from config.settings import settings

logger = logging.getLogger("certweb.api")

# Global state
log_buffer = LogBuffer()
runner: CertsuiteRunner | None = None


def get_runner() -> CertsuiteRunner:
    """Get or create the global runner instance."""
    global runner
    if runner is None:
        runner = CertsuiteRunner(
            command=settings.certsuite_command,
            output_folder=settings.output_folder,
            log_buffer=log_buffer,
        )
        logging.getLogger("certweb").addHandler(LogBufferHandler(log_buffer))
    return runner


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.tracing_enabled:
        setup_tracing(settings.log_level, settings.trace_max_events)
    get_runner()
    yield


app = FastAPI(
    title="certweb API",
    description="Runs the CNF certification suite with operator-assembled configurations",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8501"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============ Health Check ============

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "certweb"}


# ============ Classification ============

@app.get("/api/classification", response_model=ClassificationResponse)
async def get_classification():
    """Return the classification table in natural id order."""
    table = get_classification_table(settings.classification_path or None)
    tests = [
        ClassificationEntryResponse(
            id=entry.id,
            group=entry.group,
            description=entry.description,
            remediation=entry.remediation,
            best_practice_reference=entry.best_practice_reference,
            classification={
                tier.value: entry.level_for(tier).value
                for tier in DeploymentScenario.tiers()
            },
        )
        for entry in table.list_all()
    ]
    return ClassificationResponse(version=table.version, groups=table.groups(), tests=tests)


# ============ Runs ============

@app.post("/runFunction", response_model=RunResponse)
async def run_function(
    jsonData: str = Form(...),
    kubeConfigPath: UploadFile | None = File(None),
):
    """Write the submitted configuration and run certsuite with it.

    The runner is reserved before the configuration file is touched and
    held until certsuite exits.
    """
    try:
        request = RunRequest.model_validate(json.loads(jsonData))
        document = deserialize(request.to_payload())
    except (json.JSONDecodeError, ValidationError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid jsonData: {e}")

    labels = document.label_filter()
    kubeconfig_path = None
    try:
        with get_runner().reserve() as current:
            write_certsuite_config(settings.certsuite_config_path, document)
            log_session_event(
                "config",
                "api",
                f"Wrote {settings.certsuite_config_path}",
                {"selected": len(document.selected_tests)},
            )

            if kubeConfigPath is not None:
                content = await kubeConfigPath.read()
                with tempfile.NamedTemporaryFile(prefix="webserver-kubeconfig-", delete=False) as f:
                    f.write(content)
                    kubeconfig_path = f.name
                logger.info(
                    "Web Server kubeconfig file : %s (copied into %s)",
                    kubeConfigPath.filename,
                    kubeconfig_path,
                )

            log_session_event("run", "api", "Started certsuite", {"labels": labels})
            await current.execute(labels, settings.certsuite_config_path, kubeconfig_path)
    except RunInProgressError as e:
        log_session_event("run", "api", "Rejected: run in progress", level=logging.WARNING)
        raise HTTPException(status_code=409, detail=str(e))
    except RunError as e:
        log_session_event("run", "api", f"Failed: {e}", level=logging.ERROR)
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        if kubeconfig_path:
            logger.info("Removing temporary kubeconfig file %s", kubeconfig_path)
            os.remove(kubeconfig_path)

    log_session_event("run", "api", "Finished certsuite", {"labels": labels})
    return RunResponse(message=f"Succeeded to run {' '.join(document.selected_tests)}")


# ============ Logs ============

@app.get("/api/logs", response_model=LogsResponse)
async def get_logs(offset: int = 0):
    """Log lines from ``offset`` on."""
    lines, next_offset = log_buffer.read_from(max(offset, 0))
    return LogsResponse(
        lines=lines,
        offset=offset,
        next_offset=next_offset,
        running=get_runner().busy,
    )


@app.websocket("/logstream")
async def log_stream(websocket: WebSocket):
    """Push log lines to the client in arrival order."""
    await websocket.accept()
    offset = 0
    try:
        while True:
            lines, offset = log_buffer.read_from(offset)
            for line in lines:
                await websocket.send_text(line)
            try:
                await asyncio.wait_for(websocket.receive_text(), timeout=settings.log_poll_interval)
            except asyncio.TimeoutError:
                continue
    except WebSocketDisconnect:
        logger.debug("Log stream client disconnected")


# ============ Trace ============

@app.get("/trace")
async def get_trace():
    """Get the event trace from the current session."""
    return {"events": get_tracer().get_events()}


@app.delete("/trace")
async def clear_trace():
    """Clear the event trace."""
    get_tracer().clear()
    return {"status": "cleared"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
