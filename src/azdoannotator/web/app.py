from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from azdoannotator.core.annotator import AzureDevOpsAnnotatorProcessor
from azdoannotator.core.errors import AnnotatorError
from azdoannotator.core.location_parser import parse_azure_location
from azdoannotator.core.types import LocationSpec
from azdoannotator.storage.config import ConfigStore


class LocationModel(BaseModel):
    type: str = Field("url", description="Location type; only 'url' locations are annotated")
    target: str = Field(..., description="Location target URL")


class AnnotateRequest(BaseModel):
    entity: Dict[str, Any] = Field(..., description="Catalog entity")
    location: LocationModel


class ParseRequest(BaseModel):
    target: str = Field(..., description="Repository URL")


def create_app(*, data_dir: Optional[Path] = None, config: Optional[Mapping[str, Any]] = None) -> FastAPI:
    # Behind a reverse proxy under a path prefix, set AZDOANNOTATOR_ROOT_PATH=/prefix
    root_path = (os.getenv("AZDOANNOTATOR_ROOT_PATH") or "").rstrip("/")
    app = FastAPI(title="Azure DevOps Annotator", version="0.1.0", root_path=root_path)

    cfg = config if config is not None else ConfigStore(data_dir=data_dir).load()
    # raises ConfigError before the app serves anything
    processor = AzureDevOpsAnnotatorProcessor.from_config(cfg)

    @app.exception_handler(AnnotatorError)
    def annotator_error(request: Request, exc: AnnotatorError):
        return JSONResponse(status_code=400, content={"detail": {"error": str(exc)}})

    @app.get("/healthz")
    def healthz():
        return {"ok": True}

    @app.get("/api/hosts")
    def hosts():
        return {"hosts": processor.registry.sorted_hosts()}

    @app.post("/api/parse")
    def parse(payload: ParseRequest):
        parsed = parse_azure_location(payload.target, processor.registry)
        if parsed is None:
            return {"match": False}
        return {
            "match": True,
            "host": parsed.host,
            "prefix": list(parsed.prefix),
            "organization": parsed.organization,
            "project": parsed.project,
            "repository": parsed.repository,
            "annotations": parsed.annotations(),
        }

    @app.post("/api/annotate")
    def annotate(payload: AnnotateRequest):
        location = LocationSpec(type=payload.location.type, target=payload.location.target)
        return processor.pre_process_entity(payload.entity, location)

    return app
