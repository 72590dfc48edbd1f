# src/api/dependencies.py - v1
"""Dependency injection for FastAPI routes.

The pipeline is created lazily per application and injected via Depends(),
so tests can swap it with app.dependency_overrides[get_pipeline].
"""

from __future__ import annotations

from fastapi import Request

from reelfinder.config.settings import Settings
from reelfinder.pipeline.orchestrator import ResolutionPipeline


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_pipeline(request: Request) -> ResolutionPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        from reelfinder.pipeline.pipeline_factory import build_pipeline

        pipeline = build_pipeline(request.app.state.settings)
        request.app.state.pipeline = pipeline
    return pipeline
