# -*- coding: utf-8 -*-
"""
Railway crew staffing FastAPI application
"""
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from api.dependencies import registry
from api.routers import analysis, calculate, standards

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    registry.load()
    yield


app = FastAPI(title="Crew Staffing", version=VERSION, lifespan=lifespan)


allowed_origins = os.getenv("ALLOWED_ORIGINS", "http://localhost:8000,http://127.0.0.1:8000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(standards.router, prefix="/api", tags=["standards"])
app.include_router(calculate.router, prefix="/api", tags=["calculate"])
app.include_router(analysis.router, prefix="/api", tags=["analysis"])


@app.get(
    "/health",
    summary="服务状态",
    description="返回服务状态与已加载的定员标准数量。",
    response_description="status(healthy/degraded), version, standards 数量",
)
async def health():
    count = len(registry.list())
    return {
        "status": "healthy" if registry.loaded and count > 0 else "degraded",
        "version": VERSION,
        "standards": count,
    }
