"""
Trip Ledger Backend API

A FastAPI backend for group expense splitting and settlement.
This module sets up the app and mounts routers - all endpoint logic is in routers/ and utils/.
"""

import logging
import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import models
from database import engine
from utils.errors import ConflictError, NotFoundError, ValidationError

# Import routers
from routers import groups, expenses, settlements, balances


logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

# Create database tables
models.Base.metadata.create_all(bind=engine)

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Initialize FastAPI app
app = FastAPI(
    title="Trip Ledger API",
    description="API for group expense splitting, balances and settlements",
    version="1.0.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Ledger errors carry messages meant for the user, surfaced verbatim
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError):
    return JSONResponse(status_code=409, content={"detail": exc.message})


# Include routers
app.include_router(groups.router)
app.include_router(expenses.router)
app.include_router(settlements.router)
app.include_router(balances.router)
