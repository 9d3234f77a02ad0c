"""Iconforge - FastAPI REST API layer.

This package contains the FastAPI application, the request orchestrator, the
Pydantic response models, and an async caller for the API.

Modules
-------
main
    FastAPI application with route handlers, the error boundary and the
    ``main()`` CLI entry point.
controller
    ``IconController``: validation, style lookup, prompt building and
    dispatch for one request.
models
    Pydantic models for API request and response bodies.
client
    ``IconGeneratorAPI``: timeout-and-retry caller for the HTTP API.
"""
