"""Caption Gallery — FastAPI REST API layer.

This package contains the FastAPI application, Pydantic request/response
models, and the in-memory gallery store.

Modules
-------
main
    FastAPI application factory with all route handlers and the ``main()``
    CLI entry point.
models
    Pydantic models for API request and response validation.
gallery_store
    Pipeline-run bookkeeping, atomic gallery snapshots, and page payloads.
"""
