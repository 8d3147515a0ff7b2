from typing import Any

from fastapi import FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware

from semantic_llm_cache.api.dependencies import HandlerDep, lifespan
from semantic_llm_cache.config import settings
from semantic_llm_cache.dto import (
    CacheClearResponse,
    CacheLookupResponse,
    CacheStatsResponse,
    CacheStoreResponse,
    HealthCheckResponse,
    LookupCacheRequest,
    QueryRequest,
    QueryResponse,
    SignatureRequest,
    SignatureResponse,
    StoreCacheRequest,
)

API_TITLE = "Semantic LLM Cache API"
API_VERSION = "0.1.0"
API_DESCRIPTION = "Semantic response cache for LLM chat using Redis vector search"


def create_app() -> FastAPI:
    """Create the FastAPI application with all routes registered."""
    app = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type"],
    )

    @app.get("/")
    async def root() -> dict[str, Any]:
        """Root endpoint with API information."""
        return {
            "name": API_TITLE,
            "version": API_VERSION,
            "description": API_DESCRIPTION,
            "endpoints": {
                "query": "/query",
                "cache": "/cache",
                "stats": "/cache/stats",
                "health": "/health",
                "docs": "/docs",
            },
        }

    @app.get("/health", response_model=HealthCheckResponse)
    async def health(handler: HandlerDep, response: Response) -> HealthCheckResponse:
        """Health check endpoint (503 while a dependency is down)."""
        result = await handler.health_check()
        if result.status != "healthy":
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return result

    @app.post("/query", response_model=QueryResponse)
    async def query(request: QueryRequest, handler: HandlerDep) -> QueryResponse:
        """Answer a prompt from the cache, generating a fresh answer on a miss."""
        return await handler.query(request)

    @app.post("/cache/lookup", response_model=CacheLookupResponse)
    async def lookup_cache(request: LookupCacheRequest, handler: HandlerDep) -> CacheLookupResponse:
        """Check the cache without generating."""
        return await handler.lookup(request)

    @app.post("/cache/store", response_model=CacheStoreResponse)
    async def store_cache(request: StoreCacheRequest, handler: HandlerDep) -> CacheStoreResponse:
        """Store a prompt/response pair under a signature."""
        return await handler.store(request)

    @app.post("/cache/signature", response_model=SignatureResponse)
    async def build_signature(request: SignatureRequest, handler: HandlerDep) -> SignatureResponse:
        """Build the signature for a generation configuration."""
        return await handler.signature(request)

    @app.delete("/cache", response_model=CacheClearResponse)
    async def clear_cache(handler: HandlerDep, signature: str | None = None) -> CacheClearResponse:
        """Clear all entries, or only those with the given signature."""
        return await handler.clear(signature)

    @app.get("/cache/stats", response_model=CacheStatsResponse)
    async def get_stats(handler: HandlerDep) -> CacheStatsResponse:
        """Get cache statistics."""
        return await handler.get_stats()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "semantic_llm_cache.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
