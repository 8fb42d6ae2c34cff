# main.py
from contextlib import asynccontextmanager
from typing import Callable
from fastapi_limiter import FastAPILimiter
import routes
from util.enums import Environment, Color
from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from config.settings import settings
from config.cache import close_redis, get_redis
from core.assistant_pipeline import AssistantPipeline, build_pipeline
from fastapi.responses import JSONResponse
from util.logger import init_logger


async def _real_ip(request: Request) -> str:
    if settings.TRUST_PROXY:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_app(
    pipeline_factory: Callable[[], AssistantPipeline] = build_pipeline,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(fastApi: FastAPI):
        init_logger()
        print(f"{Color.GREEN}Initializing...{Color.RESET}")
        # Model load failures and an empty knowledge base abort startup.
        pipeline = pipeline_factory()
        fastApi.state.pipeline = pipeline
        if settings.RATE_LIMIT_ENABLED:
            try:
                redis = await get_redis()
                await FastAPILimiter.init(redis, identifier=_real_ip)
            except Exception as e:
                print("Failed to connect to Redis:", e)
                pipeline.close()
                raise
        print(f"{Color.BLUE}Server Started{Color.RESET}")

        try:
            yield
        finally:
            pipeline.close()
            pipeline.registry.reset()
            if settings.RATE_LIMIT_ENABLED:
                try:
                    await close_redis()
                except Exception as e:
                    print("Error closing Redis:", e)

            print(f"{Color.RED}Server Shutdown{Color.RESET}")

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.ALLOWED_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "Accept"],
    )

    @app.exception_handler(429)
    async def ratelimit_handler(request: Request, exc):
        return JSONResponse(
            status_code=429,
            content={
                "ok": False,
                "error": "rate_limited",
                "message": f"Too many requests. Try again in {settings.RATE_LIMIT_SECONDS}s.",
            },
            headers={"Retry-After": str(settings.RATE_LIMIT_SECONDS)},
        )

    routes.register_routes(app)
    return app


app: FastAPI = create_app()

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=reload)
