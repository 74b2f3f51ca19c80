import logging

from fastapi import FastAPI

from velura.api.error_handler import register_exception_handlers
from velura.api.generate import router as generate_router


def create_app() -> FastAPI:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    app = FastAPI(title="Velura AI Backend")
    register_exception_handlers(app)
    app.include_router(generate_router, prefix="/generate-code")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
