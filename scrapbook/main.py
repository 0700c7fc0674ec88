import logging

from fastapi import FastAPI

from scrapbook import config
from scrapbook.api.routes import router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Scrapbook API",
    description="Create scrapbooks, edit their pages of photos, text and drawings, and play them back as a slideshow",
    version="0.1.0",
)

app.include_router(router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("scrapbook.main:app", host=config.HOST, port=config.PORT, reload=True)
