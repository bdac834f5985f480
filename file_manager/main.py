from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

import config
from app.routes.file_routes import router
from app.services.file_ops import FileOps
from logger_config import setup_logger

# Logger setup
logger = setup_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Build settings once; everything below receives them explicitly
    settings = config.Settings.from_env().prepare()
    logger.info(f"Storage directory: {settings.storage_root}")
    logger.info(f"Temporary directory: {settings.temp_dir}")
    logger.info(f"Maximum storage limit: {settings.max_storage_limit / (1024*1024):.2f} MB")
    app.state.file_ops = FileOps(settings)
    await app.state.file_ops.clean_temp_dir()
    yield


# Create FastAPI app with lifespan
app = FastAPI(title="File Manager", lifespan=lifespan)
app.include_router(router)


if __name__ == "__main__":
    logger.info("Starting File Manager server...")
    uvicorn.run(app, host=config.HOST, port=config.PORT)
