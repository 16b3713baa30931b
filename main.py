import asyncio

from core.config import Settings
from core.logger import setup_logging, logger


async def start_api(settings: Settings):
    import uvicorn
    from api.main import create_app

    config = uvicorn.Config(
        create_app(settings),
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


async def main():
    settings = Settings()

    # Setup structured logging
    setup_logging(settings.LOG_LEVEL, json_logs=settings.ENV == "production")

    # For scaling, run 'uvicorn api.main:app' directly instead
    logger.info("Starting API...", env=settings.ENV, port=settings.API_PORT)
    await start_api(settings)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Application stopped.")
