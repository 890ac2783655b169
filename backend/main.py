import logging

import uvicorn

from config import get_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

config = get_config()

if config.debug:
    logging.getLogger().setLevel(logging.DEBUG)

from api import create_app  # noqa: E402

app = create_app(cfg=config)


def run() -> None:
    logger.info(f"Starting Hysio Transcribe on {config.host}:{config.port}")
    logger.info(f"Configuration: {config.as_dict()}")
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    run()
