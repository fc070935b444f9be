"""Run the service: python -m aries_archivematica [flags]"""

import logging
import sys

import uvicorn

from aries_archivematica import __version__
from aries_archivematica.app import create_app
from aries_archivematica.config import build_arg_parser, load_config
from aries_archivematica.errors import ConfigError

logger = logging.getLogger("aries_archivematica")


def main(argv=None):
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("===> aries-archivematica %s starting up <===", __version__)
    try:
        config = load_config(argv=sys.argv[1:] if argv is None else argv)
    except ConfigError as exc:
        build_arg_parser().error(str(exc))

    for key, value in config.redacted().items():
        logger.info("[CONFIG] %-28s = [%s]", key, value)

    ssl = {}
    if config.use_https:
        ssl = {"ssl_certfile": config.ssl_crt, "ssl_keyfile": config.ssl_key}

    uvicorn.run(create_app(config), host=config.host, port=config.port, **ssl)


if __name__ == "__main__":
    main()
