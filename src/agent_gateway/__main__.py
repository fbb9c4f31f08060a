import sys

import uvicorn
from dotenv import load_dotenv
from loguru import logger

from agent_gateway.app_config import load_json_config, parse_app_config, resolve_runtime_env
from agent_gateway.bootstrap import bootstrap_runtime
from agent_gateway.server import create_app


def main() -> None:
    load_dotenv()

    app_config = parse_app_config(load_json_config())
    try:
        runtime = bootstrap_runtime(app_config, resolve_runtime_env())
    except ValueError as ex:
        logger.error(str(ex))
        sys.exit(1)

    uvicorn.run(
        create_app(runtime),
        host=app_config.host,
        port=app_config.port,
        log_level=app_config.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
