"""スタッフ勤怠タイムクロック - エントリーポイント"""
import logging
import os
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv

from api.app import create_app
from schedulers.scheduler import IndexRefreshScheduler
from services.config_loader import load_config
from services.context import bootstrap, build_context

logger = logging.getLogger("timeclock")


def create_application(config_path: str = "config.yaml"):
    """設定を読み込み、コンテキストとアプリを組み立てる"""
    load_dotenv()
    config = load_config(os.getenv("TIMECLOCK_CONFIG", config_path))

    logging.basicConfig(
        level=config["server"]["log_level"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    context = build_context(config)
    bootstrap(context)

    interval = config["index"]["refresh_interval_minutes"]
    scheduler = IndexRefreshScheduler(interval_minutes=interval, job_func=context.index.rebuild)

    @asynccontextmanager
    async def lifespan(app):
        scheduler.start()
        logger.info("Index refresh every %s minutes", interval)
        yield
        scheduler.stop()
        logger.info("Stopped")

    return create_app(context, lifespan=lifespan), config


def main():
    """メイン起動処理"""
    app, config = create_application()
    server = config["server"]
    logger.info(
        "Serving %s on %s:%s",
        config["store"]["spreadsheet_id"] or config["store"]["backend"],
        server["host"],
        server["port"],
    )
    uvicorn.run(app, host=server["host"], port=int(server["port"]))


if __name__ == "__main__":
    main()
