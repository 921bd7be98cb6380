import sys

from loguru import logger

from apphost.core.bootstrap import ApplicationBuilder, run_app


class StartupBanner:
    """Example contribution: logs each lifecycle phase."""

    async def on_start(self, host):
        logger.info("Host starting")

    def on_ready(self, platform_info):
        logger.info(f"Host ready on {platform_info.get('platform')}")

    def on_quit(self):
        logger.info("Host quitting")


def main():
    builder = (ApplicationBuilder("App Host", "config.json")
               .with_logging()
               .add_contribution(StartupBanner())
               .with_initial_window(sys.argv[1] if len(sys.argv) > 1 else None))
    return run_app(builder)


if __name__ == "__main__":
    sys.exit(main())
