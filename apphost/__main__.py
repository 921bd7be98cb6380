import argparse
import sys

from apphost.core.bootstrap import ApplicationBuilder, run_app


def main() -> int:
    parser = argparse.ArgumentParser(prog="apphost", description="Run the desktop application host.")
    parser.add_argument("url", nargs="?", help="URL or QML file to load in the first window")
    parser.add_argument("--name", default="App Host", help="Application name / window title")
    parser.add_argument("--config", default="config.json", help="Path to the JSON or TOML config file")
    args = parser.parse_args()

    builder = (ApplicationBuilder(args.name, args.config)
               .with_logging()
               .with_initial_window(args.url))
    return run_app(builder)


if __name__ == "__main__":
    sys.exit(main())
