import logging

import epub_shell.cli as cli
from epub_shell.config import Config


def main():
    config = Config()
    logging.basicConfig(
        level=getattr(logging, config.setting.LogLevel.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(cli.find_file())


if __name__ == "__main__":
    main()
