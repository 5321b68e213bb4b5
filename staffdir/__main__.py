import logging
import sys

from .main import run


def main() -> None:
    try:
        run()
    except Exception:
        logging.exception("Staff directory API failed to start.")
        sys.exit(1)


if __name__ == "__main__":
    main()
