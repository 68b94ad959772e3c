"""Entrypoint for ``python -m sia_api_cli``."""

from .cli import main


if __name__ == "__main__":
    main()
