"""Allows `python -m tutorials_api`."""

from tutorials_api.server import main

if __name__ == "__main__":
    main()
