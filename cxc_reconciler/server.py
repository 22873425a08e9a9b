"""
Server entry point.
"""

import argparse

import uvicorn

from .api import create_app
from .config import get_settings


def main():
    settings = get_settings()

    parser = argparse.ArgumentParser(description="CxC consolidation API")
    parser.add_argument("--host", default=settings.host, help="Interface to bind")
    parser.add_argument("--port", type=int, default=settings.port, help="Port to run the server on")
    args = parser.parse_args()

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port)


if __name__ == "__main__":
    main()
