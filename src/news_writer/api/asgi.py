"""ASGI entrypoint for the news writer API."""

from news_writer.api.app import create_app
from news_writer.containers import build_container

app = create_app(build_container())
