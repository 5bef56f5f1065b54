"""ASGI entrypoint for the BizMunch API."""

from bizmunch.api.app import create_app
from bizmunch.containers import build_container

app = create_app(build_container())
