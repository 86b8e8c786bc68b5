"""Typed application keys."""

from aiohttp import web

from walletsync.container import Container

CONTAINER_KEY = web.AppKey("container", Container)
