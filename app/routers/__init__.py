# HTTP routers for the contract service

from . import files, policies, quotes, templates

__all__ = [
    "files",
    "policies",
    "quotes",
    "templates",
]
