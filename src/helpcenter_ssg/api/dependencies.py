from pathlib import Path

from fastapi import Request

from ..config import BuildConfiguration
from ..routing.canonical import URLCanonicalizer


def get_config(request: Request) -> BuildConfiguration:
    return request.app.state.config


def get_dist_dir(request: Request) -> Path:
    return request.app.state.dist_dir


def get_canonicalizer(request: Request) -> URLCanonicalizer:
    return request.app.state.canonicalizer
