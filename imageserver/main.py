from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Sequence

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI

from . import __version__
from .api.v1.routers import images
from .app_logging import configure_logging
from .application.queries.stream_page_image import StreamPageImageHandler
from .config import Settings, get_settings, resolve_root
from .domain.exceptions import ConfigError
from .domain.services.orientation_corrector import OrientationCorrector
from .domain.services.path_resolver import PathResolver
from .infrastructure.pdf.page_locator import PageLocator
from .infrastructure.pdf.png_encoder import PngEncoder

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
  """Build the application; raises ConfigError when the root cannot be resolved."""
  settings = settings or get_settings()
  root = resolve_root(settings)

  executor = ThreadPoolExecutor(
    max_workers=settings.max_producers,
    thread_name_prefix="page-image-producer",
  )

  @asynccontextmanager
  async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    logger.info("Serving files beneath %s", root)
    yield
    logger.info("Shutting down page image producers")
    executor.shutdown(wait=False, cancel_futures=True)

  app = FastAPI(title="PDF Page Image Server", version=__version__, lifespan=lifespan)
  app.state.settings = settings
  app.state.path_resolver = PathResolver(root)
  app.state.stream_page_image_handler = StreamPageImageHandler(
    PageLocator(),
    OrientationCorrector(),
    PngEncoder(compress_level=settings.png_compress_level),
    executor,
    chunk_size=settings.chunk_size,
    max_pending_chunks=settings.max_pending_chunks,
    max_producers=settings.max_producers,
  )
  app.include_router(images.router)
  return app


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
  parser = argparse.ArgumentParser(
    prog="imageserver",
    description="Serve the embedded image of a PDF page as PNG.",
  )
  parser.add_argument("--root", help="directory to serve files from (default: working directory)")
  parser.add_argument("--host", help="interface to listen on")
  parser.add_argument("--port", type=int, help="TCP port to listen on")
  parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
  return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
  overrides = {
    "root_dir": args.root,
    "host": args.host,
    "port": args.port,
    "log_level": args.log_level,
  }
  settings = get_settings()
  return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def run(argv: Optional[Sequence[str]] = None) -> int:
  load_dotenv()
  args = _parse_args(argv)
  settings = build_settings(args)
  configure_logging(settings.log_level, structured=settings.log_json)

  try:
    app = create_app(settings)
  except ConfigError as exc:
    logger.critical("Cannot start server: %s", exc)
    return 1

  # uvicorn stops accepting on SIGINT/SIGTERM and drains open connections.
  uvicorn.run(
    app,
    host=settings.host,
    port=settings.port,
    timeout_keep_alive=settings.read_timeout,
    log_config=None,
  )
  return 0


if __name__ == "__main__":
  sys.exit(run())
