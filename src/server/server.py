"""FastAPI server for browsing and saving extracted stories"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Response, status
from fastapi.responses import HTMLResponse

from src.config.config_loader import load_ui_server_config
from src.main import get_version
from src.models.configs import UiServerConfig
from src.models.errors import (
    AlreadySavedError,
    ConfigError,
    InvalidFilenameError,
    StoryNotFoundError,
    StoryPersistenceError,
)
from src.models.server import StoryResponse
from src.storage.story_reader import read_stories
from src.storage.story_saver import list_saved_filenames, save_story, unsave_story
from src.utils.logger import get_logger

INDEX_HTML_PATH = Path(__file__).parent / "static" / "index.html"

log = get_logger("ui-server")

# Initialize FastAPI app
app = FastAPI(
    title="Newsletter Story Browser",
    description="Browse stories extracted from newsletter emails and save them for later",
    version="1.0.0",
)


# Server configuration (singleton)
_server_config: Optional[UiServerConfig] = None


def get_server_config() -> UiServerConfig:
    """Get or load the server configuration (singleton pattern)"""
    global _server_config
    if _server_config is None:
        _server_config = load_ui_server_config()
    return _server_config


def set_server_config(config: UiServerConfig) -> None:
    """Install the configuration used by the request handlers"""
    global _server_config
    _server_config = config


@app.get("/", response_class=HTMLResponse)
async def root() -> HTMLResponse:
    """Serve the bundled story browser page"""
    return HTMLResponse(INDEX_HTML_PATH.read_text(encoding="utf-8"))


@app.get("/health")
async def health() -> Dict[str, str]:
    """Health check endpoint"""
    return {"status": "healthy", "service": "ui-server"}


@app.get("/api/stories", response_model=List[StoryResponse])
def list_stories() -> List[StoryResponse]:
    """
    List all stories, newest first, each flagged with its saved status.

    Raises:
        HTTPException: 500 if the story or saved directory cannot be read
    """
    config = get_server_config()

    try:
        stories = read_stories(config.storydir, logger=log)
    except StoryPersistenceError as e:
        log.error("failed to read stories: error=%s", e)
        raise HTTPException(status_code=500, detail="internal server error")

    saved = set()
    if config.savedir:
        try:
            saved = list_saved_filenames(config.savedir)
        except StoryPersistenceError as e:
            log.error("failed to read saved stories: error=%s", e)
            raise HTTPException(status_code=500, detail="internal server error")

    return [
        StoryResponse(**story.model_dump(), saved=story.filename in saved) for story in stories
    ]


@app.post("/api/stories/{filename}/save", status_code=status.HTTP_201_CREATED)
def save(filename: str) -> Response:
    """
    Save a story for later.

    Raises:
        HTTPException: 400 invalid name, 404 unknown story, 409 already saved, 500 I/O error
    """
    config = get_server_config()

    try:
        save_story(config.storydir, config.savedir, filename)
    except InvalidFilenameError:
        raise HTTPException(status_code=400, detail="invalid filename")
    except AlreadySavedError:
        raise HTTPException(status_code=409, detail="Story is already saved")
    except StoryNotFoundError:
        raise HTTPException(status_code=404, detail="Story not found")
    except StoryPersistenceError as e:
        log.error("failed to save story: filename=%s error=%s", filename, e)
        raise HTTPException(status_code=500, detail="internal server error")

    log.debug("story saved: filename=%s", filename)
    return Response(status_code=status.HTTP_201_CREATED)


@app.delete("/api/stories/{filename}/save", status_code=status.HTTP_204_NO_CONTENT)
def unsave(filename: str) -> Response:
    """
    Remove a story from the saved list.

    Raises:
        HTTPException: 400 invalid name, 404 not saved, 500 I/O error
    """
    config = get_server_config()

    try:
        unsave_story(config.savedir, filename)
    except InvalidFilenameError:
        raise HTTPException(status_code=400, detail="invalid filename")
    except StoryNotFoundError:
        raise HTTPException(status_code=404, detail="Story is not saved")
    except StoryPersistenceError as e:
        log.error("failed to unsave story: filename=%s error=%s", filename, e)
        raise HTTPException(status_code=500, detail="internal server error")

    log.debug("story unsaved: filename=%s", filename)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ui-server", description="Serve extracted stories in a web UI."
    )
    parser.add_argument(
        "--config",
        help="Path to the YAML config file (default: ./ui-server.yaml or ~/ui-server.yaml)",
    )
    parser.add_argument("--storydir", help="Path to stories")
    parser.add_argument("--savedir", help="Path to saved stories")
    parser.add_argument("--host", help="Interface to bind")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument(
        "--verbose", action="store_true", default=None, help="Enable verbose output"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {get_version()}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the UI server.

    Usage:
        python -m src.server.server --storydir <dir> --savedir <dir> [--port 8080]

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    overrides = {
        "storydir": args.storydir,
        "savedir": args.savedir,
        "host": args.host,
        "port": args.port,
        "verbose": args.verbose,
    }

    try:
        config = load_ui_server_config(args.config, overrides)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not config.storydir:
        print("Error: storydir is required", file=sys.stderr)
        return 1
    if not config.savedir:
        print("Error: savedir is required", file=sys.stderr)
        return 1

    get_logger("ui-server", config.verbose)
    set_server_config(config)

    log.info(
        "starting UI server: addr=%s:%d storydir=%s savedir=%s",
        config.host,
        config.port,
        config.storydir,
        config.savedir,
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level="info")
    return 0


if __name__ == "__main__":
    sys.exit(main())
