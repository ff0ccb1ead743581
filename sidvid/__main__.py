"""
SidVid Main Entry Point

Command line driver for sessions, stories, world elements, storyboards and video.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from sidvid.core.config import load_config, set_config
from sidvid.core.exceptions import SidVidError
from sidvid.core.logging_config import LogLevel, LogContext, setup_logging, get_logger
from sidvid.generation import MockGenerationService
from sidvid.session import Session, SessionManager
from sidvid.storage import create_storage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sidvid",
        description="SidVid - story to storyboard to scene video generation"
    )
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file")
    parser.add_argument("--storage", "-s", type=str, help="Storage directory (overrides config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only log errors")

    sub = parser.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Create a session")
    new.add_argument("--name", type=str)

    sub.add_parser("list", help="List sessions")

    show = sub.add_parser("show", help="Show a session")
    show.add_argument("session_id")

    rename = sub.add_parser("rename", help="Rename a session")
    rename.add_argument("session_id")
    rename.add_argument("name")

    delete = sub.add_parser("delete", help="Delete a session")
    delete.add_argument("session_id", nargs="?")
    delete.add_argument("--all", action="store_true", help="Delete every session")

    story = sub.add_parser("story", help="Generate a new story version")
    story.add_argument("session_id")
    story.add_argument("prompt")
    story.add_argument("--scenes", type=int, help="Number of scenes")

    improve = sub.add_parser("improve", help="Improve the current story")
    improve.add_argument("session_id")
    improve.add_argument("prompt", nargs="?")

    revert = sub.add_parser("revert", help="Revert to a story version")
    revert.add_argument("session_id")
    revert.add_argument("index", type=int)

    for name in ("characters", "scenes", "locations"):
        extract = sub.add_parser(name, help=f"Extract {name} from the current story")
        extract.add_argument("session_id")

    enhance = sub.add_parser("enhance", help="Enhance a world element description")
    enhance.add_argument("session_id")
    enhance.add_argument("element_id")
    enhance.add_argument("--prompt", type=str)

    image = sub.add_parser("image", help="Generate an image for a world element")
    image.add_argument("session_id")
    image.add_argument("element_id")

    storyboard = sub.add_parser("storyboard", help="Assemble the storyboard")
    storyboard.add_argument("session_id")

    video = sub.add_parser("video", help="Generate scene videos and wait for completion")
    video.add_argument("session_id")

    assemble = sub.add_parser("assemble", help="Join completed scene videos into the final video")
    assemble.add_argument("session_id")

    export = sub.add_parser("export", help="Export a session (or all) as JSON")
    export.add_argument("session_id", nargs="?")
    export.add_argument("--output", "-o", type=str)

    imp = sub.add_parser("import", help="Import sessions from a JSON file")
    imp.add_argument("path")

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", type=str, default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser


def _print_elements(elements) -> None:
    for el in elements:
        marker = "*" if el.is_enhanced else " "
        images = len(el.images)
        print(f"{marker} {el.id}  {el.name:<28} images={images}  {el.description[:60]}")


async def run_command(args, manager: SessionManager) -> int:
    logger = get_logger("main")
    command = args.command

    if command == "new":
        session = await manager.create_session(args.name)
        print(session.id)
        return 0

    if command == "list":
        for meta in await manager.list_sessions():
            print(f"{meta.id}  {meta.name:<24} stories={meta.story_count}  updated={meta.updated_at}")
        return 0

    if command == "rename":
        session = await manager.rename_session(args.session_id, args.name)
        print(session.name)
        return 0

    if command == "delete":
        if args.all:
            await manager.delete_all_sessions()
        elif args.session_id:
            await manager.delete_session(args.session_id)
        else:
            print("Specify a session id or --all", file=sys.stderr)
            return 2
        return 0

    if command == "export":
        if args.session_id:
            payload = await manager.export_session(args.session_id)
        else:
            payload = await manager.export_all_sessions()
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
        else:
            print(payload)
        return 0

    if command == "import":
        data = json.loads(Path(args.path).read_text(encoding="utf-8"))
        if isinstance(data, list):
            imported = await manager.import_all_sessions(data)
        else:
            imported = [await manager.import_session(data)]
        for session in imported:
            print(session.id)
        return 0

    session: Session = await manager.load_session(args.session_id)

    if command == "show":
        meta = session.get_metadata()
        story = session.get_current_story()
        print(f"{meta.name} ({meta.id})")
        print(f"  stories: {meta.story_count}, current: {session.current_index}")
        if story:
            print(f"  title: {story.title}")
            for scene in story.scenes:
                print(f"    {scene.number}. {scene.title}")
        print(f"  elements: {len(session.elements)}")
        if session.storyboard:
            print(f"  storyboard: {len(session.storyboard.frames)} frames")
        return 0

    if command == "story":
        story = await session.generate_story(args.prompt, args.scenes)
        print(f"{story.title}: {len(story.scenes)} scenes (version {session.current_index})")
    elif command == "improve":
        await session.improve_story(args.prompt)
        print(f"Improved: version {session.current_index}")
    elif command == "revert":
        await session.revert_to_story(args.index)
        print(f"Current version: {session.current_index}")
    elif command in ("characters", "scenes", "locations"):
        extractor = getattr(session, f"extract_{command}")
        _print_elements(extractor())
    elif command == "enhance":
        element = await session.enhance_element(args.element_id, args.prompt)
        print(element.enhanced_description)
    elif command == "image":
        element = await session.generate_element_image(args.element_id)
        print(element.active_image.image_url)
    elif command == "storyboard":
        storyboard = await session.create_storyboard()
        for i, frame in enumerate(storyboard.frames):
            print(f"{i:>3}  {frame.frame_type.value:<10} {frame.title:<28} {frame.duration:g}s")
    elif command == "video":
        pipeline = session.video_pipeline
        pipeline.set_progress_callback(
            lambda job, overall: print(
                f"scene {job.scene_index}: {job.status.value} {job.progress}% "
                f"{job.message or job.error or ''} (overall {overall:.0f}%)"
            )
        )
        await pipeline.start_generating_all_scenes()
        await pipeline.wait_until_idle()
        counts = pipeline.summary()
        print(f"Done: {counts['completed']} completed, {counts['failed']} failed")
        logger.info(f"Video run finished for {session.id}")
    elif command == "assemble":
        final_video = await session.assemble_final_video()
        for clip in final_video.clips:
            print(f"{clip.scene_index:>3}  {clip.duration:g}s  {clip.video_url}")
        print(f"{final_video.video_url} ({final_video.total_duration:g}s)")

    await session.save()
    return 0


def main(argv=None) -> int:
    """Main entry point for the SidVid command line."""
    args = build_parser().parse_args(argv)

    if args.debug:
        log_level = LogLevel.DEBUG
    elif args.verbose:
        log_level = LogLevel.INFO
    else:
        log_level = LogLevel.WARNING
    setup_logging(level=log_level, verbose=args.debug)
    logger = get_logger("main")

    config = load_config(Path(args.config) if args.config else None)
    if args.storage:
        config.storage.base_path = Path(args.storage)
    set_config(config)

    if args.command == "serve":
        from sidvid.api.main import start_server
        start_server(host=args.host, port=args.port, reload=args.debug)
        return 0

    storage = create_storage(config.storage.backend, config.storage.base_path)
    manager = SessionManager(storage, MockGenerationService(), config)

    try:
        if args.quiet:
            with LogContext(get_logger("sidvid"), LogLevel.ERROR):
                return asyncio.run(run_command(args, manager))
        return asyncio.run(run_command(args, manager))
    except SidVidError as e:
        logger.debug(f"Command failed: {e!r}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
