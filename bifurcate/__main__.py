#!/usr/bin/env python3
"""
Bifurcate - Main Entry Point

This module serves as the main entry point for the crawler. It loads the
configuration, sets up logging and dispatches the selected command.
"""

import sys
import json
import asyncio
from pathlib import Path
from typing import Optional

from bifurcate.core.base import BifurcateError
from bifurcate.core.config import ConfigManager
from bifurcate.core.logging import setup_logging, get_logger
from bifurcate.cli.arguments import CLIManager
from bifurcate.core.orchestrator import CrawlRequest, MirrorOrchestrator
from bifurcate.feeds.assemblers import render_crawl
from bifurcate.processors.analyzer import format_report
from bifurcate.utils.component_factory import create_orchestrator


def emit(text: str, output: Optional[str] = None) -> None:
    """Write command output to a file or stdout"""
    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
        get_logger(__name__).info(f"Wrote {len(text)} characters to {path}")
    else:
        sys.stdout.write(text if text.endswith('\n') else text + '\n')


async def run_command(args, orchestrator: MirrorOrchestrator) -> int:
    """Dispatch one parsed command"""
    logger = get_logger(__name__)

    if args.command == "crawl":
        max_depth = args.max_depth
        if max_depth is None:
            max_depth = orchestrator.config.get('crawl', {}).get('default_depth')
        request = CrawlRequest.from_payload({
            'url': args.url,
            'maxDepth': max_depth,
            'format': args.format,
            'save': args.save,
        })
        result = await orchestrator.crawl(request)
        body, content_type = render_crawl(result, request.format)
        logger.info(f"Crawl produced {len(result.pages)} pages ({content_type})")
        if orchestrator.last_session_id:
            logger.info(f"Stored as session {orchestrator.last_session_id}")
        emit(body, args.output)
        return 0

    if args.command == "extract":
        document = await orchestrator.extract_document(args.url, args.format)
        if args.analyze:
            report = format_report(orchestrator.analyze(document))
            document = f"{document.rstrip()}\n\n<!--\n{report}\n-->\n"
        emit(document, args.output)
        return 0

    if args.command == "mirror":
        mirror = await orchestrator.mirror(args.url, args.force_refresh, args.session_id)
        emit(json.dumps(mirror, indent=2, ensure_ascii=False), args.output)
        return 0

    if args.command == "analyze":
        markdown = Path(args.file).read_text(encoding='utf-8')
        analysis = orchestrator.analyze(markdown)
        if args.json:
            emit(json.dumps(analysis.to_dict(), indent=2))
        else:
            emit(format_report(analysis))
        return 0

    if args.command == "sanitize":
        markdown = Path(args.file).read_text(encoding='utf-8')
        emit(orchestrator.sanitize(markdown), args.output)
        return 0

    if args.command == "history":
        storage = orchestrator.storage_manager
        if storage is None:
            logger.error("Feed storage is disabled")
            return 1
        if args.delete:
            deleted = await storage.delete_crawl_session(args.delete)
            emit(f"deleted {args.delete}" if deleted else f"no such session: {args.delete}")
            return 0 if deleted else 1
        if args.stats:
            emit(json.dumps(storage.get_storage_stats(), indent=2))
            return 0
        if args.show:
            pages = await storage.get_pages_by_session(args.show)
            emit(json.dumps(pages, indent=2, ensure_ascii=False))
            return 0
        sessions = await storage.get_crawl_history()
        if not sessions:
            emit("No stored crawl sessions.")
            return 0
        lines = [
            f"{s.get('sessionId')}  {s.get('generatedAt')}  {s.get('siteDomain')}  "
            f"{s.get('pageCount')} pages  {s.get('status')}"
            for s in sessions
        ]
        emit('\n'.join(lines))
        return 0

    logger.error(f"Unknown command: {args.command}")
    return 1


async def main(argv=None) -> int:
    """Main entry point for the crawler"""
    # Parse command line arguments
    cli_manager = CLIManager()
    args = cli_manager.parse_arguments(argv)

    # Load configuration
    config_manager = ConfigManager(args.config)
    try:
        config_manager.load_config()

        # Apply command line overrides to configuration
        if args.log_level:
            config_manager.logging_config.level = args.log_level
        if args.timeout is not None:
            config_manager.fetch_config.timeout = args.timeout
        if args.storage_path:
            config_manager.storage_config.base_path = args.storage_path

        config_manager.validate_config()
    except BifurcateError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    # Set up logging
    logging_config = config_manager.logging_config
    setup_logging(
        level=logging_config.level,
        log_file=logging_config.file,
        max_size=logging_config.max_size,
        backup_count=logging_config.backup_count
    )
    logger = get_logger()

    orchestrator = create_orchestrator(config_manager.as_component_config())
    try:
        return await run_command(args, orchestrator)
    except BifurcateError as e:
        logger.debug(f"{type(e).__name__} (status {e.status}): {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        await orchestrator.cleanup()


def run() -> None:
    """Console script entry point"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nCrawl interrupted by user", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
