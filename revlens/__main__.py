import argparse
import logging
import sys
from pathlib import Path

from .core.analysis import (
    AnalysisGenerator,
    AnalysisOrchestrator,
    AnalysisWorker,
    TaskStore,
    build_llm,
    create_dispatch_queue,
)
from .core.analysis.generator import describe_llm
from .core.config import get_config
from .core.db import DatabaseManager, wait_for_db
from .core.project import ProjectManager


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
    logging.getLogger("backoff").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("psycopg2").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def main():
    """Main entry point for RevLens."""
    config = get_config()

    parser = argparse.ArgumentParser(description="RevLens - Code Review Analysis Service")
    parser.add_argument(
        "--port",
        type=int,
        default=config.server.port,
        help="Port for the API server"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Shortcut for --log-level DEBUG"
    )
    parser.add_argument(
        "--no-worker",
        action="store_true",
        help="Do not start an analysis worker in this process"
    )
    args = parser.parse_args()

    setup_logging("DEBUG" if args.debug else args.log_level)
    logger.info(f"Starting RevLens - queue backend: {config.queue.backend}")

    Path(config.storage.upload_path).mkdir(parents=True, exist_ok=True)

    # Database
    db_manager = DatabaseManager(config.database.url, echo=config.database.echo)
    if not wait_for_db(db_manager):
        logger.error("Database unavailable, exiting")
        sys.exit(1)
    db_manager.create_tables()

    project_manager = ProjectManager(db_manager)
    try:
        project_manager.ensure_default_user()
    except Exception as e:
        logger.error(f"Failed to ensure default user: {e}")

    # Analysis engine
    task_store = TaskStore(db_manager)
    dispatch_queue = create_dispatch_queue(
        config.queue.backend,
        db_manager=db_manager,
        name=config.queue.name,
        max_tries=config.queue.max_tries,
        max_time=config.queue.max_time,
    )
    orchestrator = AnalysisOrchestrator(project_manager, task_store, dispatch_queue)

    worker = None
    if config.analysis.worker_enabled and not args.no_worker:
        llm = None
        if not config.analysis.mock_generation:
            llm = build_llm(config.analysis.llm_model, config.analysis.llm_temperature)
        generator = AnalysisGenerator(
            llm=llm,
            mock=config.analysis.mock_generation or llm is None,
            max_input_chars=config.analysis.max_input_chars,
        )
        logger.info(f"Analysis generation backend: {describe_llm(None if generator.mock else llm)}")
        worker = AnalysisWorker(
            dispatch_queue,
            task_store,
            project_manager,
            generator,
            poll_interval=config.analysis.worker_poll_interval,
        )
        worker.start()
    elif config.queue.backend == "memory":
        logger.warning("In-memory queue without a local worker: tasks will stay pending")

    # Build FastAPI app
    from .api.app import create_app
    app = create_app(
        db_manager=db_manager,
        project_manager=project_manager,
        orchestrator=orchestrator,
        config=config,
        worker=worker,
    )

    # Launch with uvicorn
    import uvicorn

    logger.info(f"Starting FastAPI server on http://0.0.0.0:{args.port}")
    print(f"\n  RevLens is running at: http://localhost:{args.port}")
    print(f"  API docs at: http://localhost:{args.port}/docs\n")

    try:
        uvicorn.run(
            app,
            host="0.0.0.0",
            port=args.port,
            log_level="debug" if args.debug else args.log_level.lower(),
        )
    finally:
        if worker:
            worker.stop()
        db_manager.dispose()


if __name__ == "__main__":
    main()
