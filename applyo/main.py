"""
Command-line entry point.

    applyo serve [--host HOST] [--port PORT] [--reload]
    applyo init-db
    applyo populate-vectors [--target companies|employees|both] [--batch-size N]
    applyo enrich "find executives at stripe.com"
"""

import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from applyo.config import settings

logger = logging.getLogger(__name__)


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    logger.info(f"Serving Applyo API on {args.host}:{args.port}")
    uvicorn.run(
        "applyo.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level.lower(),
    )
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    from applyo.database import init_database

    init_database()
    logger.info(f"Database ready at {settings.database_url}")
    return 0


def populate_all(index, target: str, batch_size: int) -> Dict[str, Dict]:
    """
    Populate vectors batch by batch until no rows remain.

    Returns:
        Last batch result per target
    """
    runners = {
        'companies': index.populate_companies,
        'employees': index.populate_employees,
    }
    targets: List[str] = list(runners) if target == 'both' else [target]
    results = {}

    for name in targets:
        offset = 0
        while True:
            result = runners[name](offset=offset, limit=batch_size)
            results[name] = result
            if not result.get('success'):
                logger.error(f"Populating {name} stopped: {result.get('message') or result.get('error')}")
                break
            logger.info(f"{name}: {result['progress']}")
            if not result.get('hasMore'):
                break
            offset = result['nextOffset']

    return results


def cmd_populate_vectors(args: argparse.Namespace) -> int:
    from applyo.vector_index import VectorIndex

    results = populate_all(VectorIndex(), args.target, args.batch_size)
    print(json.dumps(results, indent=2, default=str))
    return 0 if all(r.get('success') for r in results.values()) else 1


def cmd_enrich(args: argparse.Namespace) -> int:
    from applyo.agents import Orchestrator
    from applyo.database import init_database
    from applyo.exceptions import AgentError

    init_database()
    try:
        result = Orchestrator().run({"query": args.query})
    except AgentError as e:
        logger.error(f"Enrichment failed: {e.message}")
        print(json.dumps(e.to_dict(), indent=2))
        return 1

    print(json.dumps(result, indent=2, default=str))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='applyo', description='Applyo lead enrichment backend')
    parser.add_argument('--log-level', default=settings.log_level,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the HTTP API')
    serve.add_argument('--host', default='127.0.0.1')
    serve.add_argument('--port', type=int, default=8000)
    serve.add_argument('--reload', action='store_true', help='Reload on code changes')
    serve.set_defaults(func=cmd_serve)

    init_db = subparsers.add_parser('init-db', help='Create database tables')
    init_db.set_defaults(func=cmd_init_db)

    populate = subparsers.add_parser('populate-vectors', help='Embed stored companies and employees')
    populate.add_argument('--target', choices=['companies', 'employees', 'both'], default='both')
    populate.add_argument('--batch-size', type=int, default=settings.vector_batch_size)
    populate.set_defaults(func=cmd_populate_vectors)

    enrich = subparsers.add_parser('enrich', help='Run the orchestrator for one query')
    enrich.add_argument('query', help='Free-text query, e.g. "find executives at stripe.com"')
    enrich.set_defaults(func=cmd_enrich)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    from applyo.utils import setup_logging

    args = build_parser().parse_args(argv)
    setup_logging(level=args.log_level)

    try:
        return args.func(args)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130  # Standard exit code for SIGINT
    except Exception as e:
        logger.critical(f"Command failed: {e}", exc_info=True)
        return 1


if __name__ == '__main__':
    sys.exit(main())
