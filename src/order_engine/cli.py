"""Command-line interface for order-engine."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .catalog.embeddings import embed_catalog
from .catalog.loader import load_catalog, save_catalog
from .embedding.functional import create_embedding_client
from .engine import OrderResolutionEngine
from .shared.models import FulfillmentType
from .utils import setup_logging

logger = logging.getLogger(__name__)


def _load_env(env_file: str) -> None:
    did_load_env = load_dotenv(env_file)
    if did_load_env:
        logger.info(f"Loaded environment variables from env file at path: {env_file}")
    else:
        logger.warning(
            f"No environment variables loaded from env file at path: {env_file}"
        )


async def _resolve(args) -> None:
    engine = OrderResolutionEngine.from_env(args.catalog)
    fulfillment_type = FulfillmentType(args.fulfillment) if args.fulfillment else None
    outcome = await engine.resolve_order_from_text(args.utterance, fulfillment_type)
    await engine.logger.flush()
    print(outcome.model_dump_json(indent=2))


def run_resolve_command(args):
    """Handle the resolve subcommand."""
    asyncio.run(_resolve(args))


async def _embed(args) -> None:
    snapshot = load_catalog(args.catalog)
    client = create_embedding_client(task_type="RETRIEVAL_DOCUMENT")
    products = await embed_catalog(
        list(snapshot.products), client, only_missing=not args.all
    )
    output = Path(args.output) if args.output else Path(args.catalog)
    save_catalog(snapshot.model_copy(update={"products": tuple(products)}), output)
    logger.info(f"Wrote {len(products)} products to {output}")


def run_embed_catalog_command(args):
    """Handle the embed-catalog subcommand."""
    asyncio.run(_embed(args))


def main():
    """Run main CLI."""
    parser = argparse.ArgumentParser(
        prog="order-engine",
        description="Order Engine - resolve natural-language food orders against a menu catalog",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to a .env file with provider settings (default: .env)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(
        dest="command", help="Available commands", required=True
    )

    # resolve subcommand
    resolve_parser = subparsers.add_parser(
        "resolve", help="Resolve an order utterance into a priced order"
    )
    resolve_parser.set_defaults(func=run_resolve_command)
    resolve_parser.add_argument("catalog", help="Path to the catalog YAML/JSON file")
    resolve_parser.add_argument("utterance", help="What the customer wrote")
    resolve_parser.add_argument(
        "--fulfillment",
        choices=[t.value for t in FulfillmentType],
        default=None,
        help="Order type, when already known",
    )

    # embed-catalog subcommand
    embed_parser = subparsers.add_parser(
        "embed-catalog", help="Compute product embeddings for a catalog file"
    )
    embed_parser.set_defaults(func=run_embed_catalog_command)
    embed_parser.add_argument("catalog", help="Path to the catalog YAML/JSON file")
    embed_parser.add_argument(
        "--output",
        default=None,
        help="Where to write the embedded catalog (default: overwrite the input)",
    )
    embed_parser.add_argument(
        "--all",
        action="store_true",
        help="Re-embed products that already have an embedding",
    )

    args = parser.parse_args()

    setup_logging(args.log_level)
    _load_env(args.env_file)

    try:
        args.func(args)
    except KeyboardInterrupt:
        print("\nExecution interrupted by user.")
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
