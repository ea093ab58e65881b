"""CLI script for getting product recommendations.

Useful for testing and evaluation. Loads the catalog and interaction log
from a data directory and prints recommendations to the console.
"""

import argparse
import logging
import sys
from typing import List

from blendrec.recommender.cache import InMemoryTTLCache
from blendrec.recommender.engine import RecommendationEngine
from blendrec.recommender.models import Candidate, actor_from_ids
from blendrec.recommender.stores import InMemoryRecommendationStore
from blendrec.recommender.utils import load_data

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s"
)
logger = logging.getLogger(__name__)


def print_candidates(title: str, candidates: List[Candidate], explain: bool) -> None:
    print(f"\n{title}:")
    if not candidates:
        print("  (none)")
        return
    for rank, c in enumerate(candidates, start=1):
        print(f"  {rank:2d}. product {c.product_id:<6} {c.score:.4f}  [{c.recommendation_type.value}]")
        if explain:
            for reason in c.reasoning:
                print(f"        - {reason}")


def main() -> None:
    """Main CLI function."""
    parser = argparse.ArgumentParser(
        description="Get product recommendations for a user or session",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/recommend_cli.py --user-id 42
  python scripts/recommend_cli.py --session-id sess-3 --limit 5 --explain
  python scripts/recommend_cli.py --similar-to 17
  python scripts/recommend_cli.py --trending
        """
    )

    actor_group = parser.add_mutually_exclusive_group(required=True)
    actor_group.add_argument("--user-id", type=int, help="User ID to recommend for")
    actor_group.add_argument("--session-id", type=str, help="Session ID to recommend for")
    actor_group.add_argument("--similar-to", type=int, metavar="PRODUCT_ID",
                             help="List products similar to this product")
    actor_group.add_argument("--trending", action="store_true", help="List trending products")

    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of recommendations to return (default: 10)"
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default="data",
        help="Directory containing products.csv and interactions.csv (default: data)"
    )
    parser.add_argument(
        "--explain",
        action="store_true",
        help="Show reasoning for each recommendation"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging"
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)

    if args.limit < 1:
        parser.error("--limit must be positive")

    try:
        catalog, interactions = load_data(args.data_dir)
    except FileNotFoundError as e:
        print(f"Error: Data not found in {args.data_dir}", file=sys.stderr)
        print(f"  {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        print(f"Error: Invalid data: {e}", file=sys.stderr)
        sys.exit(1)

    engine = RecommendationEngine(
        interactions=interactions,
        catalog=catalog,
        recommendations=InMemoryRecommendationStore(),
        cache=InMemoryTTLCache(),
    )

    if args.trending:
        print_candidates("Trending products", engine.trending_products(args.limit), args.explain)
    elif args.similar_to is not None:
        print_candidates(
            f"Products similar to {args.similar_to}",
            engine.similar_products(args.similar_to, args.limit),
            args.explain,
        )
    else:
        actor = actor_from_ids(user_id=args.user_id, session_id=args.session_id)
        print_candidates(
            f"Recommendations for {actor.key}",
            engine.generate_recommendations(actor, args.limit),
            args.explain,
        )

    print()


if __name__ == "__main__":
    main()
