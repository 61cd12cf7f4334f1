#!/usr/bin/env python3
"""
Demo script for the schema cache.

Walks through a miss, a store, exact and case-variant hits, accounting and
the eviction sweep. Runs against the in-memory store unless --redis is
passed, in which case REDIS_URL must point at a Redis Stack instance.
"""

import argparse
import asyncio

from schema_cache.api.dependencies import build_repository
from schema_cache.repositories import HashEmbeddingProvider, InMemoryCacheRepository
from schema_cache.services import CacheService

BLOG_SCHEMA = {
    "tables": [
        {"name": "posts", "columns": ["id", "title", "body", "author_id", "published_at"]},
        {"name": "authors", "columns": ["id", "name", "email"]},
    ]
}
BLOG_SQL = (
    "CREATE TABLE authors (id uuid PRIMARY KEY, name text, email text);\n"
    "CREATE TABLE posts (id uuid PRIMARY KEY, title text, body text, "
    "author_id uuid REFERENCES authors(id), published_at timestamptz);"
)


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_lookup(cache: CacheService) -> None:
    """Demonstrate miss, store and hit."""
    print_section("Lookup and Store")

    prompt = "Create a blog schema"
    match = await cache.find_similar(prompt)
    print(f"\n🔍 '{prompt}': {'HIT' if match else 'miss'}")

    print("\n📝 Storing generated artifact (500 tokens)...")
    key = await cache.store(prompt, BLOG_SCHEMA, BLOG_SQL, tokens_used=500)
    print(f"  ✓ Stored under {key[:16]}...")

    queries = [
        "Create a blog schema",
        "  CREATE A BLOG SCHEMA  ",  # same normalized form
        "Create a blog schema with comments",  # different bytes: no match
        "Completely unrelated text",
    ]
    for query in queries:
        match = await cache.find_similar(query)
        if match is not None:
            print(f"\n  Query: '{query}'")
            print(f"  ✓ HIT - Similarity: {match.similarity:.4f}, uses: {match.entry.usage_count}")
        else:
            print(f"\n  Query: '{query}'")
            print("  ✗ MISS")


def demo_accounting(cache: CacheService) -> None:
    """Demonstrate stats, ranking and cost estimates."""
    print_section("Accounting")

    stats = cache.get_stats()
    print(f"\n📊 Cached: {stats.total_cached}, hits: {stats.total_hits}, "
          f"tokens saved: {stats.total_tokens_saved}, hit rate: {stats.hit_rate:.2%}")
    print(f"💰 Estimated savings: ${cache.calculate_cost_savings(stats.total_tokens_saved):.4f}")

    print("\n🏆 Most used prompts:")
    for entry in cache.get_most_used_prompts(5):
        print(f"  {entry.usage_count:>3}x  {entry.prompt}")


def demo_prune(cache: CacheService) -> None:
    """Demonstrate the eviction sweep."""
    print_section("Eviction")

    removed = cache.prune_old_cache(30)
    print(f"\n🧹 Entries idle for more than 30 days removed: {removed}")
    removed = cache.prune_old_cache(0)
    print(f"🧹 Entries idle for any time removed: {removed}")


async def main() -> None:
    """Run all demos."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--redis", action="store_true", help="use the Redis store")
    args = parser.parse_args()

    print("\n🚀 Schema Cache Demo")
    print("=" * 70)

    provider = HashEmbeddingProvider.create()
    repository = build_repository(provider) if args.redis else InMemoryCacheRepository()
    cache = CacheService.create(repository=repository, embedding_provider=provider)

    try:
        await demo_lookup(cache)
        demo_accounting(cache)
        demo_prune(cache)

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        if args.redis:
            print("\nMake sure Redis Stack is running:")
            print("  docker compose up -d")
            print("\nOr set REDIS_URL to your Redis instance.")


if __name__ == "__main__":
    asyncio.run(main())
