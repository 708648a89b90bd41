"""
Basic link checking example.

Checks a couple of URLs, then crawls a site and prints its dead links.
"""

import asyncio
from unlinked import CheckConfig, Checker, CheckMode, LinkStatus


async def main():
    """Check two URLs, then crawl one site two levels deep."""
    print("🔗 Checking individual URLs...")

    checker = Checker()
    result = await checker.check_urls(["https://example.com", "https://example.com/missing"])

    for link in result.links:
        print(f"   [{link.status.value}] {link.url} ({link.status_code})")

    print("\n🕸️  Crawling https://example.com ...")

    config = CheckConfig(
        mode=CheckMode.CRAWLER,
        max_depth=2,
        concurrency=20,
        ignore_patterns=[r"\.pdf$"],
    )
    crawler = Checker(config)
    crawler.set_progress_callback(lambda url, status: print(f"   {status.value:<8} {url}"))
    result = await crawler.check_urls(["https://example.com"])

    print(f"\n✅ Checked {result.total_checked} links in {result.duration.total_seconds():.1f}s")

    dead = result.by_status(LinkStatus.DEAD)
    if dead:
        print(f"\n💀 Dead links ({len(dead)}):")
        for link in dead:
            print(f"   [{link.status_code}] {link.url}")
            print(f"      found on {link.found_on}")


if __name__ == "__main__":
    asyncio.run(main())
