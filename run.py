import logging
import sys
from typing import Optional

from webspider import config
from webspider.container import Container
from webspider.exceptions import CrawlFailedError, SeedFileError
from webspider.seeds import load_seed_file

logger = logging.getLogger("webspider")


def _configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def main(argv: Optional[list] = None, container: Optional[Container] = None) -> int:
    """Load seeds, run one crawl and log what was found.

    Usage: python run.py [seeds.yml]
    """
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) > 1:
        print("Usage: run.py [seeds-file]", file=sys.stderr)
        return 2

    _configure_logging()
    seeds_path = argv[0] if argv else config.seeds_file()
    try:
        seeds = load_seed_file(seeds_path)
    except SeedFileError as e:
        logger.error("%s", e)
        return 1

    container = container or Container()
    coordinator = container.crawl_coordinator()
    try:
        result = coordinator.crawl(seeds.starting_points, seeds.keywords)
    except CrawlFailedError as e:
        logger.error("%s", e)
        return 1

    logger.info("Crawl finished: %s", result.summary())
    for keyword in sorted(result.keyword_to_urls):
        entry = result.keyword_to_urls[keyword]
        for url in sorted(entry.urls):
            logger.info("  %s [%s]: %s", keyword, entry.origin, url)
    return 0


if __name__ == '__main__':
    sys.exit(main())
