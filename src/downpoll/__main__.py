"""
downpoll entry point
"""
import argparse
import logging
import random
import signal
import sys
import threading

from downpoll.core import DownloadScheduler, FanboxSession, Poller, PollError, SettingsError, load_settings
from downpoll.utils import setup_logging

logger = logging.getLogger("downpoll")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="downpoll-fanbox",
        description="Poll pixivFANBOX for new posts of supported creators and download their files.",
    )
    ap.add_argument("--once", action="store_true", help="Run one full poll, wait for downloads and exit")
    ap.add_argument("--dest", default=None, help="Download root (overrides FANBOX_DEST_DIR)")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings()
    except SettingsError as e:
        setup_logging()
        logger.error("invalid configuration: %s", e)
        return 2

    setup_logging("DEBUG" if args.verbose else settings.log_level)
    if args.dest:
        settings.dest_dir = args.dest

    session = FanboxSession(
        settings.session_id,
        retries=settings.max_retries,
        pool_size=settings.max_parallel,
        user_agent=settings.user_agent,
    )
    scheduler = DownloadScheduler(
        session,
        settings.dest_dir,
        max_parallel=settings.max_parallel,
        allowed_exts=settings.allow_file_exts,
        rng=random.Random(),
    )
    poller = Poller(
        session,
        scheduler,
        max_page_behind=settings.max_page_behind,
        poll_frequency=settings.poll_frequency,
        listing=settings.listing,
    )

    stop_event = threading.Event()

    def on_sigterm(signum, frame):
        stop_event.set()
        raise KeyboardInterrupt

    previous_handler = signal.signal(signal.SIGTERM, on_sigterm)

    try:
        if args.once:
            poller.poll(fetch_all=True)
        else:
            poller.run(stop_event)
    except PollError as e:
        logger.error("failed to run the initial poll: %s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, waiting for running downloads.")
    finally:
        signal.signal(signal.SIGTERM, previous_handler)
        scheduler.wait()
        scheduler.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
