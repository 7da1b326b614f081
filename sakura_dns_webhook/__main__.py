"""
Main entry point for Sakura DNS Webhook.
"""

import asyncio
import logging
import sys
import threading
from pathlib import Path

from sakura_dns_webhook.config.config import Config
from sakura_dns_webhook.controller.reconciler import Reconciler
from sakura_dns_webhook.models.errors import NotFoundError, WebhookError
from sakura_dns_webhook.provider.sakuracloud import SakuraCloudZoneStore
from sakura_dns_webhook.server.webhook import WebhookServer

__version__ = "0.1.0"


def main():
    """Main entry point: resolve the zone and serve the webhook API."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logger = logging.getLogger("sakura-dns-webhook")
    logger.info(f"Starting Sakura DNS Webhook v{__version__}")

    # Load configuration
    config_path = Path(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        config = Config.from_yaml(config_path)
    except WebhookError as e:
        logger.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    # Set log level from configuration
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.getLogger().setLevel(log_level)
    # Set httpx logger level to WARNING unless root is DEBUG
    httpx_log_level = logging.DEBUG if log_level == logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_log_level)

    try:
        config.validate_required()
    except WebhookError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    logger.info(f"Using DNS zone: {config.zone_name}")

    # All zone store calls run on one event loop shared by the request threads
    loop = asyncio.new_event_loop()
    loop_thread = threading.Thread(target=loop.run_forever, daemon=True)
    loop_thread.start()

    store = SakuraCloudZoneStore(
        config.sakura_api_token,
        config.sakura_api_secret,
        base_url=config.sakura_api_url,
    )
    try:
        reconciler = asyncio.run_coroutine_threadsafe(
            Reconciler.create(store, config), loop
        ).result()
    except NotFoundError as e:
        logger.error(f"Failed to resolve DNS zone: {e}")
        sys.exit(1)
    except WebhookError as e:
        logger.error(f"Failed to create Sakura Cloud client: {e}")
        sys.exit(1)

    if config.registry_txt:
        logger.info(f"TXT registry enabled, owner ID: {config.txt_owner_id}")

    server = WebhookServer(
        reconciler,
        loop,
        host=config.provider_ip,
        port=config.provider_port,
        request_timeout=config.parse_duration(config.request_timeout),
    )
    server.start()

    try:
        server.thread.join()
    except KeyboardInterrupt:
        print("\nShutting down Sakura DNS Webhook")
    finally:
        server.stop()
        asyncio.run_coroutine_threadsafe(store.close(), loop).result()
        loop.call_soon_threadsafe(loop.stop)


if __name__ == "__main__":
    main()
