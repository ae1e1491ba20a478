import argparse
import logging

from kiosk_app.lib.config import Config
from kiosk_app.lib.database import configure_database, init_db
from kiosk_app.lib.services.storage_service import StorageService

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the kiosk's visit store")
    parser.add_argument('--config', help="Path to config.json (defaults to kiosk_app/config.json)")
    parser.add_argument('--clear', action='store_true', help="Remove all visits and reset the ticket counters")
    args = parser.parse_args()

    # Set up logging
    logging.basicConfig(level=logging.INFO)
    logger = logging.getLogger(__name__)

    config = Config(args.config)
    logger.info("Initializing database...")
    try:
        configure_database(config.database.url)
        init_db()
        if args.clear:
            StorageService(tz=config.kiosk.get_tz()).clear_all_data()
        logger.info("Database initialization completed successfully!")
    except Exception as e:
        logger.error(f"Error initializing database: {str(e)}")
        raise
