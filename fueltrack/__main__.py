import logging

from .app import create_app
from .config import SERVER_CONFIG
from .fuel_data_service import FuelDataService

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    data = FuelDataService.from_config()
    data.ensure_indexes()
    app = create_app(data_service=data)
    logger.info(f"Starting FuelTrack API on port {SERVER_CONFIG['PORT']}")
    app.run(host='0.0.0.0', port=SERVER_CONFIG['PORT'])


if __name__ == '__main__':
    main()
