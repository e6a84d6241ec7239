import logging


def setup_logging(level: str = 'INFO') -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s %(message)s',
    )
