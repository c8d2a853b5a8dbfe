import logging

DEFAULT_LOGGERS = ("workersync",)


def setup_logging(debug=False, loggers=DEFAULT_LOGGERS, stream=None):
    """Send diagnostics of the given loggers to stderr.

    Without `debug` only warnings get through. Modules never log secret
    values, passwords or derived keys, so enabling debug output is safe.
    """
    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
    )
    level = logging.DEBUG if debug else logging.WARNING
    for name in loggers:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.addHandler(handler)
    return handler
