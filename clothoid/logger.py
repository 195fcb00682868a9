import logging

LOGGER_NAME = "clothoid"

global_logger = None
dup_filter = None


class DuplicateFilter(logging.Filter):
    """
    Drops a record whose message was already emitted with extra={"log_once": True}.
    """
    def __init__(self):
        super(DuplicateFilter, self).__init__()
        self.logged_once = set()

    def filter(self, record):
        if record.msg in self.logged_once:
            return False
        if getattr(record, "log_once", False):
            self.logged_once.add(record.msg)
        return True

    def reset(self):
        self.logged_once.clear()


class CustomFormatter(logging.Formatter):
    """Colors the level name, and points DEBUG records and worse at their call site."""
    grey = "\x1b[38;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    reset = "\x1b[0m"

    def __init__(self):
        super(CustomFormatter, self).__init__()
        located = "[%(levelname)s] %(message)s (%(filename)s:%(lineno)d)"
        self.formatters = {
            logging.DEBUG: logging.Formatter(self.grey + located + self.reset),
            logging.INFO: logging.Formatter(self.grey + "[%(levelname)s] %(message)s" + self.reset),
            logging.WARNING: logging.Formatter(self.yellow + located + self.reset),
            logging.ERROR: logging.Formatter(self.red + located + self.reset),
            logging.CRITICAL: logging.Formatter(self.bold_red + located + self.reset),
        }

    def format(self, record):
        return self.formatters.get(record.levelno, self.formatters[logging.INFO]).format(record)


def get_logger():
    """
    The package logger, created at the first call. It does not propagate to the root logger.

    Returns: logging.Logger

    """
    global global_logger
    global dup_filter
    if global_logger is None:
        dup_filter = DuplicateFilter()
        logger = logging.getLogger(LOGGER_NAME)
        logger.propagate = False
        handler = logging.StreamHandler()
        handler.setFormatter(CustomFormatter())
        logger.addHandler(handler)
        logger.addFilter(dup_filter)
        global_logger = logger
    return global_logger


def set_log_level(level=logging.INFO):
    """
    Set the level of the package logger, e.g. logging.DEBUG to see every regime rebuild
    """
    get_logger().setLevel(level)


def reset_logger():
    """
    Forget the messages that were logged once, so that they can be emitted again
    """
    if dup_filter is not None:
        dup_filter.reset()
