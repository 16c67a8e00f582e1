from clipforge.utils.logger import get_logger


class BaseService:
    """Base service class giving each service a logger named after it."""

    def __init__(self):
        self.logger = get_logger(self.__class__.__name__)
