import logging

from sqlalchemy.orm import Session


class BaseService:
    """Shared db session and logger for service classes."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)
