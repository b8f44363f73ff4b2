import contextlib
import logging
import os
from typing import Iterator, Optional

from .config import FirebirdConfig, build_target
from .errors import SetupError
from .models import EphemeralDatabase

logger = logging.getLogger(__name__)

CREATE_DATABASE_SQL = (
    "CREATE DATABASE '%(target)s' USER '%(user)s' PASSWORD '%(password)s' "
    "PAGE_SIZE %(page_size)d DEFAULT CHARACTER SET UTF8;\n"
)


class DatabaseLifecycle:
    """
    Creates the throwaway benchmark database and removes it afterwards.

    The path is reused between runs, so a file left over from an earlier run
    is deleted before CREATE DATABASE.
    """

    def __init__(self, client, config: Optional[FirebirdConfig] = None) -> None:
        self.client = client
        self.config = config or FirebirdConfig()

    def create(self, path: str) -> EphemeralDatabase:
        _remove_stale(path)
        target = build_target(path, self.config.protocol, self.config.host)
        sql = CREATE_DATABASE_SQL % {
            "target": target.replace("'", "''"),
            "user": self.config.user,
            "password": self.config.password.replace("'", "''"),
            "page_size": self.config.page_size,
        }
        logger.info("Creating database %s", target)
        self.client.execute(sql)
        return EphemeralDatabase(path=path, target=target)

    def destroy(self, handle: EphemeralDatabase) -> None:
        try:
            os.remove(handle.path)
            logger.info("Removed database %s", handle.path)
        except OSError as exc:
            logger.warning("Could not remove database %s: %s", handle.path, exc)

    @contextlib.contextmanager
    def ephemeral(self, path: str) -> Iterator[EphemeralDatabase]:
        """
        create() on entry, destroy() on exit. The file is removed even when
        CREATE DATABASE itself fails half way.
        """
        handle = EphemeralDatabase(
            path=path, target=build_target(path, self.config.protocol, self.config.host)
        )
        try:
            handle = self.create(path)
            yield handle
        finally:
            self.destroy(handle)


def _remove_stale(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise SetupError("Cannot remove existing database file %s: %s" % (path, exc)) from exc
    logger.info("Removed leftover database %s", path)
