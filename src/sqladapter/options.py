import sqlite3
from dataclasses import dataclass

from sqladapter.base import get_available_drivers, is_supported_driver

from libb import ConfigOptions

__all__ = ['DatabaseOptions']


@dataclass
class DatabaseOptions(ConfigOptions):
    """Options

    supported driver names: `sqlite`

    - database: path of the database file; `:memory:` or an empty string
      opens a private in-memory database
    - timeout: seconds the driver waits on a locked database (0 = driver default)
    - detect_types: sqlite3 type detection flags
    - foreign_keys: enforce foreign key constraints on every connection

    Connection pooling options:
    - use_pool: Whether to use connection pooling (default: False)
    - pool_max_connections: Maximum connections in pool (default: 5)
    - pool_max_idle_time: Maximum seconds a connection can be idle (default: 300)
    - pool_wait_timeout: Maximum seconds to wait for a connection (default: 30)
    """
    drivername: str = 'sqlite'
    database: str = None
    timeout: float = 0
    detect_types: int = sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
    foreign_keys: bool = True
    # Connection pooling parameters
    use_pool: bool = False
    pool_max_connections: int = 5
    pool_max_idle_time: int = 300
    pool_wait_timeout: int = 30

    def __post_init__(self):
        if not is_supported_driver(self.drivername):
            available = get_available_drivers()
            raise ValueError(f'drivername must be one of: {available}')
        if self.database is None:
            raise ValueError(f'database is required for {self.drivername}')
