import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from psycopg2.extras import RealDictCursor
from psycopg2.pool import PoolError, ThreadedConnectionPool

logger = logging.getLogger(__name__)


SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    description TEXT,
    priority TEXT NOT NULL,
    status TEXT NOT NULL,
    start_date TEXT NOT NULL,
    due_date TEXT,
    due_time TEXT,
    parent_id TEXT REFERENCES tasks(id) ON DELETE CASCADE
);
"""


class Database:
    """Pooled PostgreSQL handle for the tasks table.

    Public methods:
      - initialize()  # create tasks table (no-op if exists)
      - ping()
      - cursor()      # one transaction per `with` block
      - close()

    The pool is opened lazily on first use so that constructing a Database
    never touches the network. ThreadedConnectionPool raises as soon as
    every connection is out, so borrowers queue on a semaphore sized to
    `maxconn` and give up only after `pool_timeout` seconds.
    """

    def __init__(
        self,
        dsn: str,
        minconn: int = 1,
        maxconn: int = 10,
        statement_timeout_ms: int = 0,
        pool_timeout: float = 30.0,
    ) -> None:
        self._dsn = dsn
        self._minconn = minconn
        self._maxconn = maxconn
        self._statement_timeout_ms = statement_timeout_ms
        self._pool_timeout = pool_timeout
        self._pool: Optional[ThreadedConnectionPool] = None
        self._pool_lock = threading.Lock()
        self._slots = threading.BoundedSemaphore(maxconn)

    def _get_pool(self) -> ThreadedConnectionPool:
        with self._pool_lock:
            if self._pool is None:
                kwargs = {}
                if self._statement_timeout_ms > 0:
                    # server-side deadline for every statement on pooled connections
                    kwargs["options"] = f"-c statement_timeout={self._statement_timeout_ms}"
                self._pool = ThreadedConnectionPool(
                    self._minconn, self._maxconn, dsn=self._dsn, **kwargs
                )
                logger.info("Connection pool opened min=%s max=%s", self._minconn, self._maxconn)
            return self._pool

    @contextmanager
    def cursor(self) -> Iterator[RealDictCursor]:
        """Borrow a connection and yield a dict cursor.

        Waits for a free connection when all of them are borrowed.
        Commits when the block exits cleanly, rolls back on any exception.
        The connection always goes back to the pool.
        """
        if not self._slots.acquire(timeout=self._pool_timeout):
            raise PoolError(f"timed out after {self._pool_timeout}s waiting for a connection")
        try:
            pool = self._get_pool()
            conn = pool.getconn()
            try:
                with conn:
                    with conn.cursor(cursor_factory=RealDictCursor) as cur:
                        yield cur
            finally:
                pool.putconn(conn)
        finally:
            self._slots.release()

    def initialize(self) -> None:
        """Create tasks table (no-op if exists)."""
        with self.cursor() as cur:
            cur.execute(SCHEMA)
        logger.info("Schema ready")

    def ping(self) -> None:
        with self.cursor() as cur:
            cur.execute("SELECT 1")
            cur.fetchone()

    def close(self) -> None:
        with self._pool_lock:
            if self._pool is not None:
                self._pool.closeall()
                self._pool = None
                logger.info("Connection pool closed")
