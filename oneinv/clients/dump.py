"""Inventory source reading VM_POOL / HOST_POOL XML dumps from disk."""

import time
from pathlib import Path
from typing import Optional, Union

from oneinv.core.exceptions import TransportError
from oneinv.models.host import HostPool
from oneinv.models.vm import VmPool
from oneinv.utils.logger import get_logger

logger = get_logger(__name__)


def read_pool_file(path: Union[str, Path], pool: Union[VmPool, HostPool]) -> float:
    """
    Load an XML dump into ``pool``, replacing its contents.

    Args:
        path: Dump file path
        pool: VmPool or HostPool to fill

    Returns:
        Elapsed seconds

    Raises:
        TransportError: If the file cannot be read or parsed
    """
    start = time.perf_counter()
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        logger.error(
            "Failed to read pool dump",
            extra={"path": str(path), "error": str(e), "error_type": type(e).__name__},
        )
        raise TransportError(f"Cannot read {path}: {e.strerror or e}") from e

    pool.load_xml(data)
    return time.perf_counter() - start


class DumpSource:
    """Serve pools from dump files, one optional file per pool type."""

    def __init__(
        self,
        vm_pool_path: Optional[Union[str, Path]] = None,
        host_pool_path: Optional[Union[str, Path]] = None,
    ):
        self.vm_pool_path = vm_pool_path
        self.host_pool_path = host_pool_path

    async def fetch_pool(self, pool: Union[VmPool, HostPool]) -> float:
        """Fill ``pool`` from its dump file; a pool without a file stays empty."""
        if isinstance(pool, VmPool):
            path = self.vm_pool_path
        elif isinstance(pool, HostPool):
            path = self.host_pool_path
        else:
            raise TypeError(f"Unsupported pool type: {type(pool).__name__}")

        if path is None:
            logger.warning(
                "No dump file given, pool left empty",
                extra={"pool": type(pool).__name__},
            )
            return 0.0
        return read_pool_file(path, pool)

    async def close(self):
        pass
