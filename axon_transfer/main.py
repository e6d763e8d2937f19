"""Command line entry point.

Configuration comes from environment variables only,
see :py:mod:`axon_transfer.config`.

.. code-block:: shell

    JSONRPC_URL=http://localhost:8000 \\
    INJECTOR_JSONRPC_URL=http://localhost:8100 \\
    PRIVATE_KEY=0x... \\
    axon-transfer

"""

import asyncio
import logging
import os
import sys
from typing import Mapping

from axon_transfer.config import read_log_level, read_transfer_config
from axon_transfer.transfer import run_transfer
from axon_transfer.utils import setup_console_logging

logger = logging.getLogger(__name__)


def main(environ: Mapping[str, str] | None = None) -> int:
    """Run one transfer.

    :param environ:
        Defaults to :py:data:`os.environ`

    :return:
        Process exit status: 0 on success, 1 on any failure
    """
    if environ is None:
        environ = os.environ

    try:
        setup_console_logging(read_log_level(environ))
        config = read_transfer_config(environ)
        asyncio.run(run_transfer(config))
    except Exception as e:
        logger.exception("Transfer failed: %s", e)
        return 1

    return 0


def console_main():
    sys.exit(main())
