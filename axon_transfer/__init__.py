"""axon_transfer package root.

Build, sign and broadcast a native currency self-transfer
to an Axon injector JSON-RPC endpoint.

See :py:func:`axon_transfer.transfer.run_transfer`.
"""

import sys


#: Minimum required Python version to run this package
MIN_PYTHON_VERSION = (3, 10)


def _check_python_version():
    """Try early abort if the Python version is too old."""

    # Use Python tuple comparison for version numbers
    if sys.version_info < MIN_PYTHON_VERSION:
        raise RuntimeError(f"axon-transfer needs Python {MIN_PYTHON_VERSION[0]}.{MIN_PYTHON_VERSION[1]} or later")


_check_python_version()
