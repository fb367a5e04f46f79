"""
drape - instrumentation facade for relational-database clients.

Issue queries and transactions through ``Database`` / ``Transaction`` and
observe every one of them through hooks registered on the connection.

    >>> from drape import connect, new_context
    >>> from drape.scan import DictScanner
    >>> db = connect("sqlite3", ":memory:")
    >>> db.register_hook(lambda ctx, details, err: print(details.operation.value, err))
    >>> user = DictScanner()
    >>> db.fetch_one(new_context(), user, "SELECT 1 AS id")
    fetch_one None
"""

__version__ = "0.1.0"

from drape.core import *  # noqa
from drape.core import __all__ as _core_all

__all__ = ["__version__", *_core_all]
