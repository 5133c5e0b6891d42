"""Bundled check implementations.

Importing this package registers every check with the default registry.
"""

from oaslint.validation.checks import (  # noqa: F401
    compatibility,
    document,
    headers,
    naming,
    operations,
    parameters,
    payloads,
    servers,
    uri,
)
