"""oaslint - Rule-driven linter for OpenAPI documents.

oaslint parses an OpenAPI document, runs a catalog of declarative rules against
it and reports findings located precisely in the original text, for editor
integration, CI gating and compliance reports.
"""

__version__ = "0.1.0"
__author__ = "oaslint contributors"
__description__ = "Rule-driven linter for OpenAPI documents"

from oaslint.config import OaslintConfig

__all__ = [
    "__version__",
    "__author__",
    "__description__",
    "OaslintConfig",
]
