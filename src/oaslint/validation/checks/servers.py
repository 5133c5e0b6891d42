"""Server list checks."""

from oaslint.models.finding import Finding
from oaslint.models.rule import RuleDefinition
from oaslint.parser.document import SpecDocument
from oaslint.parser.locator import Fallback, PositionLocator, ScanCursor
from oaslint.validation.registry import check


@check("checkHttpsServers")
def check_https_servers(document: SpecDocument, raw: str, rule: RuleDefinition) -> list[Finding]:
    """Every ``servers[].url`` must use ``https://``."""
    findings: list[Finding] = []
    servers = document.root.get("servers")
    if not isinstance(servers, list):
        return findings

    locator = PositionLocator(raw)
    cursor = ScanCursor()
    for server in servers:
        url = server.get("url") if isinstance(server, dict) else None
        if not isinstance(url, str) or url.startswith("https://"):
            continue
        text_range, cursor = locator.next_text(url, cursor, fallback=Fallback.WHOLE_DOCUMENT)
        findings.append(rule.finding(text_range))
    return findings
