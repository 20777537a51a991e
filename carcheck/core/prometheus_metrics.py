
from prometheus_client import Counter, Info, generate_latest
from prometheus_client.core import CollectorRegistry

from carcheck import __version__


# Prometheus Registry
REGISTRY = CollectorRegistry()

share_link_resolutions_total = Counter(
    'carcheck_share_link_resolutions_total',
    'Share-link resolution attempts',
    ['outcome'],  # ok | unknown | expired
    registry=REGISTRY
)

invitation_acceptances_total = Counter(
    'carcheck_invitation_acceptances_total',
    'Invitation acceptance attempts',
    ['outcome'],  # accepted | not_found | expired | email_mismatch | duplicate
    registry=REGISTRY
)

ai_requests_total = Counter(
    'carcheck_ai_requests_total',
    'AI gateway requests',
    ['kind', 'outcome'],  # kind: analysis | chat; outcome: ok | degraded | upstream_failure
    registry=REGISTRY
)

ai_quota_rejections_total = Counter(
    'carcheck_ai_quota_rejections_total',
    'AI requests refused because the user exhausted their quota',
    ['tier'],
    registry=REGISTRY
)

rate_limit_exceeded_total = Counter(
    'carcheck_rate_limit_exceeded_total',
    'Total rate limit violations',
    ['endpoint'],
    registry=REGISTRY
)

system_info = Info(
    'carcheck_info',
    'System information',
    registry=REGISTRY
)
system_info.info({'version': __version__, 'service': 'carcheck'})


def get_prometheus_metrics() -> bytes:
    """Serialize the registry in the Prometheus text exposition format."""
    return generate_latest(REGISTRY)
