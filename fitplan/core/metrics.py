from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest
from prometheus_client.multiprocess import MultiProcessCollector
import os


registry = CollectorRegistry()
if os.getenv('prometheus_multiproc_dir'):
    MultiProcessCollector(registry)


generation_jobs_total = Counter(
    'generation_jobs_total',
    'Generation jobs by terminal or initial status',
    ['status'],
    registry=registry
)

generation_stage_duration_seconds = Histogram(
    'generation_stage_duration_seconds',
    'Wall time spent in each generation pipeline stage',
    ['stage'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 45.0, 90.0],
    registry=registry
)

llm_requests_total = Counter(
    'llm_requests_total',
    'LLM requests by provider, stage and outcome',
    ['provider', 'stage', 'outcome'],
    registry=registry
)

blueprint_violations_total = Counter(
    'blueprint_violations_total',
    'Blueprint validation violations by code',
    ['code'],
    registry=registry
)

fitter_actions_total = Counter(
    'fitter_actions_total',
    'Single-step adjustments applied by the duration fitter',
    ['action'],
    registry=registry
)

fitter_outcomes_total = Counter(
    'fitter_outcomes_total',
    'Duration fitter results by status',
    ['status'],
    registry=registry
)


def get_metrics() -> bytes:
    """Render all registered metrics in Prometheus text format."""
    return generate_latest(registry)
