from .metric_delta import histogram_observes, metric_delta
from .pages import FakeRenderer, FakeVerifier, product_page, rendered

__all__ = ["FakeRenderer", "FakeVerifier", "histogram_observes", "metric_delta", "product_page", "rendered"]
