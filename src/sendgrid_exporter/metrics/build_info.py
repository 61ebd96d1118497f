"""Build information metric for the exporter process."""

import platform
from collections.abc import Iterable

from prometheus_client.core import GaugeMetricFamily, Metric
from prometheus_client.registry import Collector

from sendgrid_exporter import __version__


class BuildInfoCollector(Collector):
    """Expose ``sendgrid_exporter_build_info`` with version labels, always 1."""

    def __init__(self, program: str = "sendgrid_exporter", version: str = __version__):
        self.program = program
        self.version = version

    def collect(self) -> Iterable[Metric]:
        family = GaugeMetricFamily(
            f"{self.program}_build_info",
            f"A metric with a constant '1' value labeled by version and pythonversion "
            f"from which {self.program} was built.",
            labels=["version", "pythonversion"],
        )
        family.add_metric([self.version, platform.python_version()], 1.0)
        yield family
