"""
One scrape cycle: exposition text in, populated integration out.

    text -> parse -> filter with the source's queries -> group -> populate

Grouping errors are advisory (an object kind with no data is normal) and
only logged; population errors are returned for the caller to report.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable

from kubesample.config.scrape_config import ScrapeConfig
from kubesample.core.errors import ConfigurationError, KubeSampleError, ParseError
from kubesample.definition.spec import SpecGroups
from kubesample.discovery.namespace_filter import CachedNamespaceFilter, NamespaceFilter, NamespaceFilterer
from kubesample.integration.integration import Integration
from kubesample.logging import bind_context
from kubesample.populator.populator import PopulateConfig, integration_populator
from kubesample.prometheus.grouping import group_entity_metrics_by_spec, group_metrics_by_spec
from kubesample.prometheus.parser import parse_metric_families
from kubesample.prometheus.query import Query, filter_metric_families
from kubesample.specs import (
    API_SERVER_QUERIES,
    API_SERVER_SPECS,
    CONTROLLER_MANAGER_QUERIES,
    CONTROLLER_MANAGER_SPECS,
    ETCD_QUERIES,
    ETCD_SPECS,
    KSM_QUERIES,
    KSM_SPECS,
    SCHEDULER_QUERIES,
    SCHEDULER_SPECS,
)


@dataclass(frozen=True)
class Source:
    """A data source: its spec tables, its queries and how its series are grouped."""

    name: str
    specs: SpecGroups
    queries: tuple[Query, ...]
    # Control plane components report everything as one entity.
    single_entity: bool = False
    default_entity_id: str = ""


SOURCES: dict[str, Source] = {
    "ksm": Source("ksm", KSM_SPECS, tuple(KSM_QUERIES)),
    "api-server": Source(
        "api-server",
        API_SERVER_SPECS,
        tuple(API_SERVER_QUERIES),
        single_entity=True,
        default_entity_id="kube-apiserver",
    ),
    "scheduler": Source(
        "scheduler",
        SCHEDULER_SPECS,
        tuple(SCHEDULER_QUERIES),
        single_entity=True,
        default_entity_id="kube-scheduler",
    ),
    "controller-manager": Source(
        "controller-manager",
        CONTROLLER_MANAGER_SPECS,
        tuple(CONTROLLER_MANAGER_QUERIES),
        single_entity=True,
        default_entity_id="kube-controller-manager",
    ),
    "etcd": Source(
        "etcd",
        ETCD_SPECS,
        tuple(ETCD_QUERIES),
        single_entity=True,
        default_entity_id="etcd",
    ),
}


def get_source(name: str) -> Source:
    """
    Look up a data source by name.

    Raises:
        ConfigurationError: for an unknown source
    """
    try:
        return SOURCES[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown source {name!r}", {"available": ", ".join(sorted(SOURCES))}
        ) from None


@dataclass
class ScrapeResult:
    """Outcome of one scrape cycle."""

    populated: bool
    grouping_errors: list[KubeSampleError] = field(default_factory=list)
    populate_errors: list[KubeSampleError] = field(default_factory=list)
    parse_error: ParseError | None = None

    @property
    def errors(self) -> list[KubeSampleError]:
        errors: list[KubeSampleError] = [self.parse_error] if self.parse_error else []
        return errors + self.populate_errors


class ScrapeCycle:
    """Runs the pipeline of one source against exposition bodies."""

    def __init__(
        self,
        source: Source,
        scrape_config: ScrapeConfig,
        *,
        entity_id: str | None = None,
        filterer: NamespaceFilterer | None = None,
    ):
        self.source = source
        self.scrape_config = scrape_config
        self.entity_id = entity_id or source.default_entity_id
        if filterer is None:
            filterer = CachedNamespaceFilter(
                NamespaceFilter(scrape_config.namespace_selector, scrape_config.namespace_labels)
            )
        self.filterer = filterer
        self.log = bind_context(source=source.name, cluster=scrape_config.cluster_name)

    def run(self, text: str, integration: Integration) -> ScrapeResult:
        """Parse, filter, group and populate one exposition body into `integration`."""
        families, parse_error = parse_metric_families(text)
        if parse_error is not None:
            self.log.warning("metrics_partially_parsed", error=parse_error.message)

        filtered = filter_metric_families(families, self.source.queries)
        self.log.debug("metric_families_filtered", parsed=len(families), kept=len(filtered))

        if self.source.single_entity:
            groups, grouping_errors = group_entity_metrics_by_spec(
                self.source.specs, filtered, self.entity_id
            )
        else:
            groups, grouping_errors = group_metrics_by_spec(self.source.specs, filtered)
        for error in grouping_errors:
            self.log.warning("group_empty", error=error.message)

        populated, populate_errors = integration_populator(
            PopulateConfig(
                integration=integration,
                groups=groups,
                specs=self.source.specs,
                cluster_name=self.scrape_config.cluster_name,
                k8s_version=self.scrape_config.k8s_version,
                filterer=self.filterer,
                logger=self.log,
            )
        )
        self.log.info(
            "scrape_cycle_finished",
            populated=populated,
            entities=len(integration.entities),
            errors=len(populate_errors),
        )
        return ScrapeResult(
            populated=populated,
            grouping_errors=list(grouping_errors),
            populate_errors=populate_errors,
            parse_error=parse_error,
        )


def populate_first(
    cycle: ScrapeCycle,
    bodies: Iterable[str],
    integration_factory: Callable[[], Integration],
) -> tuple[Integration | None, ScrapeResult | None]:
    """
    Try candidate exposition bodies in order until one populates.

    Each attempt writes into a fresh integration so a failed endpoint
    leaves nothing behind.

    Returns:
        Tuple of (integration, result) for the first populated body, or
        (None, last result) when none populated
    """
    last: ScrapeResult | None = None
    for index, text in enumerate(bodies):
        integration = integration_factory()
        last = cycle.run(text, integration)
        if last.populated:
            return integration, last
        cycle.log.debug("endpoint_not_populated", attempt=index)
    return None, last
