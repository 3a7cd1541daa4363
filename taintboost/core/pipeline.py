"""
Boosting pipeline - entry point for a classification run.

Coordinates, for every enabled query:
- Classification of every node of a graph snapshot
- Flow-path filtering through the external flow engine
- Work-item extraction and scoring through the external ML scorer
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from taintboost.core.config import TaintBoostSettings
from taintboost.endpoints.classifier import ClassificationReport, EndpointClassifier
from taintboost.endpoints.configuration import EndpointConfiguration, FlowEngine
from taintboost.models.graph import GraphProvider
from taintboost.ml.work_items import (
    ScoredWorkItem,
    Scorer,
    WorkItem,
    extract_work_items,
    score_work_items,
    work_items_from_paths,
)
from taintboost.queries import get_configurations
from taintboost.utils.logging import ComponentLogger, setup_logging


@dataclass
class PipelineResult:
    """Per-query outputs of one run."""

    reports: dict[str, ClassificationReport] = field(default_factory=dict)
    work_items: dict[str, list[WorkItem]] = field(default_factory=dict)
    scored: dict[str, list[ScoredWorkItem]] = field(default_factory=dict)

    def summary(self) -> dict[str, Any]:
        """Generate summary statistics."""
        return {
            query: {
                **report.summary(),
                "work_items": len(self.work_items.get(query, [])),
                "scored": len(self.scored.get(query, [])),
            }
            for query, report in self.reports.items()
        }


class BoostPipeline:
    """
    Runs the enabled queries over a graph snapshot.

    Example:
        pipeline = BoostPipeline(TaintBoostSettings.load())
        result = await pipeline.run(graph, engine=flow_engine, scorer=model)
    """

    def __init__(
        self,
        settings: Optional[TaintBoostSettings] = None,
        configure_logging: bool = False,
    ) -> None:
        self.settings = settings or TaintBoostSettings()
        if configure_logging:
            log = self.settings.logging
            setup_logging(
                level=log.level,
                log_file=log.file,
                json_format=log.json_format,
                max_file_size_mb=log.max_file_size_mb,
                backup_count=log.backup_count,
            )
        self.logger = ComponentLogger("pipeline")
        self.configurations: list[EndpointConfiguration] = get_configurations(
            self.settings.classification.queries
        )

    def classify(self, graph: GraphProvider) -> dict[str, ClassificationReport]:
        """Classify every node for every enabled query."""
        reports: dict[str, ClassificationReport] = {}
        for config in self.configurations:
            classifier = EndpointClassifier(
                config,
                include_labels=self.settings.classification.include_labels,
                max_workers=self.settings.classification.max_workers,
            )
            reports[config.query_id] = classifier.classify_graph(graph)
        return reports

    def collect_work_items(
        self,
        graph: GraphProvider,
        engine: Optional[FlowEngine] = None,
    ) -> dict[str, list[WorkItem]]:
        """
        Build ML work items per query.

        With a flow engine only sinks of novel flow paths are kept;
        without one every effective, not-known sink is a candidate.
        """
        items: dict[str, list[WorkItem]] = {}
        for config in self.configurations:
            if engine is not None:
                paths = config.candidate_paths(engine, graph)
                items[config.query_id] = work_items_from_paths(config, paths)
            else:
                items[config.query_id] = extract_work_items(config, graph.nodes())
        return items

    async def run(
        self,
        graph: GraphProvider,
        engine: Optional[FlowEngine] = None,
        scorer: Optional[Scorer] = None,
    ) -> PipelineResult:
        """
        Classify, extract work items and optionally score them.

        Args:
            graph: Read-only graph snapshot
            engine: Optional flow engine for path filtering
            scorer: Optional ML scorer

        Returns:
            PipelineResult keyed by query id
        """
        self.logger.info(
            "Starting run",
            queries=",".join(c.query_id for c in self.configurations),
            nodes=len(graph.nodes()),
        )
        result = PipelineResult(reports=self.classify(graph))
        result.work_items = self.collect_work_items(graph, engine)

        if scorer is not None:
            for query_id, items in result.work_items.items():
                result.scored[query_id] = await score_work_items(
                    scorer,
                    items,
                    batch_size=self.settings.scoring.batch_size,
                    max_concurrency=self.settings.scoring.max_concurrency,
                )

        self.logger.info("Run complete", queries=len(result.reports))
        return result
