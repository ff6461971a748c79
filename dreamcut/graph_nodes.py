"""
================================================================================
DREAMCUT v3.0 - GRAPH NODES
================================================================================
Stage nodes and the sequential pipeline that turns a NormalizedRequest into a
CreativeBrief.

Pipeline Flow:
INIT → QUERY_ANALYSIS → ASSET_ANALYSIS → SYNTHESIS → SUMMARIZATION → COMPLETED

- Query analysis is the only fatal stage (AnalysisError).
- Asset analysis runs only when the request has assets.
- Synthesis runs only if asset analysis succeeded; summarization only if
  synthesis succeeded. A failed stage is recorded as degraded and the run
  continues with rule-based fallbacks.

Author: Barrios A2I | DREAMCUT v3.0
================================================================================
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Tuple

from .assembler import assemble_brief, new_brief_id, render
from .collaborators import AnalysisClient
from .errors import AnalysisError, ValidationError
from .normalizer import detect_shape, normalize_request
from .observability import BRIEF_LATENCY, BRIEFS, BriefEventSink, StructlogEventSink, stage_span
from .payloads import (
    AssetAnalysisReport,
    FinalSummary,
    QueryAnalysis,
    StageFailure,
    StageResult,
    SynthesisReport,
    fold_envelope,
)
from .prompt_analysis import analyze_prompt
from .scoring import BriefScorer
from .state_machine import (
    STAGE_ASSETS,
    STAGE_QUERY,
    STAGE_SUMMARY,
    STAGE_SYNTHESIS,
    BriefConstraints,
    BriefPhase,
    BriefState,
    NormalizedRequest,
    OutputIntent,
    StageStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_VIDEO_DURATION = 30
SUMMARY_OPTIONS = {
    "optimization_focus": "balanced",
    "include_creative_enhancements": True,
    "detail_level": "comprehensive",
}


# =============================================================================
# EFFECTIVE INTENT & CONSTRAINTS
# =============================================================================

def resolve_intent(request: NormalizedRequest, query: QueryAnalysis) -> OutputIntent:
    """Request intent, else the analyzer's primary output type, else image"""
    if request.intent is not None:
        return request.intent
    try:
        return OutputIntent(query.intent.primary_output_type)
    except ValueError:
        return OutputIntent.IMAGE


def resolve_constraints(
    request: NormalizedRequest,
    query: QueryAnalysis,
    intent: OutputIntent,
) -> BriefConstraints:
    options = request.options
    analyzed = query.constraints

    duration = options.duration_seconds or analyzed.duration_seconds
    if not duration and intent is OutputIntent.VIDEO:
        duration = DEFAULT_VIDEO_DURATION

    return BriefConstraints(
        duration_seconds=duration or None,
        aspect_ratio=options.aspect_ratio or analyzed.aspect_ratio or "16:9",
        image_count=options.image_count or analyzed.image_count,
        platform=options.platform or (analyzed.platform[0] if analyzed.platform else None) or "social",
        resolution=analyzed.resolution,
        quality_level=query.modifiers.technical_specs.quality_level or "high",
    )


def enhanced_query_payload(state: BriefState) -> Dict[str, Any]:
    """Stage-1 result with the request's selections folded in, for stages 3-4"""
    payload = state.query_analysis.model_dump(mode="json") if state.query_analysis else {}
    constraints = state.constraints
    payload["intent"] = {
        **payload.get("intent", {}),
        "primary_output_type": state.intent.value,
    }
    payload["constraints"] = {
        **payload.get("constraints", {}),
        "duration_seconds": constraints.duration_seconds,
        "aspect_ratio": constraints.aspect_ratio,
        "platform": [constraints.platform],
    }
    if state.prompt_insights is not None:
        payload["enhanced_prompt_analysis"] = {
            "original_prompt": state.request.prompt,
            **state.prompt_insights.model_dump(mode="json"),
        }
    return payload


# =============================================================================
# BASE NODE CLASS
# =============================================================================

class PipelineNode(ABC):
    """Abstract base class for pipeline nodes"""

    stage: str = ""

    def __init__(self, client: AnalysisClient, sink: BriefEventSink):
        self.client = client
        self.sink = sink

    @abstractmethod
    async def execute(self, state: BriefState) -> BriefState:
        """Execute this node's processing"""
        pass

    async def invoke(
        self,
        state: BriefState,
        call: Callable[[], Awaitable[Any]],
    ) -> Tuple[StageResult, float]:
        """Await a collaborator call and fold it into a StageResult. Never raises."""
        self.sink.stage_started(state.run_id, self.stage)
        started = time.perf_counter()
        try:
            envelope = await call()
        except Exception as e:
            logger.warning(f"[{state.run_id}] {self.stage} raised: {e}")
            result: StageResult = StageFailure(message=f"{type(e).__name__}: {e}")
        else:
            result = fold_envelope(envelope)
        return result, (time.perf_counter() - started) * 1000

    def degrade(self, state: BriefState, reason: str, duration_ms: float, phase: BriefPhase) -> BriefState:
        self.sink.stage_degraded(state.run_id, self.stage, reason)
        return (
            state.with_degraded(self.stage, reason)
            .record_stage(self.stage, StageStatus.FAILED, duration_ms)
            .transition_to(phase)
        )

    def skip(self, state: BriefState, reason: str, phase: BriefPhase) -> BriefState:
        self.sink.stage_skipped(state.run_id, self.stage, reason)
        return state.record_stage(self.stage, StageStatus.SKIPPED).transition_to(phase)


# =============================================================================
# STAGE 1: QUERY ANALYSIS (fatal)
# =============================================================================

class QueryAnalysisNode(PipelineNode):
    """Intent, constraints, modifiers and gaps for the prompt. Must succeed."""

    stage = STAGE_QUERY

    async def execute(self, state: BriefState) -> BriefState:
        request = state.request
        options = request.options.model_dump(by_alias=True, exclude_none=True)

        result, duration_ms = await self.invoke(
            state, lambda: self.client.analyze_query(request.prompt, options)
        )
        if isinstance(result, StageFailure):
            raise AnalysisError(f"Query analysis failed: {result.message}", stage=self.stage)

        query = QueryAnalysis.model_validate(result.value)

        intent = resolve_intent(request, query)
        self.sink.stage_completed(state.run_id, self.stage, duration_ms)
        logger.info(f"[{state.run_id}] Query analysis complete: intent={intent.value}")

        return state.record_stage(self.stage, StageStatus.COMPLETED, duration_ms).transition_to(
            BriefPhase.QUERY_ANALYSIS,
            query_analysis=query,
            intent=intent,
            constraints=resolve_constraints(request, query, intent),
            prompt_insights=analyze_prompt(request.prompt, intent, request.options),
        )


# =============================================================================
# STAGE 2: ASSET ANALYSIS
# =============================================================================

class AssetAnalysisNode(PipelineNode):
    """Per-asset technical and content analysis. The collaborator fans out."""

    stage = STAGE_ASSETS

    async def execute(self, state: BriefState) -> BriefState:
        assets = state.request.assets
        if not assets:
            return self.skip(state, "no assets", BriefPhase.ASSET_ANALYSIS)

        prompt = state.prompt_insights.reformulated_prompt if state.prompt_insights else state.request.prompt
        result, duration_ms = await self.invoke(
            state, lambda: self.client.analyze_assets(list(assets), prompt)
        )
        if isinstance(result, StageFailure):
            return self.degrade(state, result.message, duration_ms, BriefPhase.ASSET_ANALYSIS)

        report = AssetAnalysisReport.model_validate(result.value)
        if not report.asset_analyses:
            return self.degrade(state, "no asset analyses returned", duration_ms, BriefPhase.ASSET_ANALYSIS)

        self.sink.stage_completed(state.run_id, self.stage, duration_ms)
        logger.info(f"[{state.run_id}] Analyzed {len(report.asset_analyses)}/{len(assets)} assets")

        return state.record_stage(self.stage, StageStatus.COMPLETED, duration_ms).transition_to(
            BriefPhase.ASSET_ANALYSIS,
            asset_analysis=report,
        )


# =============================================================================
# STAGE 3: CREATIVE SYNTHESIS
# =============================================================================

class SynthesisNode(PipelineNode):
    """Cross-stage creative synthesis. Needs asset analysis."""

    stage = STAGE_SYNTHESIS

    async def execute(self, state: BriefState) -> BriefState:
        if state.asset_analysis is None:
            return self.skip(state, "no asset analysis", BriefPhase.SYNTHESIS)

        query_payload = enhanced_query_payload(state)
        asset_payload = state.asset_analysis.model_dump(mode="json")
        result, duration_ms = await self.invoke(
            state, lambda: self.client.synthesize(query_payload, asset_payload)
        )
        if isinstance(result, StageFailure):
            return self.degrade(state, result.message, duration_ms, BriefPhase.SYNTHESIS)

        synthesis = SynthesisReport.model_validate(result.value)

        self.sink.stage_completed(state.run_id, self.stage, duration_ms)
        return state.record_stage(self.stage, StageStatus.COMPLETED, duration_ms).transition_to(
            BriefPhase.SYNTHESIS,
            synthesis=synthesis,
        )


# =============================================================================
# STAGE 4: FINAL SUMMARIZATION
# =============================================================================

class SummarizationNode(PipelineNode):
    """Final structured summary. Needs synthesis."""

    stage = STAGE_SUMMARY

    async def execute(self, state: BriefState) -> BriefState:
        if state.synthesis is None or state.asset_analysis is None:
            return self.skip(state, "no synthesis", BriefPhase.SUMMARIZATION)

        timings = state.stage_timings_ms
        args = (
            enhanced_query_payload(state),
            state.asset_analysis.model_dump(mode="json"),
            state.synthesis.model_dump(mode="json"),
            {
                "step1_ms": timings.get(STAGE_QUERY, 0),
                "step2_ms": timings.get(STAGE_ASSETS, 0),
                "step3_ms": timings.get(STAGE_SYNTHESIS, 0),
            },
            dict(SUMMARY_OPTIONS),
        )
        result, duration_ms = await self.invoke(state, lambda: self.client.summarize(*args))
        if isinstance(result, StageFailure):
            return self.degrade(state, result.message, duration_ms, BriefPhase.SUMMARIZATION)

        summary = FinalSummary.model_validate(result.value)

        self.sink.stage_completed(state.run_id, self.stage, duration_ms)
        return state.record_stage(self.stage, StageStatus.COMPLETED, duration_ms).transition_to(
            BriefPhase.SUMMARIZATION,
            summary=summary,
            summary_payload=result.value,
        )


# =============================================================================
# ASSEMBLY
# =============================================================================

class AssemblyNode(PipelineNode):
    """Scores the run and assembles the immutable brief"""

    stage = "assembly"

    def __init__(self, client: AnalysisClient, sink: BriefEventSink, scorer: BriefScorer):
        super().__init__(client, sink)
        self.scorer = scorer

    async def execute(self, state: BriefState) -> BriefState:
        quality = self.scorer.score(state.summary)
        if self.scorer.was_boosted(quality):
            self.sink.emit(
                "confidence_boosted",
                state.run_id,
                self.stage,
                raw_confidence=quality.raw_confidence,
                overall_confidence=quality.overall_confidence,
                raw_feasibility=quality.raw_feasibility,
                feasibility_score=quality.feasibility_score,
            )

        processing_time_ms = (time.perf_counter() - state.started_at) * 1000
        brief = assemble_brief(state, quality, processing_time_ms)

        self.sink.emit(
            "brief_assembled",
            state.run_id,
            self.stage,
            assets=len(brief.assets),
            conflicts=len(brief.global_analysis.conflicts),
            creative_options=len(brief.creative_options),
            degraded=[d.stage for d in state.degraded],
            processing_time_ms=round(processing_time_ms, 1),
        )

        return state.transition_to(
            BriefPhase.COMPLETED,
            brief=brief,
            quality=quality,
            processing_time_ms=processing_time_ms,
        )


# =============================================================================
# PIPELINE EXECUTOR
# =============================================================================

class BriefPipeline:
    """
    Orchestrates one brief run: four analysis stages, strictly sequential,
    then assembly. Persistence is fire-and-forget.
    """

    def __init__(
        self,
        client: AnalysisClient,
        sink: Optional[BriefEventSink] = None,
        store: Optional[Any] = None,
        scorer: Optional[BriefScorer] = None,
    ):
        self.client = client
        self.sink = sink or StructlogEventSink()
        self.store = store
        self.scorer = scorer or BriefScorer()
        self._pending: Set[asyncio.Task] = set()
        self.nodes = {
            BriefPhase.INIT: QueryAnalysisNode(client, self.sink),
            BriefPhase.QUERY_ANALYSIS: AssetAnalysisNode(client, self.sink),
            BriefPhase.ASSET_ANALYSIS: SynthesisNode(client, self.sink),
            BriefPhase.SYNTHESIS: SummarizationNode(client, self.sink),
            BriefPhase.SUMMARIZATION: AssemblyNode(client, self.sink, self.scorer),
        }

    def get_next_node(self, phase: BriefPhase) -> Optional[PipelineNode]:
        """Get the node to execute for the current phase"""
        return self.nodes.get(phase)

    async def execute_step(self, state: BriefState) -> BriefState:
        """Execute a single pipeline step"""
        node = self.get_next_node(state.phase)
        if node is None:
            logger.info(f"[{state.run_id}] No node for phase {state.phase.value}, pipeline complete")
            return state

        try:
            with stage_span(node.stage, state.run_id):
                return await node.execute(state)
        except AnalysisError as e:
            self.sink.stage_failed(state.run_id, node.stage, e.message)
            return state.add_error(node.stage, e.message, recoverable=False).transition_to(BriefPhase.FAILED)
        except Exception as e:
            logger.exception(f"[{state.run_id}] Pipeline error in {state.phase.value}: {e}")
            self.sink.stage_failed(state.run_id, node.stage, str(e))
            return state.add_error(node.stage, f"Analysis failed: {e}", recoverable=False).transition_to(
                BriefPhase.FAILED
            )

    async def execute_full(self, state: BriefState) -> BriefState:
        """Execute the complete pipeline"""
        current_state = state
        while current_state.phase not in (BriefPhase.COMPLETED, BriefPhase.FAILED):
            current_state = await self.execute_step(current_state)
        return current_state

    async def run(self, request: NormalizedRequest) -> BriefState:
        """
        Produce a brief for a normalized request.

        Raises:
            AnalysisError: query analysis failed, no brief was produced
        """
        state = BriefState(run_id=new_brief_id(), request=request)
        logger.info(f"[{state.run_id}] Brief run started ({request.shape.value}, {len(request.assets)} assets)")

        final_state = await self.execute_full(state)
        elapsed = time.perf_counter() - state.started_at
        BRIEF_LATENCY.observe(elapsed)

        if final_state.phase == BriefPhase.FAILED:
            BRIEFS.labels(shape=request.shape.value, status="failed").inc()
            message = final_state.errors[-1].message if final_state.errors else "Analysis failed"
            raise AnalysisError(message, stage=final_state.errors[-1].phase if final_state.errors else None)

        status = "degraded" if final_state.is_degraded else "ok"
        BRIEFS.labels(shape=request.shape.value, status=status).inc()
        logger.info(f"[{state.run_id}] Brief completed in {elapsed * 1000:.0f}ms ({status})")

        self._persist(final_state)
        return final_state

    async def analyze(self, body: Any) -> Dict[str, Any]:
        """Raw JSON body in, shape-matched response out"""
        try:
            request = normalize_request(body)
        except ValidationError:
            shape = detect_shape(body).value if isinstance(body, dict) else "unknown"
            BRIEFS.labels(shape=shape, status="invalid").inc()
            raise

        final_state = await self.run(request)
        return render(final_state.brief, request.shape, request.raw_body)

    def _persist(self, state: BriefState) -> None:
        if self.store is None or state.brief is None:
            return
        task = asyncio.create_task(self.store.save(state.brief))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def wait_for_persistence(self) -> None:
        """Await outstanding fire-and-forget saves"""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def close(self) -> None:
        await self.wait_for_persistence()
        await self.client.close()

    def get_graph_structure(self) -> Dict[str, Any]:
        """Return pipeline graph structure for UI visualization"""
        nodes = [
            {"id": "init", "label": "Initialize", "type": "start"},
            {"id": STAGE_QUERY, "label": "Query Analysis", "type": "process"},
            {"id": STAGE_ASSETS, "label": "Asset Analysis", "type": "process"},
            {"id": STAGE_SYNTHESIS, "label": "Creative Synthesis", "type": "process"},
            {"id": STAGE_SUMMARY, "label": "Final Summarization", "type": "process"},
            {"id": "assembly", "label": "Assemble Brief", "type": "process"},
            {"id": "completed", "label": "Completed", "type": "end"},
            {"id": "failed", "label": "Failed", "type": "error"},
        ]

        edges = [
            {"from": "init", "to": STAGE_QUERY},
            {"from": STAGE_QUERY, "to": STAGE_ASSETS, "label": "ok"},
            {"from": STAGE_QUERY, "to": "failed", "label": "error"},
            {"from": STAGE_ASSETS, "to": STAGE_SYNTHESIS},
            {"from": STAGE_SYNTHESIS, "to": STAGE_SUMMARY},
            {"from": STAGE_SUMMARY, "to": "assembly"},
            {"from": "assembly", "to": "completed"},
        ]

        return {"nodes": nodes, "edges": edges}
