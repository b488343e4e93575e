"""
Derived comparison series for the results dashboard
"""

from typing import List, Sequence

from processors.models import AnalysisResult, DashboardData, LatencyPoint, OutputLengthPoint

# Headroom above the longest output on the length chart
SCALE_HEADROOM = 1.2


def latency_series(results: Sequence[AnalysisResult]) -> List[LatencyPoint]:
    return [
        LatencyPoint(
            agent_name=result.agent_name,
            latency_in_seconds=result.latency_in_seconds,
            provider=result.provider,
        )
        for result in results
    ]


def output_length_series(results: Sequence[AnalysisResult]) -> List[OutputLengthPoint]:
    """
    Output length per agent with a shared scale maximum

    The maximum is floored at 1 so an all-empty batch still has a usable scale.
    """
    lengths = [len(result.output) for result in results]
    scale_max = SCALE_HEADROOM * max(lengths + [1])
    return [
        OutputLengthPoint(agent_name=result.agent_name, character_count=length, scale_max=scale_max)
        for result, length in zip(results, lengths)
    ]


def build_dashboard(results: Sequence[AnalysisResult]) -> DashboardData:
    return DashboardData(
        latency=latency_series(results),
        output_length=output_length_series(results),
    )
