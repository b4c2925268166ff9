"""
Chart functions for visualizing estates and distributions.

All chart functions return (figure, tidy_dataframe_used) for consistency.
"""

from __future__ import annotations

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .core.distribution import DistributionResult
from .core.estate import Estate
from .reports import debt_schedule_frame, shares_frame


def distribution_shares_chart(result: DistributionResult) -> tuple[go.Figure, pd.DataFrame]:
    """
    Plot each beneficiary's share, split into net value and hotchpot deduction.

    Life interests are drawn alongside the vested shares; they overlap the
    remainder interests in value and should not be summed with them.

    **Args:**
        result: Output of ``DistributionCalculator.calculate_intestate_distribution``

    **Returns:**
        Tuple of (plotly_figure, tidy_dataframe_used)

    **Example:**
        ```python
        result = DistributionCalculator().calculate_intestate_distribution(estate, family)
        fig, data = distribution_shares_chart(result)
        fig.show()
        ```
    """
    shares = shares_frame(result)
    tidy = shares.melt(
        id_vars=["beneficiary_name", "share_type", "polygamous_house_id"],
        value_vars=["share_value", "hotchpot_deduction"],
        var_name="component",
        value_name="amount",
    )
    tidy["component"] = tidy["component"].map(
        {"share_value": "Net share", "hotchpot_deduction": "Hotchpot deduction"}
    )

    fig = px.bar(
        tidy,
        x="beneficiary_name",
        y="amount",
        color="component",
        pattern_shape="share_type",
        title=f"Distribution of Estate {result.estate_id} ({result.scenario.value})",
        labels={"beneficiary_name": "Beneficiary", "amount": "Amount"},
    )
    fig.update_layout(barmode="stack", legend_title="Component")

    return fig, tidy


def debt_priority_chart(estate: Estate) -> tuple[go.Figure, pd.DataFrame]:
    """
    Plot outstanding debt per Section 45 tier against cash on hand.

    **Returns:**
        Tuple of (plotly_figure, per-tier dataframe) with columns ``tier``,
        ``tier_label``, ``outstanding_balance``, ``total_paid`` and
        ``cumulative_outstanding``
    """
    schedule = debt_schedule_frame(estate)
    by_tier = (
        schedule.groupby(["tier", "tier_label"], as_index=False)
        .agg({"outstanding_balance": "sum", "total_paid": "sum"})
        .sort_values("tier")
    )
    by_tier["cumulative_outstanding"] = by_tier["outstanding_balance"].cumsum()

    fig = go.Figure()
    fig.add_trace(
        go.Bar(
            name="Outstanding",
            x=by_tier["tier_label"],
            y=by_tier["outstanding_balance"],
            marker_color="firebrick",
        )
    )
    fig.add_trace(
        go.Bar(
            name="Paid",
            x=by_tier["tier_label"],
            y=by_tier["total_paid"],
            marker_color="seagreen",
        )
    )
    fig.add_trace(
        go.Scatter(
            name="Cumulative outstanding",
            x=by_tier["tier_label"],
            y=by_tier["cumulative_outstanding"],
            mode="lines+markers",
        )
    )
    fig.add_hline(
        y=float(estate.cash_on_hand.value),
        line_dash="dash",
        annotation_text="Cash on hand",
    )
    fig.update_layout(
        title=f"Debts by Section 45 Priority - {estate.name}",
        xaxis_title="Priority tier",
        yaxis_title="Amount",
        barmode="stack",
    )

    return fig, by_tier


def save_chart(fig: go.Figure, filename: str, format: str = "html") -> None:
    """
    Save chart to file.

    Args:
        fig: Plotly figure
        filename: Output filename
        format: Output format ('html', 'png', 'pdf', 'svg')
    """
    if format == "html":
        fig.write_html(filename)
    elif format in {"png", "pdf", "svg"}:
        fig.write_image(filename, format=format)
    else:
        raise ValueError(f"Unsupported format: {format}")
