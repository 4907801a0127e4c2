"""Plotly figures for forecast balance series.

The reporting layer renders these directly; each function accepts the
DataFrames returned by the calculators and returns a
`plotly.graph_objects.Figure`.
"""

from __future__ import annotations

from datetime import date

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go


def create_balance_chart(
    series: pd.DataFrame,
    as_of: date | None = None,
    title: str | None = None,
) -> go.Figure:
    """Draw one step line per account.

    Parameters
    ----------
    series : pandas.DataFrame
        Balance series with ``account``, ``date`` and ``balance`` columns.
    as_of : datetime.date, optional
        Draws a dashed marker separating history from forecast.
    title : str, optional
        Chart title.  Defaults to "Balance forecast".

    Returns
    -------
    plotly.graph_objects.Figure
        Interactive line chart.
    """
    if series is None or series.empty:
        fig = go.Figure()
        fig.update_layout(title="No data to display")
        return fig
    df = series.copy()
    df['account'] = df['account'].astype(str)
    df['balance'] = df['balance'].astype(float)
    fig = px.line(df, x='date', y='balance', color='account', line_shape='hv', markers=True)
    if as_of is not None:
        fig.add_vline(x=pd.Timestamp(as_of).to_pydatetime(), line_dash='dash', line_color='gray')
    fig.update_layout(
        title=title or "Balance forecast",
        xaxis_title="Date",
        yaxis_title="Balance",
        legend_title="Account",
    )
    return fig
